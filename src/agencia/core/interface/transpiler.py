"""OpenAI transpiler — canonical messages to OpenAI chat format.

LiteLLM accepts OpenAI-style messages for every provider and adapts them
internally, so this is the only wire format the client needs.
"""

import json
from typing import Any

from agencia.core.interface.models import CanonicalMessage


class OpenAITranspiler:
    """Converts canonical messages to OpenAI's chat completion format."""

    def to_provider(self, messages: list[CanonicalMessage]) -> dict[str, Any]:
        """Return ``{"messages": [...]}`` following OpenAI's schema."""
        return {"messages": [self._message_to_openai(msg) for msg in messages]}

    def _message_to_openai(self, msg: CanonicalMessage) -> dict[str, Any]:
        result: dict[str, Any] = {"role": msg.role}

        if msg.role == "tool":
            result["tool_call_id"] = msg.tool_call_id
            result["content"] = msg.text
            return result

        result["content"] = msg.text or None

        if msg.tool_calls:
            result["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.name,
                        "arguments": serialize_arguments(tc.arguments),
                    },
                }
                for tc in msg.tool_calls
            ]

        return result


def parse_arguments(raw: Any) -> dict[str, Any]:
    """Parse JSON string arguments from a tool call."""
    if isinstance(raw, dict):
        return raw
    try:
        result: Any = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    return result if isinstance(result, dict) else {"raw": raw}


def serialize_arguments(args: dict[str, Any]) -> str:
    """Serialize tool call arguments to a JSON string."""
    return json.dumps(args, default=str)
