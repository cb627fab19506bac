"""Canonical message and backend request models.

Orchestration code only ever builds these types; the OpenAI transpiler
turns them into provider payloads at the edge.
"""

from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Tool calling: structured tool invocations and results
# ---------------------------------------------------------------------------


class ToolCall(BaseModel):
    """A tool invocation emitted by the backend."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    name: str
    arguments: dict[str, Any] = {}


class ToolSpec(BaseModel):
    """A listener agent exposed to the backend as a callable tool."""

    name: str
    description: str
    properties: dict[str, dict[str, Any]] = {}
    required: list[str] = []

    def to_openai(self) -> dict[str, Any]:
        """Return the OpenAI function-calling schema for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": self.properties,
                    "required": self.required,
                },
            },
        }


# ---------------------------------------------------------------------------
# Canonical message: the conversation building block
# ---------------------------------------------------------------------------


class CanonicalMessage(BaseModel):
    """A single message in the canonical format.

    Roles:
    - system: instruction/context messages
    - user: the rendered prompt
    - assistant: backend messages (may include tool_calls)
    - tool: tool execution results (must include tool_call_id)
    """

    role: Literal["system", "user", "assistant", "tool"]
    text: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    metadata: dict[str, Any] = {}

    @classmethod
    def user(cls, text: str, **metadata: Any) -> "CanonicalMessage":
        return cls(role="user", text=text, metadata=metadata)

    @classmethod
    def assistant(
        cls,
        text: str = "",
        tool_calls: list[ToolCall] | None = None,
        **metadata: Any,
    ) -> "CanonicalMessage":
        return cls(role="assistant", text=text, tool_calls=tool_calls, metadata=metadata)

    @classmethod
    def tool(cls, tool_call_id: str, text: str, **metadata: Any) -> "CanonicalMessage":
        return cls(role="tool", text=text, tool_call_id=tool_call_id, metadata=metadata)


# ---------------------------------------------------------------------------
# Backend request / response
# ---------------------------------------------------------------------------


class CompletionRequest(BaseModel):
    """Everything the backend needs for one completion.

    ``history`` holds the continuation turns (assistant tool calls and
    tool results) that follow the prompt; it is empty on the first call.
    """

    agent: str
    prompt: str
    tools: list[ToolSpec] = []
    history: list[CanonicalMessage] = []
    purpose: Literal["prompt", "inputs", "facts"] = "prompt"


class Completion(BaseModel):
    """A backend answer: final text, or tool calls to run first."""

    text: str = ""
    tool_calls: list[ToolCall] = []
    metadata: dict[str, Any] = {}
