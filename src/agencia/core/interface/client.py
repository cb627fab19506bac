"""ModelClient — the LiteLLM-backed :class:`Backend`.

Wraps LiteLLM so the engine only ever works with
:class:`CompletionRequest` and :class:`Completion`.
"""

from typing import Any

import litellm

from agencia.core.interface.config import ModelConfig
from agencia.core.interface.models import (
    CanonicalMessage,
    Completion,
    CompletionRequest,
    ToolCall,
)
from agencia.core.interface.transpiler import OpenAITranspiler, parse_arguments
from agencia.errors import BackendError
from agencia.utils.telemetry import (
    ATTR_AGENT_NAME,
    ATTR_FINISH_REASON,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_PURPOSE,
    ATTR_TOKENS_COMPLETION,
    ATTR_TOKENS_PROMPT,
    ATTR_TOKENS_TOTAL,
    get_tracer,
)

_tracer = get_tracer(__name__)


class ModelClient:
    """Async backend generating completions via LiteLLM.

    Usage::

        client = ModelClient(ModelConfig(model="openai/gpt-4o"))
        completion = await client.complete(CompletionRequest(agent="greet", prompt="Hi"))
    """

    def __init__(self, config: ModelConfig | None = None) -> None:
        self.config = config or ModelConfig()
        self.transpiler = OpenAITranspiler()

    async def complete(self, request: CompletionRequest, **kwargs: Any) -> Completion:
        """Send the prompt, continuation history and tools to the model.

        Raises:
            BackendError: If LiteLLM fails or returns no choices.
        """
        with _tracer.start_as_current_span("model.complete") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            span.set_attribute(ATTR_PROVIDER, self.config.provider)
            span.set_attribute(ATTR_AGENT_NAME, request.agent)
            span.set_attribute(ATTR_PURPOSE, request.purpose)

            messages = [CanonicalMessage.user(request.prompt), *request.history]
            call_kwargs = self.config.completion_kwargs()
            call_kwargs["messages"] = self.transpiler.to_provider(messages)["messages"]
            call_kwargs.update(kwargs)
            if request.tools:
                call_kwargs["tools"] = [tool.to_openai() for tool in request.tools]

            try:
                response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
            except Exception as exc:
                raise BackendError(f"LLM API error: {exc}") from exc

            result = self._parse_response(response)

            usage: dict[str, Any] | None = result.metadata.get("usage")
            if isinstance(usage, dict):
                span.set_attribute(ATTR_TOKENS_PROMPT, int(usage.get("prompt_tokens", 0)))
                span.set_attribute(ATTR_TOKENS_COMPLETION, int(usage.get("completion_tokens", 0)))
                span.set_attribute(ATTR_TOKENS_TOTAL, int(usage.get("total_tokens", 0)))
            finish_reason = result.metadata.get("finish_reason")
            if finish_reason is not None:
                span.set_attribute(ATTR_FINISH_REASON, str(finish_reason))

            return result

    def _parse_response(self, response: Any) -> Completion:
        """Convert a LiteLLM response to a :class:`Completion`.

        LiteLLM returns OpenAI-compatible response objects regardless of
        the underlying provider.
        """
        if not getattr(response, "choices", None):
            raise BackendError("LLM API error: response has no choices")
        message = response.choices[0].message

        tool_calls: list[ToolCall] = []
        if message.tool_calls:
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=parse_arguments(tc.function.arguments),
                )
                for tc in message.tool_calls
            ]

        metadata: dict[str, Any] = {}
        if hasattr(response, "usage") and response.usage:
            metadata["usage"] = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        metadata["finish_reason"] = response.choices[0].finish_reason
        metadata["model"] = response.model

        return Completion(
            text=(message.content or "").strip(),
            tool_calls=tool_calls,
            metadata=metadata,
        )
