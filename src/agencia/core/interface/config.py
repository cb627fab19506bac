"""Model configuration for the LiteLLM backend."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_MODEL = "openai/gpt-4o"


class ModelConfig(BaseModel):
    """Which model to call and with what parameters.

    ``model`` uses LiteLLM's ``provider/model_name`` naming
    (``openai/gpt-4o``, ``anthropic/claude-3-opus``).  Provider API keys
    are normally picked up by LiteLLM from the environment; ``api_key``
    overrides that.
    """

    model: str = DEFAULT_MODEL
    api_key: str | None = None
    api_base: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    request_timeout: float | None = None
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @classmethod
    def from_env(cls, **overrides: Any) -> ModelConfig:
        """Read ``AGENCIA_MODEL`` and ``AGENCIA_API_BASE``; *overrides* win."""
        values: dict[str, Any] = {}
        if os.environ.get("AGENCIA_MODEL"):
            values["model"] = os.environ["AGENCIA_MODEL"]
        if os.environ.get("AGENCIA_API_BASE"):
            values["api_base"] = os.environ["AGENCIA_API_BASE"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"

    def completion_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``litellm.acompletion``, unset values omitted."""
        kwargs: dict[str, Any] = {"model": self.model, **self.extra}
        optional = {
            "api_key": self.api_key,
            "api_base": self.api_base,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.request_timeout,
        }
        kwargs.update({k: v for k, v in optional.items() if v is not None})
        return kwargs
