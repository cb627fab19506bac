"""Backend interface — request models, the LiteLLM client, and the mock."""

from agencia.core.interface.backend import Backend
from agencia.core.interface.client import ModelClient
from agencia.core.interface.config import ModelConfig
from agencia.core.interface.mock import MockBackend
from agencia.core.interface.models import (
    CanonicalMessage,
    Completion,
    CompletionRequest,
    ToolCall,
    ToolSpec,
)
from agencia.core.interface.transpiler import OpenAITranspiler

__all__ = [
    "Backend",
    "CanonicalMessage",
    "Completion",
    "CompletionRequest",
    "MockBackend",
    "ModelClient",
    "ModelConfig",
    "OpenAITranspiler",
    "ToolCall",
    "ToolSpec",
]
