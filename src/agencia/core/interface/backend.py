"""Backend protocol — the narrow interface the engine uses to reach an LLM."""

from typing import Protocol, runtime_checkable

from agencia.core.interface.models import Completion, CompletionRequest


@runtime_checkable
class Backend(Protocol):
    """Answer a completion request.

    Implementations raise :class:`~agencia.errors.BackendError` on
    transport, auth, or malformed-response failures.
    """

    async def complete(self, request: CompletionRequest) -> Completion: ...
