"""Run context — the state of one top-level run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from agencia.core.engine.trace import TraceCard
    from agencia.core.interface.backend import Backend
    from agencia.core.registry.registry import Registry
    from agencia.core.session.chat import Chat

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    """Recursion bounds for agent calls and tool-calling rounds."""

    max_call_depth: int = 6
    max_tool_depth: int = 5


@dataclass
class AgentResult:
    """Outcome of one agent call."""

    agent: str
    output: str = ""
    ran: bool = False
    error: Exception | None = None


class RunContext:
    """Per-run state: call depth, current trace card, session, local facts.

    Owned by a single run and mutated only along its call path; never
    share one between concurrent runs.  Native function agents receive it
    as their first argument.
    """

    def __init__(
        self,
        registry: Registry,
        backend: Backend,
        *,
        session: Chat | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self.registry = registry
        self.backend = backend
        self.session = session
        self.settings = settings or EngineSettings()
        self.depth = 0
        self.card: TraceCard | None = None
        self.root: TraceCard | None = None
        self.local_facts: dict[str, Any] = {}

    def log(self, message: str, *args: Any) -> None:
        """Log to the module logger and the current trace card."""
        text = message % args if args else message
        logger.debug(text)
        if self.card is not None:
            self.card.log(text)

    def error(self, message: str, *args: Any) -> None:
        text = message % args if args else message
        logger.warning(text)
        if self.card is not None:
            self.card.log(f"[ERROR] {text}")
