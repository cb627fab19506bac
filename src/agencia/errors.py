"""Shared error types for spec loading, validation, and agent execution."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agencia.core.lint.models import LintResult


class AgenciaError(Exception):
    """Base error for all agencia failures."""


class SpecParseError(AgenciaError):
    """The spec document could not be parsed into agent entries."""


class SpecValidationError(AgenciaError):
    """The linter reported errors; the spec must not be registered."""

    def __init__(self, result: LintResult) -> None:
        self.result = result
        super().__init__(
            f"Spec is invalid ({len(result.errors)} error(s)): " + "; ".join(result.errors)
        )


class AgentNotFoundError(AgenciaError):
    """No local or library agent matches the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"could not find agent: {name}")


class InvalidAgentDefinitionError(AgenciaError):
    """An agent definition does not declare exactly one action."""


class RecursionExceededError(AgenciaError):
    """A call-depth or tool-call-depth guard tripped."""

    def __init__(self, limit: int, detail: str = "") -> None:
        self.limit = limit
        self.detail = detail
        super().__init__(f"recursion exceeded {limit}" + (f": {detail}" if detail else ""))


class TemplateRenderError(AgenciaError):
    """A prompt or template failed to parse or render."""

    def __init__(self, agent: str, detail: str = "") -> None:
        self.agent = agent
        self.detail = detail
        super().__init__(f"template error in {agent}" + (f": {detail}" if detail else ""))


class BackendError(AgenciaError):
    """The AI backend failed (transport, auth, or malformed response)."""


class MissingRequiredInputError(AgenciaError):
    """Input extraction could not fill one or more required fields."""

    def __init__(self, agent: str, missing: list[str]) -> None:
        self.agent = agent
        self.missing = missing
        super().__init__(f"required inputs missing in agent {agent}: {', '.join(missing)}")


class InvalidListenerSchemaError(AgenciaError):
    """One or more listeners cannot be exposed as backend tools."""

    def __init__(
        self, agent: str, listeners: list[str], reason: str = "need a description and inputs"
    ) -> None:
        self.agent = agent
        self.listeners = listeners
        super().__init__(f"agent {agent} has bad listeners ({reason}): " + ", ".join(listeners))


class RunCancelledError(AgenciaError):
    """A run was cancelled or timed out before completing."""
