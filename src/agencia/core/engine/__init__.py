"""Agent execution: engine, run context, template helpers and trace cards."""

from agencia.core.engine.context import AgentResult, EngineSettings, RunContext
from agencia.core.engine.engine import Engine, RunResult
from agencia.core.engine.templating import TemplateContext
from agencia.core.engine.trace import LogMessage, TraceCard

__all__ = [
    "AgentResult",
    "Engine",
    "EngineSettings",
    "LogMessage",
    "RunContext",
    "RunResult",
    "TemplateContext",
    "TraceCard",
]
