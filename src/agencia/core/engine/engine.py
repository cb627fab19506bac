"""Execution engine — runs agents by name against a registry and a backend.

Usage::

    engine = Engine(load_registry(Path("agents.yaml")), ModelClient())
    result = await engine.run("greet", "My name is Bob")
    print(result.output)

    chat = Chat("greet")
    result = await engine.chat(chat, "hello again")

Every call, including nested ``Get`` calls and tool calls, goes through
:meth:`Engine.call_agent`, which enforces the call-depth bound and builds
the trace tree.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import yaml

from agencia.core.engine.context import AgentResult, EngineSettings, RunContext
from agencia.core.engine.extraction import check_required, extract_facts, extract_inputs
from agencia.core.engine.templating import TemplateContext, dump_yaml
from agencia.core.engine.tools import run_prompt
from agencia.core.engine.trace import TraceCard
from agencia.core.spec.models import AliasAction, FunctionAction, PromptAction
from agencia.errors import (
    AgenciaError,
    AgentNotFoundError,
    RecursionExceededError,
    RunCancelledError,
    TemplateRenderError,
)
from agencia.utils.telemetry import (
    ATTR_AGENT_KIND,
    ATTR_AGENT_NAME,
    ATTR_CALL_DEPTH,
    get_tracer,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from agencia.core.interface.backend import Backend
    from agencia.core.registry.registry import Registry
    from agencia.core.session.chat import Chat
    from agencia.core.spec.models import Agent

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DID_NOT_RUN = "did not run"


@dataclass
class RunResult:
    """Outcome of a top-level run.

    ``output`` is the agent's text, the error text when ``error`` is set,
    or ``"did not run"`` when the agent declined to run.
    """

    agent: str
    output: str
    ran: bool
    error: Exception | None = None
    trace: TraceCard | None = None


def valid_text(text: str) -> str:
    """Replace anything that cannot be encoded as UTF-8."""
    return text.encode("utf-8", errors="replace").decode("utf-8")


def _normalise_input(value: str | Mapping[str, Any] | None) -> tuple[str, dict[str, Any] | None]:
    """Return ``(raw_text, given_fields)`` for a call input."""
    if isinstance(value, Mapping):
        fields = {str(k): v for k, v in value.items()}
        return dump_yaml(fields), fields
    return ("" if value is None else str(value)), None


def _loose_mapping(raw: str) -> dict[str, Any]:
    """Read raw text as a YAML mapping, else wrap it as ``{"input": raw}``."""
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError:
        data = None
    if isinstance(data, dict):
        return {str(k): v for k, v in data.items()}
    return {"input": raw}


class Engine:
    """Executes agents from a :class:`Registry` using a :class:`Backend`.

    An engine holds no per-run state; concurrent runs each get their own
    :class:`RunContext`.
    """

    def __init__(
        self,
        registry: Registry,
        backend: Backend,
        *,
        settings: EngineSettings | None = None,
    ) -> None:
        self.registry = registry
        self.backend = backend
        self.settings = settings or EngineSettings()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        name: str,
        input: str | Mapping[str, Any],
        *,
        session: Chat | None = None,
        timeout: float | None = None,
    ) -> RunResult:
        """Run agent *name* with *input* and return its result and trace.

        Agent failures are reported in the result, never raised.  Task
        cancellation propagates; a *timeout* becomes a
        :class:`RunCancelledError` result that keeps the partial trace.
        """
        ctx = RunContext(self.registry, self.backend, session=session, settings=self.settings)
        logger.info("Running agent %s", name)
        if session is None:
            result = await self._run(ctx, name, input, timeout)
        else:
            async with session.lock:
                result = await self._run(ctx, name, input, timeout)
                if ctx.root is not None:
                    session.cards.append(ctx.root)

        if result.error is not None:
            logger.warning("Agent %s failed: %s", name, result.error)
            output = str(result.error)
        elif not result.ran:
            logger.info("Agent %s did not run", name)
            output = DID_NOT_RUN
        else:
            output = valid_text(result.output)
        return RunResult(
            agent=name, output=output, ran=result.ran, error=result.error, trace=ctx.root
        )

    async def chat(self, session: Chat, input: str, *, timeout: float | None = None) -> RunResult:
        """Run one conversation turn with the session's current start agent."""
        return await self.run(session.start_agent, input, session=session, timeout=timeout)

    async def call_agent(
        self, ctx: RunContext, name: str, input: str | Mapping[str, Any] | None
    ) -> AgentResult:
        """Call agent *name* within *ctx*, adding a card to the trace tree.

        A mapping input supplies the input fields directly (tool calls);
        text goes through input extraction when the agent declares inputs.
        """
        if ctx.depth >= self.settings.max_call_depth:
            error = RecursionExceededError(
                self.settings.max_call_depth, f"too many nested calls reaching {name}"
            )
            ctx.error(str(error))
            return AgentResult(agent=name, error=error)

        raw, given = _normalise_input(input)
        parent = ctx.card
        if parent is None:
            card = TraceCard(agent=name, input=raw)
            if ctx.root is None:
                ctx.root = card
        else:
            card = parent.add_branch(name, raw)

        ctx.card = card
        ctx.depth += 1
        try:
            with _tracer.start_as_current_span("agent.call") as span:
                span.set_attribute(ATTR_AGENT_NAME, name)
                span.set_attribute(ATTR_CALL_DEPTH, ctx.depth)
                result = await self._dispatch(ctx, name, raw, given, span)
            card.output = result.output
            card.ran = result.ran
            card.error = result.error
            return result
        finally:
            ctx.depth -= 1
            ctx.card = parent

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(
        self,
        ctx: RunContext,
        name: str,
        input: str | Mapping[str, Any],
        timeout: float | None,
    ) -> AgentResult:
        if timeout is None:
            return await self.call_agent(ctx, name, input)
        try:
            return await asyncio.wait_for(self.call_agent(ctx, name, input), timeout)
        except asyncio.TimeoutError:
            error = RunCancelledError(f"run of {name} timed out after {timeout}s")
            if ctx.root is not None:
                ctx.root.error = error
            return AgentResult(agent=name, error=error)

    async def _dispatch(
        self,
        ctx: RunContext,
        name: str,
        raw: str,
        given: dict[str, Any] | None,
        span: Span,
    ) -> AgentResult:
        try:
            agent = self.registry.lookup(name)
        except AgentNotFoundError as exc:
            ctx.error(str(exc))
            return AgentResult(agent=name, error=exc)
        span.set_attribute(ATTR_AGENT_KIND, agent.kind)

        action = agent.action
        if isinstance(action, AliasAction):
            ctx.log("alias %s -> %s", name, action.target)
            result = await self.call_agent(ctx, action.target, raw if given is None else given)
            return AgentResult(agent=name, output=result.output, ran=result.ran, error=result.error)

        try:
            inputs = await self._gather_inputs(ctx, agent, raw, given)
        except AgenciaError as exc:
            ctx.error("inputs of %s: %s", name, exc)
            return AgentResult(agent=name, error=exc)
        if ctx.card is not None:
            ctx.card.inputs = inputs

        if isinstance(action, FunctionAction):
            result = await self._run_function(ctx, agent, action, inputs)
        else:
            result = await self._run_text(ctx, agent, raw, inputs)

        if result.error is None and result.output:
            await extract_facts(ctx, agent, raw, result.output)
        return result

    async def _gather_inputs(
        self, ctx: RunContext, agent: Agent, raw: str, given: dict[str, Any] | None
    ) -> dict[str, Any]:
        if given is not None:
            check_required(agent, given)
            return given
        if agent.inputs:
            inputs = await extract_inputs(ctx, agent, raw)
            if inputs or not isinstance(agent.action, FunctionAction):
                return inputs
            ctx.log("no inputs extracted for %s; reading the raw input", agent.name)
        if isinstance(agent.action, FunctionAction):
            return _loose_mapping(raw)
        return {}

    async def _run_function(
        self, ctx: RunContext, agent: Agent, action: FunctionAction, inputs: dict[str, Any]
    ) -> AgentResult:
        try:
            output = action.fn(ctx, inputs, agent)
            if inspect.isawaitable(output):
                output = await output
        except Exception as exc:  # native functions report failure by raising
            ctx.error("function %s failed: %s", agent.name, exc)
            return AgentResult(agent=agent.name, ran=True, error=exc)
        return AgentResult(agent=agent.name, output="" if output is None else str(output), ran=True)

    async def _run_text(
        self, ctx: RunContext, agent: Agent, raw: str, inputs: dict[str, Any]
    ) -> AgentResult:
        action = agent.action
        template = TemplateContext(self, ctx, agent, raw, inputs)
        try:
            text = await template.render(action.text)  # type: ignore[union-attr]
        except TemplateRenderError as exc:
            ctx.error(str(exc))
            return AgentResult(agent=agent.name, error=exc)

        if not isinstance(action, PromptAction):
            return AgentResult(agent=agent.name, output=text, ran=True)

        if ctx.card is not None:
            ctx.card.prompt = text
        if not text:
            ctx.log("prompt of %s rendered empty; not calling the backend", agent.name)
            return AgentResult(agent=agent.name)
        try:
            output = await run_prompt(self, ctx, agent, text)
        except AgenciaError as exc:
            ctx.error("prompt %s failed: %s", agent.name, exc)
            return AgentResult(agent=agent.name, ran=True, error=exc)
        return AgentResult(agent=agent.name, output=output, ran=True)
