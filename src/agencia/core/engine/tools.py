"""Tool-calling loop — listeners exposed to the backend as callable tools.

A prompt agent with listeners sends their schemas along with its prompt.
While the backend answers with tool calls, each call runs the named
listener through the engine and its output is fed back, up to
``max_tool_depth`` rounds.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from agencia.core.engine.templating import TemplateContext, dump_yaml, has_markup
from agencia.core.interface.models import CanonicalMessage, CompletionRequest, ToolSpec
from agencia.errors import (
    AgenciaError,
    AgentNotFoundError,
    InvalidListenerSchemaError,
    RecursionExceededError,
)
from agencia.utils.telemetry import ATTR_AGENT_NAME, ATTR_TOOL_COUNT, ATTR_TOOL_DEPTH, get_tracer

if TYPE_CHECKING:
    from agencia.core.engine.context import RunContext
    from agencia.core.engine.engine import Engine
    from agencia.core.spec.models import Agent, Argument

_tracer = get_tracer(__name__)

_JSON_TYPES = {
    "string": "string",
    "str": "string",
    "int": "integer",
    "integer": "integer",
    "number": "number",
    "float": "number",
    "bool": "boolean",
    "boolean": "boolean",
    "list": "array",
    "array": "array",
    "map": "object",
    "object": "object",
}

_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9_-]")


def tool_name(agent_name: str) -> str:
    """Provider-safe function name for an agent (``util.echo`` -> ``util__echo``)."""
    return _UNSAFE_NAME.sub("_", agent_name.replace(".", "__"))


def _property(arg: Argument) -> dict[str, Any]:
    json_type = _JSON_TYPES.get(arg.type.lower(), "string")
    prop: dict[str, Any] = {"type": json_type, "description": arg.description}
    if json_type == "array":
        prop["items"] = {"type": "string"}
    return prop


def build_tools(ctx: RunContext, agent: Agent) -> dict[str, ToolSpec]:
    """Map tool name to :class:`ToolSpec` for every listener of *agent*.

    Raises:
        AgentNotFoundError: If a listener is not registered.
        InvalidListenerSchemaError: If listeners lack a description or inputs,
            or two listeners share a tool name.
    """
    tools: dict[str, ToolSpec] = {}
    owners: dict[str, str] = {}
    bad: list[str] = []
    for name in agent.listeners:
        listener = ctx.registry.lookup(name)
        if not listener.description or not listener.inputs:
            bad.append(name)
            continue
        safe = tool_name(name)
        owner = owners.setdefault(safe, name)
        if owner != name:
            raise InvalidListenerSchemaError(
                agent.name, [owner, name], f"both map to the tool name {safe}"
            )
        tools[safe] = ToolSpec(
            name=safe,
            description=listener.description,
            properties={field: _property(arg) for field, arg in listener.inputs.items()},
            required=[field for field, arg in listener.inputs.items() if arg.required],
        )
    if bad:
        raise InvalidListenerSchemaError(agent.name, bad)
    return tools


async def run_prompt(engine: Engine, ctx: RunContext, agent: Agent, prompt: str) -> str:
    """Send *prompt* and settle any tool calls; return the final answer text.

    Raises:
        RecursionExceededError: If tool calls continue past ``max_tool_depth``.
        AgenciaError: If a backend call or any tool call fails.
    """
    tools = build_tools(ctx, agent)
    targets = {tool_name(listener): listener for listener in agent.listeners}
    limit = ctx.settings.max_tool_depth
    history: list[CanonicalMessage] = []
    calls: list[str] = []

    def request() -> CompletionRequest:
        return CompletionRequest(
            agent=agent.name, prompt=prompt, tools=list(tools.values()), history=list(history)
        )

    completion = await ctx.backend.complete(request())
    if not completion.tool_calls:
        return completion.text

    with _tracer.start_as_current_span("agent.tool_loop") as span:
        span.set_attribute(ATTR_AGENT_NAME, agent.name)
        depth = 0
        while completion.tool_calls:
            depth += 1
            if depth > limit:
                raise RecursionExceededError(
                    limit, f"tool calls of {agent.name} did not settle: " + "; ".join(calls)
                )
            span.set_attribute(ATTR_TOOL_DEPTH, depth)
            history.append(CanonicalMessage.assistant(completion.text, completion.tool_calls))
            for call in completion.tool_calls:
                target = targets.get(call.name)
                if target is None:
                    raise AgentNotFoundError(call.name)
                entry = f"Depth {depth}: called tool {target} with args {call.arguments}"
                calls.append(entry)
                ctx.log(entry)
                history.append(
                    CanonicalMessage.tool(call.id, await _call_tool(engine, ctx, target, call.arguments))
                )
            completion = await ctx.backend.complete(request())
        span.set_attribute(ATTR_TOOL_COUNT, len(calls))
    return completion.text


async def _call_tool(engine: Engine, ctx: RunContext, name: str, arguments: dict[str, Any]) -> str:
    result = await engine.call_agent(ctx, name, arguments)
    if isinstance(result.error, AgenciaError):
        raise result.error
    if result.error is not None:
        raise AgenciaError(str(result.error)) from result.error
    output = result.output
    if has_markup(output):
        listener = ctx.registry.lookup(name)
        output = await TemplateContext(engine, ctx, listener, dump_yaml(arguments), arguments).render(
            output
        )
    return output
