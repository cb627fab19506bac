"""The ``util`` library — small native agents available to every spec."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agencia.core.engine.templating import dump_yaml
from agencia.core.registry.registry import Library
from agencia.core.spec.models import Agent, FunctionAction

if TYPE_CHECKING:
    from agencia.core.engine.context import RunContext


def show_inputs(ctx: RunContext, inputs: dict[str, Any], agent: Agent) -> str:
    """Echo the input map as YAML."""
    ctx.log("%s received %d input(s)", agent.name, len(inputs))
    return dump_yaml(inputs)


def echo(ctx: RunContext, inputs: dict[str, Any], agent: Agent) -> str:
    """Echo the raw input text."""
    if ctx.card is not None:
        return ctx.card.input
    return str(inputs.get("input", ""))


UTIL_LIBRARY = Library(
    "util",
    [
        Agent(
            name="show_inputs",
            description="Show the inputs this agent was called with, as YAML.",
            action=FunctionAction(fn=show_inputs, ref="agencia.lib.util:show_inputs"),
        ),
        Agent(
            name="echo",
            description="Repeat the input text unchanged.",
            action=FunctionAction(fn=echo, ref="agencia.lib.util:echo"),
        ),
    ],
)
