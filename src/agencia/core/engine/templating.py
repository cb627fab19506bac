"""Template context — the helpers available to prompt and template text.

Templates are Jinja2, rendered in async mode so ``Get`` can run a nested
agent call in place::

    {{ Get("weather", Input("city")) }}
    {% if Fact("profile.name") %}Welcome back {{ Fact("profile.name") }}{% endif %}
    {{ Start("checkout") }}

``Input`` and ``Inputs`` also render on their own: ``{{ Input }}`` is the
raw caller input and ``{{ Inputs }}`` the extracted input map as YAML.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import yaml
from jinja2 import TemplateError

from agencia.errors import AgenciaError, AgentNotFoundError, TemplateRenderError
from agencia.utils.templates import build_environment

if TYPE_CHECKING:
    from agencia.core.engine.context import RunContext
    from agencia.core.engine.engine import Engine
    from agencia.core.spec.models import Agent

_env = build_environment(enable_async=True)


def dump_yaml(data: Mapping[str, Any]) -> str:
    """Serialise a mapping for inclusion in a prompt."""
    if not data:
        return ""
    return yaml.safe_dump(dict(data), sort_keys=False, allow_unicode=True).strip()


def has_markup(text: str) -> bool:
    return "{{" in text or "{%" in text


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class InputHelper(str):
    """``Input``: the raw input, or one extracted field.

    The helper is the raw input text itself, so it renders, compares and
    tests for truth like that text; calling it reads an extracted field.
    """

    _inputs: Mapping[str, Any]

    def __new__(cls, raw: str, inputs: Mapping[str, Any]) -> InputHelper:
        helper = super().__new__(cls, raw)
        helper._inputs = inputs
        return helper

    def __call__(self, key: str | None = None, default: Any = None) -> Any:
        if key is None:
            return str(self)
        value = self._inputs.get(key)
        if _is_empty(value):
            return default if default is not None else ""
        return value


class InputsHelper(str):
    """``Inputs``: the extracted input map as YAML, or another agent's input schema."""

    _context: TemplateContext

    def __new__(cls, context: TemplateContext) -> InputsHelper:
        helper = super().__new__(cls, dump_yaml(context.inputs))
        helper._context = context
        return helper

    def __call__(self, agent_name: str | None = None) -> str:
        if agent_name is None:
            return str(self)
        try:
            agent = self._context.ctx.registry.lookup(agent_name)
        except AgentNotFoundError as exc:
            return f"[error reading inputs of {agent_name}: {exc}]"
        return dump_yaml({name: arg.model_dump() for name, arg in agent.inputs.items()})


class TemplateContext:
    """Binds the template helpers to one agent call."""

    def __init__(
        self,
        engine: Engine,
        ctx: RunContext,
        agent: Agent,
        raw_input: str,
        inputs: Mapping[str, Any],
    ) -> None:
        self.engine = engine
        self.ctx = ctx
        self.agent = agent
        self.raw_input = raw_input
        self.inputs = inputs

    async def get(self, name: str, input: Any = None) -> str:
        """``Get``: call another agent; failures render as inline text."""
        result = await self.engine.call_agent(
            self.ctx, name, self.raw_input if input is None else input
        )
        if result.error is not None:
            return f"[error calling {name}: {result.error}]"
        return result.output

    def start(self, name: str) -> str:
        """``Start``: hand the session over to another agent for the next turn."""
        if not self.ctx.registry.has(name):
            return f"[error starting {name}: could not find agent: {name}]"
        session = self.ctx.session
        if session is None:
            return f"[error starting {name}: no active session]"
        session.start_agent = name
        self.ctx.log("start agent set to %s", name)
        return f"[started {name}]"

    def fact(self, name: str, default: Any = None) -> Any:
        """``Fact``: a remembered fact, by ``"agent.fact"`` or this agent's fact name."""
        keys = [name] if "." in name else [name, f"{self.agent.name}.{name}"]
        session = self.ctx.session
        for key in keys:
            if session is not None and key in session.facts:
                return session.facts[key]
            if key in self.ctx.local_facts:
                return self.ctx.local_facts[key]
        return default

    def variables(self) -> dict[str, Any]:
        """Names visible to the template; helpers shadow same-named input fields."""
        return {
            **{k: v for k, v in self.inputs.items() if isinstance(k, str)},
            "agent": self.agent.name,
            "Get": self.get,
            "Start": self.start,
            "Input": InputHelper(self.raw_input, self.inputs),
            "Inputs": InputsHelper(self),
            "Fact": self.fact,
        }

    async def render(self, text: str) -> str:
        """Render *text* and strip surrounding whitespace.

        Raises:
            TemplateRenderError: If the text fails to parse, or an expression
                fails while rendering.
        """
        try:
            template = _env.from_string(text)
            rendered = await template.render_async(**self.variables())
        except AgenciaError:
            raise
        except TemplateError as exc:
            raise TemplateRenderError(self.agent.name, str(exc)) from exc
        except Exception as exc:  # runtime failures inside template expressions
            raise TemplateRenderError(self.agent.name, f"{type(exc).__name__}: {exc}") from exc
        return rendered.strip()
