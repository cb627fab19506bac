"""Template reference scanner.

Finds ``Get("name")`` and ``Start("name")`` calls in prompt and template
text by walking the Jinja2 syntax tree, so references inside comments or
string literals are not mistaken for calls.  Names built at render time
(``Get(prefix ~ "x")``) are not constant and are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass

from jinja2 import nodes

from agencia.utils.templates import build_environment

REFERENCE_HELPERS = ("Get", "Start")

_env = build_environment()


@dataclass(frozen=True)
class Reference:
    """One helper call with a constant agent name."""

    helper: str
    target: str
    lineno: int


def scan_references(text: str) -> list[Reference]:
    """Return every constant ``Get``/``Start`` reference in *text*, in source order.

    Raises:
        jinja2.TemplateSyntaxError: If *text* is not a valid template.
    """
    tree = _env.parse(text)
    refs: list[Reference] = []
    for call in tree.find_all(nodes.Call):
        callee = call.node
        if not isinstance(callee, nodes.Name) or callee.name not in REFERENCE_HELPERS:
            continue
        if not call.args:
            continue
        first = call.args[0]
        if isinstance(first, nodes.Const) and isinstance(first.value, str):
            refs.append(Reference(helper=callee.name, target=first.value, lineno=call.lineno))
    return refs
