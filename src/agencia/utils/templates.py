"""Jinja2 environment shared by the engine, the linter, and the mock backend."""

from __future__ import annotations

from jinja2 import Environment


def truncate_text(text: object, length: int) -> str:
    """Cut *text* to at most *length* characters, without an ellipsis."""
    value = str(text)
    return value if len(value) <= length else value[:length]


def build_environment(*, enable_async: bool = False) -> Environment:
    """Return a plain-text Jinja2 environment.

    Async environments auto-await coroutine results, so async template
    helpers such as ``Get`` can be called directly from template text.
    """
    env = Environment(
        autoescape=False,
        enable_async=enable_async,
        keep_trailing_newline=False,
    )
    env.filters["truncate_text"] = truncate_text
    return env
