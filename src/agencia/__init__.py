"""Agencia — declarative agent graphs executed against an AI backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from agencia.core.engine.engine import Engine as Engine
    from agencia.core.engine.engine import RunResult as RunResult
    from agencia.core.lint.linter import lint as lint
    from agencia.core.registry.registry import load_registry as load_registry
    from agencia.core.session.chat import Chat as Chat

_EXPORTS = {
    "Engine": "agencia.core.engine.engine",
    "RunResult": "agencia.core.engine.engine",
    "lint": "agencia.core.lint.linter",
    "load_registry": "agencia.core.registry.registry",
    "Chat": "agencia.core.session.chat",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'agencia' has no attribute {name!r}")
