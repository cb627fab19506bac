"""Agent registry and libraries."""

from agencia.core.registry.registry import (
    Library,
    Registry,
    build_registry,
    default_libraries,
    load_registry,
)

__all__ = ["Library", "Registry", "build_registry", "default_libraries", "load_registry"]
