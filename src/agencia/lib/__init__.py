"""Built-in agent libraries."""

from agencia.lib.util import UTIL_LIBRARY

__all__ = ["UTIL_LIBRARY"]
