"""Chat sessions."""

from agencia.core.session.chat import Chat, SessionStore

__all__ = ["Chat", "SessionStore"]
