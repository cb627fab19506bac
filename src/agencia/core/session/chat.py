"""Chat sessions — per-conversation start agent and fact memory.

A :class:`Chat` is never shared between conversations.  Servers keep one
per connection in a :class:`SessionStore` and pass it explicitly to
:meth:`~agencia.core.engine.engine.Engine.run`.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agencia.core.engine.trace import TraceCard


class Chat:
    """Mutable state of one multi-turn conversation.

    ``lock`` serialises turns: the engine holds it for the duration of a
    run, so one session never has two calls in flight.
    """

    def __init__(self, start_agent: str, *, session_id: str | None = None) -> None:
        self.id = session_id or uuid4().hex
        self.start_agent = start_agent
        self.facts: dict[str, Any] = {}
        self.tagged_facts: dict[str, list[str]] = {}
        self.cards: list[TraceCard] = []
        self.lock = asyncio.Lock()

    def set_fact(self, key: str, value: Any, tags: Iterable[str] = ()) -> None:
        """Store a global fact under ``"agent.fact"`` and index it by tag."""
        self.facts[key] = value
        for tag in tags:
            keys = self.tagged_facts.setdefault(tag, [])
            if key not in keys:
                keys.append(key)

    def get_fact(self, key: str, default: Any = None) -> Any:
        return self.facts.get(key, default)

    def facts_tagged(self, tag: str) -> dict[str, Any]:
        """Return the facts indexed under *tag*."""
        return {key: self.facts[key] for key in self.tagged_facts.get(tag, []) if key in self.facts}


class SessionStore:
    """Session ID to :class:`Chat` map for servers handling many conversations."""

    def __init__(self) -> None:
        self._sessions: dict[str, Chat] = {}

    def create(self, start_agent: str, session_id: str | None = None) -> Chat:
        chat = Chat(start_agent, session_id=session_id)
        self._sessions[chat.id] = chat
        return chat

    def get(self, session_id: str) -> Chat | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str, start_agent: str) -> Chat:
        """Return the session, creating it with *start_agent* if it is new."""
        chat = self._sessions.get(session_id)
        if chat is None:
            chat = self.create(start_agent, session_id=session_id)
        return chat

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
