"""Trace cards — the per-run execution record tree.

Each agent call gets a :class:`TraceCard`.  A card owns its branch cards
(nested calls) and holds only a weak reference to the card that called
it, so the tree has a single owner: whoever holds the root.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path  # noqa: TC003
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class LogMessage:
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(eq=False)
class TraceCard:
    """One agent invocation."""

    agent: str
    input: str
    inputs: dict[str, Any] = field(default_factory=dict)
    prompt: str = ""
    output: str = ""
    error: Exception | None = None
    ran: bool = False
    branches: list[TraceCard] = field(default_factory=list)
    logs: list[LogMessage] = field(default_factory=list)
    facts: dict[str, Any] = field(default_factory=dict)
    local_facts: dict[str, Any] = field(default_factory=dict)
    parent_ref: weakref.ReferenceType[TraceCard] | None = field(default=None, repr=False)

    @property
    def parent(self) -> TraceCard | None:
        """The calling card, or ``None`` for the root."""
        return self.parent_ref() if self.parent_ref is not None else None

    def add_branch(self, agent: str, input: str) -> TraceCard:
        """Create, attach and return a child card for a nested call."""
        card = TraceCard(agent=agent, input=input, parent_ref=weakref.ref(self))
        self.branches.append(card)
        return card

    def log(self, message: str) -> None:
        self.logs.append(LogMessage(message))

    def walk(self) -> Iterator[TraceCard]:
        """Yield this card and every descendant, depth first."""
        yield self
        for branch in self.branches:
            yield from branch.walk()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def describe(self) -> str:
        """Full plain-text description of this card (branches excluded)."""
        lines = [
            f"Agent: {self.agent}",
            f'Input: "{self.input}"',
            f'Output: "{self.output}"',
        ]
        if self.prompt:
            lines.append(f"Prompt: {self.prompt!r}")
        lines.append("agent ran" if self.ran else "did not run")
        lines.append(f"Error: {self.error}" if self.error else "no error")
        lines.append(f"Inputs: {_format_map(self.inputs)}")
        lines.append(f"Facts: {_format_map(self.facts)}")
        lines.append(f"LocalFacts: {_format_map(self.local_facts)}")
        if not self.logs:
            lines.append("no logs")
        else:
            lines.append("Logs:")
            lines.extend(f"  {log.timestamp.isoformat()}: {log.message}" for log in self.logs)
        return "\n".join(lines)

    def describe_short(self) -> str:
        parent = self.parent
        return "\n".join(
            [
                f"Agent: {self.agent}",
                f"From: {parent.agent if parent else 'none'}",
                f'Input: "{self.input}"',
                f'Output: "{self.output}"',
                f"Error: {self.error}" if self.error else "no error",
            ]
        )

    def to_markdown(self, *, short: bool = False) -> str:
        """Render the tree rooted at this card as Markdown."""
        parts: list[str] = []
        if short:
            self._markdown_short(parts, index=1, level=1)
        else:
            parts.append(f"# Agent Trace: {self.agent}\n")
            self._markdown_full(parts, index=1, level=1)
        return "".join(parts)

    def save_markdown(self, path: Path, *, short: bool = False) -> None:
        logger.info("Saving trace to %s", path)
        path.write_text(self.to_markdown(short=short), encoding="utf-8")

    def _markdown_full(self, parts: list[str], index: int, level: int) -> None:
        parent = self.parent
        origin = f" From: {parent.agent}" if level > 1 and parent else ""
        parts.append(f"\n## {level}.{index}: {self.agent}{origin}\n")
        parts.append(f"\n```\n{self.describe()}\n```\n")
        for i, branch in enumerate(self.branches, start=1):
            branch._markdown_full(parts, i, level + 1)

    def _markdown_short(self, parts: list[str], index: int, level: int) -> None:
        parts.append(f"\n```\nLevel: {level}.{index}\n{self.describe_short()}\n```\n")
        for i, branch in enumerate(self.branches, start=1):
            branch._markdown_short(parts, i, level + 1)


def _format_map(values: dict[str, Any]) -> str:
    if not values:
        return "none"
    return ", ".join(f"{k}={v!r}" for k, v in values.items())
