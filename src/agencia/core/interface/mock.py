"""MockBackend — canned, template-rendered completions keyed by agent name.

A mock file looks like::

    responses:
      greet: "Hello from the mock! You said: {{ prompt }}"
      greet.inputs: |
        name: Alice
      planner:
        - tool_calls:
            - name: lookup
              arguments: {query: weather}
        - "Done: {{ results | join(', ') }}"

Plain values are Jinja2 templates rendered with ``agent``, ``prompt``,
``purpose``, ``tools`` (tool names) and ``results`` (tool results fed
back so far).  A list is a script: each call for that key takes the next
turn, and the last turn repeats.  Extraction calls use the keys
``"<agent>.inputs"`` and ``"<agent>.facts"``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path  # noqa: TC003
from typing import Any

import yaml
from jinja2 import TemplateError

from agencia.core.interface.backend import Backend  # noqa: TC001
from agencia.core.interface.models import Completion, CompletionRequest, ToolCall
from agencia.errors import BackendError
from agencia.utils.templates import build_environment


class MockBackend:
    """Deterministic :class:`Backend` for tests and offline runs."""

    def __init__(
        self,
        responses: Mapping[str, Any],
        *,
        fallback: Backend | None = None,
    ) -> None:
        self.responses: dict[str, Any] = dict(responses)
        self.fallback = fallback
        self.calls: list[CompletionRequest] = []
        self._turns: dict[str, int] = {}
        self._env = build_environment()

    @classmethod
    def from_yaml(cls, raw: str, *, fallback: Backend | None = None) -> MockBackend:
        """Build a mock from YAML text with a top-level ``responses`` mapping.

        Raises:
            BackendError: If the YAML is invalid or has no ``responses`` mapping.
        """
        try:
            data: Any = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise BackendError(f"invalid YAML in mock file: {exc}") from exc
        responses = data.get("responses") if isinstance(data, dict) else None
        if not isinstance(responses, dict):
            raise BackendError("mock file must contain a 'responses' mapping")
        return cls({str(k): v for k, v in responses.items()}, fallback=fallback)

    @classmethod
    def from_file(cls, path: Path, *, fallback: Backend | None = None) -> MockBackend:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise BackendError(f"cannot read mock file {path}: {exc}") from exc
        return cls.from_yaml(raw, fallback=fallback)

    def count(self, agent: str, purpose: str = "prompt") -> int:
        """Number of calls recorded for *agent* with the given purpose."""
        return sum(1 for c in self.calls if c.agent == agent and c.purpose == purpose)

    async def complete(self, request: CompletionRequest) -> Completion:
        self.calls.append(request)
        key = request.agent if request.purpose == "prompt" else f"{request.agent}.{request.purpose}"

        if key not in self.responses:
            if self.fallback is not None:
                return await self.fallback.complete(request)
            raise BackendError(f"no mock response for '{key}'")

        entry = self.responses[key]
        if isinstance(entry, list):
            if not entry:
                raise BackendError(f"mock script for '{key}' is empty")
            turn = self._turns.get(key, 0)
            self._turns[key] = turn + 1
            entry = entry[min(turn, len(entry) - 1)]

        return self._render(key, entry, request)

    def _render(self, key: str, entry: Any, request: CompletionRequest) -> Completion:
        tool_calls: list[ToolCall] = []
        if isinstance(entry, dict):
            text = str(entry.get("text") or "")
            tool_calls = _tool_calls(key, entry.get("tool_calls"))
        else:
            text = "" if entry is None else str(entry)

        try:
            rendered = self._env.from_string(text).render(
                agent=request.agent,
                prompt=request.prompt,
                purpose=request.purpose,
                tools=[tool.name for tool in request.tools],
                results=[m.text for m in request.history if m.role == "tool"],
            )
        except TemplateError as exc:
            raise BackendError(f"error executing mock template for '{key}': {exc}") from exc

        return Completion(text=rendered.strip(), tool_calls=tool_calls, metadata={"mock": True})


def _tool_calls(key: str, raw: Any) -> list[ToolCall]:
    """Read the scripted ``tool_calls`` of one mock turn.

    Raises:
        BackendError: If an entry is not a mapping with a ``name`` and
            mapping ``arguments``.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise BackendError(f"invalid tool call in mock response for '{key}': expected a list")
    calls: list[ToolCall] = []
    for call in raw:
        if not isinstance(call, dict) or not call.get("name"):
            raise BackendError(
                f"invalid tool call in mock response for '{key}': missing 'name' in {call!r}"
            )
        arguments = call.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise BackendError(
                f"invalid tool call in mock response for '{key}': "
                f"arguments of {call['name']} must be a mapping"
            )
        calls.append(ToolCall(name=str(call["name"]), arguments=arguments))
    return calls
