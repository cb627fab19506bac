"""Agent registry — name resolution over local agents and read-only libraries.

A :class:`Registry` maps unqualified names to the agents of one spec and
qualified names (``"lib.agent"``) to the agents of a fixed set of
:class:`Library` namespaces.  Once built it is only read, so a single
registry may serve any number of concurrent runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from agencia.core.lint.linter import lint
from agencia.core.spec.loader import parse
from agencia.core.spec.models import Agent, SpecModel
from agencia.errors import (
    AgentNotFoundError,
    InvalidAgentDefinitionError,
    SpecParseError,
    SpecValidationError,
)

logger = logging.getLogger(__name__)


class Library(Mapping[str, Agent]):
    """A read-only namespace of pre-built agents, addressed as ``"<name>.<agent>"``."""

    def __init__(self, name: str, agents: Iterable[Agent]) -> None:
        self.name = name
        self._agents: Mapping[str, Agent] = MappingProxyType({a.name: a for a in agents})

    def __getitem__(self, key: str) -> Agent:
        return self._agents[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)


def default_libraries() -> dict[str, Library]:
    """Return the built-in libraries."""
    from agencia.lib import UTIL_LIBRARY

    return {UTIL_LIBRARY.name: UTIL_LIBRARY}


class Registry:
    """Resolved mapping from agent name to :class:`Agent`.

    Usage::

        registry = load_registry(Path("agents.yaml"))
        agent = registry.lookup("greet")
        tool = registry.lookup("util.show_inputs")
    """

    def __init__(
        self,
        agents: Iterable[Agent] = (),
        *,
        libraries: Mapping[str, Library] | None = None,
    ) -> None:
        self._agents: dict[str, Agent] = {}
        self.libraries: Mapping[str, Library] = MappingProxyType(
            dict(libraries) if libraries is not None else default_libraries()
        )
        for agent in agents:
            self.register(agent)

    def register(self, agent: Agent) -> None:
        """Add or replace a local agent."""
        self._agents[agent.name] = agent

    @property
    def agents(self) -> Mapping[str, Agent]:
        return MappingProxyType(self._agents)

    def lookup(self, name: str) -> Agent:
        """Resolve an unqualified or library-qualified agent name.

        Raises:
            AgentNotFoundError: If no such agent exists.
        """
        if "." not in name:
            agent = self._agents.get(name)
            if agent is None:
                raise AgentNotFoundError(name)
            return agent

        library_name, _, agent_name = name.partition(".")
        library = self.libraries.get(library_name)
        if library is None or agent_name not in library:
            raise AgentNotFoundError(name)
        return library[agent_name]

    def has(self, name: str) -> bool:
        try:
            self.lookup(name)
        except AgentNotFoundError:
            return False
        return True

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        return len(self._agents)


def build_registry(
    spec: SpecModel, *, libraries: Mapping[str, Library] | None = None
) -> Registry:
    """Convert parsed entries into a :class:`Registry`, without linting.

    Raises:
        InvalidAgentDefinitionError: If any entry does not define exactly
            one action, or no agents are defined.
    """
    agents = [Agent.from_entry(e) for e in spec.agents.values() if not e.is_library_name]
    if not agents:
        raise InvalidAgentDefinitionError("no agents defined")
    return Registry(agents, libraries=libraries)


def load_registry(
    source: Path | bytes | str,
    *,
    libraries: Mapping[str, Library] | None = None,
    check: bool = True,
) -> Registry:
    """Lint, parse, and register a spec from a path or document text.

    Lint warnings are logged; lint errors raise :class:`SpecValidationError`
    unless *check* is ``False``.

    Raises:
        SpecParseError: If the document cannot be read or parsed.
        SpecValidationError: If *check* is set and the linter reports errors.
        InvalidAgentDefinitionError: If an agent cannot be built.
    """
    if isinstance(source, Path):
        try:
            document: bytes | str = source.read_bytes()
        except OSError as exc:
            raise SpecParseError(f"cannot read agent file {source}: {exc}") from exc
    else:
        document = source

    if check:
        result = lint(document)
        for warning in result.warnings:
            logger.warning(warning)
        if not result.valid:
            raise SpecValidationError(result)

    return build_registry(parse(document), libraries=libraries)
