"""Spec linter — static analysis of an agent spec document.

The linter never raises.  It parses the document, runs the structural,
referential and cycle passes, and only when those are clean checks the
document against :data:`~agencia.core.lint.schema.SPEC_SCHEMA`.

Usage::

    result = lint(Path("agents.yaml").read_bytes())
    if not result.valid:
        print(result.report())
"""

from __future__ import annotations

import logging
from typing import Any

from jinja2 import TemplateSyntaxError

from agencia.core.lint.models import LintResult
from agencia.core.lint.references import scan_references
from agencia.core.lint.schema import schema_errors
from agencia.core.spec.loader import parse
from agencia.core.spec.models import AgentEntry, SpecModel
from agencia.errors import SpecParseError

logger = logging.getLogger(__name__)


def lint(document: bytes | str) -> LintResult:
    """Lint a spec document and return its diagnostics."""
    try:
        spec = parse(document)
    except SpecParseError as exc:
        return LintResult(
            errors=[f"Problem: {exc}"],
            summary="Problem: Failed to parse the spec. Spec is invalid.",
        )
    return SpecLinter(spec).run()


def find_cycle(graph: dict[str, list[str]]) -> list[str] | None:
    """Return the first cycle reachable in *graph* as a closed path, or ``None``.

    Iterative depth-first search in insertion order; the returned path
    starts and ends with the repeated node (``["a", "b", "a"]``).
    """
    visited: set[str] = set()
    for start in graph:
        if start in visited:
            continue
        visited.add(start)
        path = [start]
        on_path = {start}
        stack = [iter(graph.get(start, []))]
        while stack:
            neighbour = next(stack[-1], None)
            if neighbour is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if neighbour in on_path:
                return path[path.index(neighbour) :] + [neighbour]
            if neighbour in visited:
                continue
            visited.add(neighbour)
            path.append(neighbour)
            on_path.add(neighbour)
            stack.append(iter(graph.get(neighbour, [])))
    return None


class SpecLinter:
    """Accumulates diagnostics over one parsed :class:`SpecModel`."""

    def __init__(self, spec: SpecModel) -> None:
        self.spec = spec
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.defined: dict[str, AgentEntry] = {
            name: entry for name, entry in spec.agents.items() if not entry.is_library_name
        }
        self.referenced: set[str] = set()
        self.listener_targets: list[str] = []
        self.graph: dict[str, list[str]] = {name: [] for name in self.defined}

    def run(self) -> LintResult:
        self._check_duplicates()
        for entry in self.spec.entries:
            if entry.is_library_name:
                self.warnings.append(
                    f"Reminder: Line {entry.line}: Agent '{entry.name}' contains '.', which is "
                    "reserved for library agents; it cannot be called by that name."
                )
        for name, entry in self.defined.items():
            self._check_agent(name, entry)
        self._check_listener_targets()
        self._check_descriptions()
        self._check_unused()
        self._check_cycles()

        if not self.errors:
            self.errors.extend(schema_errors(self.spec.data))

        summary = (
            f"Linting complete. Found {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )
        logger.debug(summary)
        return LintResult(errors=self.errors, warnings=self.warnings, summary=summary)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _check_duplicates(self) -> None:
        for first, repeated in self.spec.duplicates():
            self.errors.append(
                f"Problem: Duplicate agent name '{repeated.name}' found at line {repeated.line} "
                f"(previously defined at line {first.line}). Agent names must be unique."
            )

    def _check_agent(self, name: str, entry: AgentEntry) -> None:
        if not entry.is_mapping:
            self.errors.append(
                f"Problem: Line {entry.line}: Agent '{name}' must be a mapping of fields."
            )
            return

        actions = entry.actions
        if not actions:
            self.errors.append(
                f"Problem: Line {entry.line}: Agent '{name}' missing an action: "
                "one of prompt, template, alias, or function."
            )
        elif len(actions) > 1:
            self.errors.append(
                f"Problem: Line {entry.line}: Agent '{name}' defines multiple action types: "
                f"{', '.join(actions)}. Please specify only one of: prompt, template, alias, "
                "or function."
            )

        for key in ("prompt", "template"):
            text = entry.body.get(key)
            if isinstance(text, str):
                self._check_references(name, entry, key, text)

        alias = entry.body.get("alias")
        if isinstance(alias, str):
            self._check_alias(name, entry, alias)

        self._check_listeners(name, entry, actions)
        self._check_described(name, entry, "inputs", "an input")
        self._check_described(name, entry, "facts", "a fact")
        self._check_fact_scopes(name, entry)
        self._check_job(name, entry)

    def _check_references(self, name: str, entry: AgentEntry, key: str, text: str) -> None:
        line = entry.line_of(key)
        try:
            refs = scan_references(text)
        except TemplateSyntaxError as exc:
            self.errors.append(
                f"Problem: Line {line}: Agent '{name}' has a {key} that is not a valid "
                f"template (template line {exc.lineno}): {exc.message}"
            )
            return

        for ref in refs:
            if ref.target == name:
                self.errors.append(
                    f"Problem: Line {line}: Agent '{name}' references itself via {ref.helper}. "
                    "This can cause an infinite loop that never returns."
                )
                self.referenced.add(ref.target)
            elif ref.target in self.defined or "." in ref.target:
                self.referenced.add(ref.target)
                self._add_edge(name, ref.target)
            else:
                self.errors.append(
                    f"Problem: Line {line}: Agent '{name}' references undefined agent "
                    f"'{ref.target}' via {ref.helper}. Please ensure all referenced agents exist."
                )

    def _check_alias(self, name: str, entry: AgentEntry, target: str) -> None:
        line = entry.line_of("alias")
        if target == name:
            self.errors.append(
                f"Problem: Line {line}: Agent '{name}' is an alias that references itself. "
                "This creates an infinite loop."
            )
            return
        if target not in self.defined and "." not in target:
            self.errors.append(
                f"Problem: Line {line}: Agent '{name}' is an alias of undefined agent '{target}'."
            )
            return
        self.referenced.add(target)
        self._add_edge(name, target)

    def _check_listeners(self, name: str, entry: AgentEntry, actions: list[str]) -> None:
        listeners = entry.body.get("listeners")
        if listeners is None:
            return
        line = entry.line_of("listeners")
        if "template" in actions:
            self.warnings.append(
                f"Reminder: Line {line}: Agent '{name}' is a template, so its listeners are "
                "never called; templates do not call the AI backend."
            )
        if not entry.body.get("inputs"):
            self.warnings.append(
                f"Reminder: Line {entry.line}: Agent '{name}' declares listeners but has no "
                "inputs defined. Consider adding inputs to clarify expected data."
            )
        for index, listener in enumerate(_as_list(listeners)):
            listener = str(listener)
            if listener not in self.defined and "." not in listener:
                self.errors.append(
                    f"Problem: Line {entry.line_of(f'listeners.{index}')}: Agent '{name}' "
                    f"declares unknown listener '{listener}'. Please ensure all listeners "
                    "refer to defined agents."
                )
                continue
            if listener not in self.listener_targets:
                self.listener_targets.append(listener)
            self._add_edge(name, listener)

    def _check_described(self, name: str, entry: AgentEntry, key: str, label: str) -> None:
        declared = entry.body.get(key)
        if not isinstance(declared, dict):
            return
        for field, spec in declared.items():
            if not isinstance(spec, dict) or not spec.get("description"):
                self.errors.append(
                    f"Problem: Line {entry.line_of(f'{key}.{field}')}: Agent '{name}' has "
                    f"{label} '{field}' missing a required 'description' field."
                )

    def _check_fact_scopes(self, name: str, entry: AgentEntry) -> None:
        facts = entry.body.get("facts")
        if not isinstance(facts, dict):
            return
        for field, spec in facts.items():
            if not isinstance(spec, dict) or "scope" not in spec:
                continue
            if spec["scope"] not in ("global", "local"):
                self.errors.append(
                    f"Problem: Line {entry.line_of(f'facts.{field}.scope')}: Agent '{name}' has "
                    f"a fact with invalid scope '{spec['scope']}'. Only 'global' and 'local' "
                    "are allowed."
                )

    def _check_job(self, name: str, entry: AgentEntry) -> None:
        for index, step in enumerate(_as_list(entry.body.get("job"))):
            step = str(step)
            if step not in self.defined and "." not in step:
                self.errors.append(
                    f"Problem: Line {entry.line_of(f'job.{index}')}: The job step '{step}' in "
                    f"agent '{name}' does not reference a valid agent. Please ensure all job "
                    "steps refer to existing agents."
                )
                continue
            self.referenced.add(step)
            self._add_edge(name, step)

    def _check_listener_targets(self) -> None:
        for target in self.listener_targets:
            entry = self.defined.get(target)
            if entry is None:
                continue
            if not entry.body.get("description") or not entry.body.get("inputs"):
                self.errors.append(
                    f"Problem: Line {entry.line}: Agent '{target}' is used as a listener but is "
                    "missing description or inputs, making it invalid as a listener."
                )

    def _check_descriptions(self) -> None:
        used = self.referenced.difference(self.listener_targets)
        for name, entry in self.defined.items():
            if name in used and entry.is_mapping and not entry.body.get("description"):
                self.warnings.append(
                    f"Reminder: Line {entry.line}: Agent '{name}' is missing a description. "
                    "Consider adding a description to clarify the agent's purpose."
                )

    def _check_unused(self) -> None:
        for name in self.defined:
            if name not in self.referenced and name not in self.listener_targets:
                self.warnings.append(
                    f"Reminder: Agent '{name}' is defined but never used. "
                    "Ignore if starting agent."
                )

    def _check_cycles(self) -> None:
        cycle = find_cycle(self.graph)
        if cycle:
            self.errors.append(
                "Problem: Circular reference detected among agents: " + " -> ".join(cycle)
            )

    def _add_edge(self, source: str, target: str) -> None:
        if target == source or target not in self.defined:
            return
        edges = self.graph[source]
        if target not in edges:
            edges.append(target)


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
