"""Tests for the spec linter."""

from __future__ import annotations

from agencia.core.lint.linter import find_cycle, lint
from agencia.core.lint.references import scan_references
from agencia.core.lint.schema import schema_errors


def _errors(doc: str) -> list[str]:
    return lint(doc).errors


def _warnings(doc: str) -> list[str]:
    return lint(doc).warnings


# ---------------------------------------------------------------------------
# Parse and structure
# ---------------------------------------------------------------------------


class TestStructure:
    def test_valid_spec(self) -> None:
        result = lint(
            "agents:\n"
            "  main:\n"
            '    template: "{{ Get(\'helper\') }}"\n'
            "  helper:\n"
            "    description: Helps.\n"
            "    template: help\n"
        )
        assert result.valid
        assert result.errors == []
        assert result.summary == "Linting complete. Found 0 error(s), 1 warning(s)."
        assert result.warnings == [
            "Reminder: Agent 'main' is defined but never used. Ignore if starting agent."
        ]

    def test_parse_failure_is_single_error(self) -> None:
        result = lint("not: [valid\n")
        assert not result.valid
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Problem: YAML parsing error")

    def test_non_utf8_bytes_are_invalid(self) -> None:
        result = lint(b'agents:\n  a:\n    template: "\xff\xfe"\n')
        assert not result.valid
        assert len(result.errors) == 1
        assert "not valid UTF-8" in result.errors[0]

    def test_missing_agents_section(self) -> None:
        [error] = _errors("other: 1\n")
        assert "'agents' section is missing" in error

    def test_missing_action(self) -> None:
        errors = _errors("agents:\n  a:\n    description: nothing\n")
        assert errors == [
            "Problem: Line 2: Agent 'a' missing an action: one of prompt, template, alias, "
            "or function."
        ]

    def test_multiple_actions(self) -> None:
        [error] = _errors("agents:\n  a:\n    prompt: p\n    template: t\n")
        assert "defines multiple action types: prompt, template" in error
        assert error.startswith("Problem: Line 2:")

    def test_non_mapping_agent(self) -> None:
        errors = _errors("agents:\n  a: text\n")
        assert errors == ["Problem: Line 2: Agent 'a' must be a mapping of fields."]

    def test_duplicate_names(self) -> None:
        errors = _errors("agents:\n  a:\n    template: x\n  a:\n    template: y\n")
        assert errors == [
            "Problem: Duplicate agent name 'a' found at line 4 (previously defined at line 2). "
            "Agent names must be unique."
        ]

    def test_library_name_warning(self) -> None:
        warnings = _warnings("agents:\n  util.x:\n    template: t\n  a:\n    template: t\n")
        assert any("contains '.'" in w for w in warnings)

    def test_report(self) -> None:
        report = lint("agents:\n  a:\n    description: nothing\n").report()
        assert report.startswith("Error: Problem: Line 2")
        assert report.endswith("The spec is invalid.\n")


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


class TestReferences:
    def test_undefined_reference(self) -> None:
        errors = _errors("agents:\n  a:\n    template: \"{{ Get('ghost') }}\"\n")
        assert errors == [
            "Problem: Line 3: Agent 'a' references undefined agent 'ghost' via Get. "
            "Please ensure all referenced agents exist."
        ]

    def test_self_reference(self) -> None:
        [error] = _errors("agents:\n  a:\n    prompt: \"{{ Start('a') }}\"\n")
        assert "references itself via Start" in error

    def test_library_reference_allowed(self) -> None:
        result = lint("agents:\n  a:\n    template: \"{{ Get('util.echo') }}\"\n")
        assert result.valid

    def test_reference_counts_as_use(self) -> None:
        warnings = _warnings(
            "agents:\n"
            "  a:\n"
            "    template: \"{{ Get('b') }}\"\n"
            "  b:\n"
            "    description: B.\n"
            "    template: b\n"
        )
        assert not any("'b' is defined but never used" in w for w in warnings)

    def test_missing_description_on_used_agent(self) -> None:
        warnings = _warnings(
            "agents:\n  a:\n    template: \"{{ Get('b') }}\"\n  b:\n    template: b\n"
        )
        assert (
            "Reminder: Line 4: Agent 'b' is missing a description. Consider adding a "
            "description to clarify the agent's purpose."
        ) in warnings

    def test_invalid_template(self) -> None:
        [error] = _errors("agents:\n  a:\n    template: \"{{ Get('b' }}\"\n")
        assert "is not a valid template" in error
        assert error.startswith("Problem: Line 3:")

    def test_comment_is_not_reference(self) -> None:
        assert scan_references("{# Get('ghost') #} plain") == []

    def test_scan_order_and_lines(self) -> None:
        refs = scan_references("{{ Get('a') }}\n{{ Start(\"b\") }}\n{{ Get(name) }}")
        assert [(r.helper, r.target, r.lineno) for r in refs] == [
            ("Get", "a", 1),
            ("Start", "b", 2),
        ]


# ---------------------------------------------------------------------------
# Aliases, listeners, inputs, facts, jobs
# ---------------------------------------------------------------------------


class TestFields:
    def test_alias_to_self(self) -> None:
        [error] = _errors("agents:\n  a:\n    alias: a\n")
        assert "alias that references itself" in error

    def test_alias_to_undefined(self) -> None:
        [error] = _errors("agents:\n  a:\n    alias: ghost\n")
        assert "alias of undefined agent 'ghost'" in error

    def test_unknown_listener(self) -> None:
        errors = _errors(
            "agents:\n"
            "  a:\n"
            "    prompt: p\n"
            "    inputs:\n"
            "      q:\n"
            "        description: Q.\n"
            "    listeners:\n"
            "      - ghost\n"
        )
        assert errors == [
            "Problem: Line 8: Agent 'a' declares unknown listener 'ghost'. Please ensure all "
            "listeners refer to defined agents."
        ]

    def test_listener_without_description_or_inputs(self) -> None:
        errors = _errors(
            "agents:\n"
            "  a:\n"
            "    prompt: p\n"
            "    inputs:\n"
            "      q:\n"
            "        description: Q.\n"
            "    listeners: [tool]\n"
            "  tool:\n"
            "    template: t\n"
        )
        assert errors == [
            "Problem: Line 8: Agent 'tool' is used as a listener but is missing description "
            "or inputs, making it invalid as a listener."
        ]

    def test_listeners_without_inputs_warns(self) -> None:
        warnings = _warnings(
            "agents:\n"
            "  a:\n"
            "    prompt: p\n"
            "    listeners: [tool]\n"
            "  tool:\n"
            "    description: T.\n"
            "    template: t\n"
            "    inputs:\n"
            "      x:\n"
            "        description: X.\n"
        )
        assert any("declares listeners but has no inputs" in w for w in warnings)

    def test_template_with_listeners_warns(self) -> None:
        warnings = _warnings("agents:\n  a:\n    template: t\n    listeners: []\n")
        assert any("is a template, so its listeners are never called" in w for w in warnings)

    def test_input_missing_description(self) -> None:
        errors = _errors("agents:\n  a:\n    prompt: p\n    inputs:\n      q:\n        type: string\n")
        assert errors == [
            "Problem: Line 5: Agent 'a' has an input 'q' missing a required 'description' field."
        ]

    def test_fact_missing_description(self) -> None:
        [error] = _errors("agents:\n  a:\n    prompt: p\n    facts:\n      f:\n        type: string\n")
        assert "has a fact 'f' missing a required 'description' field" in error

    def test_invalid_fact_scope(self) -> None:
        errors = _errors(
            "agents:\n"
            "  a:\n"
            "    prompt: p\n"
            "    facts:\n"
            "      f:\n"
            "        description: F.\n"
            "        scope: team\n"
        )
        assert errors == [
            "Problem: Line 7: Agent 'a' has a fact with invalid scope 'team'. Only 'global' "
            "and 'local' are allowed."
        ]

    def test_job_unknown_step(self) -> None:
        [error] = _errors("agents:\n  a:\n    template: t\n    job: [ghost]\n")
        assert "job step 'ghost'" in error


# ---------------------------------------------------------------------------
# Cycles and schema
# ---------------------------------------------------------------------------


class TestCycles:
    def test_two_agent_cycle(self) -> None:
        errors = _errors(
            "agents:\n"
            "  a:\n"
            "    description: A.\n"
            "    template: \"{{ Get('b') }}\"\n"
            "  b:\n"
            "    description: B.\n"
            "    template: \"{{ Get('a') }}\"\n"
        )
        assert errors == ["Problem: Circular reference detected among agents: a -> b -> a"]

    def test_alias_cycle(self) -> None:
        errors = _errors("agents:\n  a:\n    alias: b\n  b:\n    alias: a\n")
        assert errors == ["Problem: Circular reference detected among agents: a -> b -> a"]

    def test_find_cycle(self) -> None:
        assert find_cycle({"a": ["b"], "b": ["c"], "c": ["b"]}) == ["b", "c", "b"]
        assert find_cycle({"a": ["b"], "b": []}) is None
        assert find_cycle({}) is None


class TestSchema:
    def test_unknown_field(self) -> None:
        errors = _errors("agents:\n  a:\n    template: t\n    colour: red\n")
        assert len(errors) == 1
        assert errors[0].startswith("Problem: The spec is invalid at /agents/a:")
        assert "colour" in errors[0]

    def test_bad_function_path(self) -> None:
        [error] = _errors("agents:\n  a:\n    function: not a path\n")
        assert error.startswith("Problem: The spec is invalid at /agents/a/function:")

    def test_schema_errors_direct(self) -> None:
        assert schema_errors({"agents": {"a": {"template": "t"}}}) == []
        [error] = schema_errors({})
        assert "'agents' is a required property" in error

    def test_schema_skipped_when_other_errors(self) -> None:
        errors = _errors("agents:\n  a:\n    description: d\n    colour: red\n")
        assert len(errors) == 1
        assert "missing an action" in errors[0]
