"""Tests for structured answer cleaning and parsing."""

from __future__ import annotations

import pytest

from agencia.core.engine.extraction import clean_answer, facts_prompt, inputs_prompt, parse_mapping
from agencia.core.spec.models import Agent, Argument, Fact, PromptAction
from agencia.errors import BackendError


class TestCleanAnswer:
    def test_plain(self) -> None:
        assert clean_answer("  city: Paris \n") == "city: Paris"

    def test_fenced_with_language(self) -> None:
        assert clean_answer("Sure:\n```yaml\ncity: Paris\n```\nthanks") == "city: Paris"

    def test_fenced_without_language(self) -> None:
        assert clean_answer("```\na: 1\n```") == "a: 1"

    def test_error_prefix(self) -> None:
        with pytest.raises(BackendError, match="AI error: ERROR: unclear"):
            clean_answer("ERROR: unclear")


class TestParseMapping:
    def test_mapping(self) -> None:
        assert parse_mapping("a: 1\nb: [x]") == {"a": 1, "b": ["x"]}

    def test_empty(self) -> None:
        assert parse_mapping("") == {}

    def test_scalar_rejected(self) -> None:
        with pytest.raises(ValueError, match="not a YAML mapping"):
            parse_mapping("just words")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="not valid YAML"):
            parse_mapping("a: [")


class TestPrompts:
    def test_inputs_prompt(self) -> None:
        agent = Agent(
            name="weather",
            action=PromptAction(text="p"),
            inputs={"city": Argument(description="City.", required=True)},
        )
        prompt = inputs_prompt(agent, "rain in Oslo?")
        assert prompt.startswith("Fill out the following YAML fields based on the input.")
        assert "Input:\nrain in Oslo?\n\nFields:\ncity: City. (type: string, required)\n" in prompt
        assert "Respond ONLY with a valid YAML object" in prompt

    def test_facts_prompt_uses_prior_value(self) -> None:
        agent = Agent(
            name="profile",
            action=PromptAction(text="p"),
            facts={"age": Fact(description="Age.", type="int"), "pet": Fact(description="Pet.")},
        )
        prompt = facts_prompt(agent, "hi", "hello", {"pet": "cat"})
        assert "age: Age. (type: int, global) (old: 0)" in prompt
        assert "pet: Pet. (type: string, global) (old: cat)" in prompt
        assert "leave the field blank" in prompt
