"""Tests for trace cards."""

from __future__ import annotations

import gc
from typing import TYPE_CHECKING

from agencia.core.engine.trace import TraceCard

if TYPE_CHECKING:
    from pathlib import Path


def _tree() -> TraceCard:
    root = TraceCard(agent="main", input="hello")
    child = root.add_branch("helper", "sub input")
    child.output = "helped"
    child.ran = True
    child.add_branch("leaf", "deep")
    root.add_branch("other", "x")
    root.output = "done"
    root.ran = True
    return root


class TestTraceCard:
    def test_branches_and_parent(self) -> None:
        root = _tree()
        helper, other = root.branches
        assert helper.parent is root
        assert other.parent is root
        assert root.parent is None
        assert helper.branches[0].parent is helper

    def test_walk_depth_first(self) -> None:
        assert [card.agent for card in _tree().walk()] == ["main", "helper", "leaf", "other"]

    def test_parent_reference_is_weak(self) -> None:
        root = TraceCard(agent="main", input="")
        child = root.add_branch("helper", "")
        del root
        gc.collect()
        assert child.parent is None

    def test_log(self) -> None:
        card = TraceCard(agent="a", input="")
        card.log("step one")
        assert card.logs[0].message == "step one"
        assert card.logs[0].timestamp.tzinfo is not None

    def test_describe(self) -> None:
        card = TraceCard(agent="a", input="in", output="out", ran=True, inputs={"k": 1})
        text = card.describe()
        assert 'Input: "in"' in text
        assert 'Output: "out"' in text
        assert "agent ran" in text
        assert "no error" in text
        assert "Inputs: k=1" in text
        assert "no logs" in text

    def test_describe_error(self) -> None:
        card = TraceCard(agent="a", input="", error=ValueError("boom"))
        assert "Error: boom" in card.describe()
        assert "did not run" in card.describe()


class TestMarkdown:
    def test_full(self) -> None:
        text = _tree().to_markdown()
        assert text.startswith("# Agent Trace: main\n")
        assert "## 1.1: main\n" in text
        assert "## 2.1: helper From: main" in text
        assert "## 3.1: leaf From: helper" in text
        assert "## 2.2: other From: main" in text
        assert text.index("helper From") < text.index("leaf From") < text.index("other From")

    def test_short(self) -> None:
        text = _tree().to_markdown(short=True)
        assert "# Agent Trace" not in text
        assert "Level: 1.1\nAgent: main\nFrom: none" in text
        assert "Level: 2.1\nAgent: helper\nFrom: main" in text

    def test_save(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.md"
        _tree().save_markdown(path, short=True)
        assert "Level: 3.1" in path.read_text(encoding="utf-8")
