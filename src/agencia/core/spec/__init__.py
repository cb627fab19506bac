"""Spec model — document parsing and agent definitions."""

from agencia.core.spec.loader import load_file, parse
from agencia.core.spec.models import (
    ACTION_KEYS,
    Action,
    Agent,
    AgentEntry,
    AliasAction,
    Argument,
    Fact,
    FunctionAction,
    PromptAction,
    SpecModel,
    TemplateAction,
)

__all__ = [
    "ACTION_KEYS",
    "Action",
    "Agent",
    "AgentEntry",
    "AliasAction",
    "Argument",
    "Fact",
    "FunctionAction",
    "PromptAction",
    "SpecModel",
    "TemplateAction",
    "load_file",
    "parse",
]
