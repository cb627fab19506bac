"""Structural JSON schema for spec documents, checked with ``jsonschema``."""

from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator

_NAMES: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

SPEC_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["agents"],
    "properties": {
        "agents": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"$ref": "#/$defs/agent"},
        },
    },
    "$defs": {
        "argument": {
            "type": "object",
            "properties": {
                "description": {"type": "string"},
                "type": {"type": "string"},
                "required": {"type": "boolean"},
            },
            "required": ["description"],
            "additionalProperties": False,
        },
        "fact": {
            "type": "object",
            "properties": {
                "description": {"type": "string"},
                "type": {"type": "string"},
                "scope": {"enum": ["global", "local"]},
                "tags": _NAMES,
            },
            "required": ["description"],
            "additionalProperties": False,
        },
        "agent": {
            "type": "object",
            "properties": {
                "description": {"type": "string"},
                "prompt": {"type": "string"},
                "template": {"type": "string"},
                "alias": {"type": "string"},
                "function": {"type": "string", "pattern": "^[\\w.]+:[\\w.]+$"},
                "inputs": {
                    "type": "object",
                    "additionalProperties": {"$ref": "#/$defs/argument"},
                },
                "facts": {
                    "type": "object",
                    "additionalProperties": {"$ref": "#/$defs/fact"},
                },
                "listeners": _NAMES,
                "job": _NAMES,
            },
            "additionalProperties": False,
        },
    },
}

_validator = Draft202012Validator(SPEC_SCHEMA)


def schema_errors(data: Any) -> list[str]:
    """Validate *data* and return one message per violation, ordered by path."""
    found = sorted(_validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    messages: list[str] = []
    for error in found:
        location = "/" + "/".join(str(p) for p in error.absolute_path)
        messages.append(f"Problem: The spec is invalid at {location}: {error.message}")
    return messages
