"""Spec linter — structural, referential, cycle and schema checks."""

from agencia.core.lint.linter import SpecLinter, find_cycle, lint
from agencia.core.lint.models import LintResult
from agencia.core.lint.references import Reference, scan_references
from agencia.core.lint.schema import SPEC_SCHEMA, schema_errors

__all__ = [
    "SPEC_SCHEMA",
    "LintResult",
    "Reference",
    "SpecLinter",
    "find_cycle",
    "lint",
    "scan_references",
    "schema_errors",
]
