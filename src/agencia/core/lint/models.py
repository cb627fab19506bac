"""Lint result model."""

from __future__ import annotations

from pydantic import BaseModel


class LintResult(BaseModel):
    """Diagnostics from :func:`~agencia.core.lint.linter.lint`.

    Errors block registration; warnings are informational.
    """

    errors: list[str] = []
    warnings: list[str] = []
    summary: str = ""

    @property
    def valid(self) -> bool:
        return not self.errors

    def report(self) -> str:
        """Render one line per diagnostic followed by the verdict."""
        lines = [f"Error: {err}" for err in self.errors]
        lines.extend(f"Warning: {warn}" for warn in self.warnings)
        lines.append("The spec is valid." if self.valid else "The spec is invalid.")
        return "\n".join(lines) + "\n"
