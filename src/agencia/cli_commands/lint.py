"""``agencia lint`` — validate an agent spec file."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape

from agencia.cli_commands._output import console, print_lint_result


@click.command("lint")
@click.argument("spec", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output diagnostics as JSON.")
def lint_cmd(spec: Path, as_json: bool) -> None:
    """Check the agents in SPEC for errors and warnings."""
    from agencia.core.lint.linter import lint

    try:
        document = spec.read_bytes()
    except OSError as exc:
        console.print(f"[red]Cannot read spec:[/red] {escape(str(exc))}")
        sys.exit(1)

    result = lint(document)
    if as_json:
        console.print_json(result.model_dump_json())
    else:
        print_lint_result(result)

    if not result.valid:
        sys.exit(1)
