"""Shared CLI output formatters."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from agencia.core.engine.engine import RunResult  # noqa: TC001
from agencia.core.lint.models import LintResult  # noqa: TC001

console = Console()
err_console = Console(stderr=True)


def setup_logging(*, verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )


def print_lint_result(result: LintResult) -> None:
    """Pretty-print linter diagnostics followed by the verdict."""
    for err in result.errors:
        console.print(f"[red]error[/red]   {escape(err)}", soft_wrap=True)
    for warn in result.warnings:
        console.print(f"[yellow]warning[/yellow] {escape(warn)}", soft_wrap=True)
    console.print(result.summary, soft_wrap=True)
    if result.valid:
        console.print("[green]The spec is valid.[/green]")
    else:
        console.print("[red]The spec is invalid.[/red]")


def print_run_result(result: RunResult, *, verbose: bool = False) -> None:
    """Print the run output, plus the call tree when *verbose*."""
    if result.error is not None:
        console.print(f"[red]Error:[/red] {escape(result.output)}", soft_wrap=True)
    else:
        console.print(result.output, markup=False, highlight=False, soft_wrap=True)

    if verbose and result.trace is not None:
        table = Table(title="Calls")
        table.add_column("Agent", style="cyan")
        table.add_column("Ran")
        table.add_column("Output")
        for card in result.trace.walk():
            table.add_row(card.agent, "yes" if card.ran else "no", escape(_truncate(card.output)))
        err_console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
