"""``agencia run`` — execute one agent from a spec file."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape

from agencia.cli_commands._output import console, print_run_result, setup_logging


@click.command()
@click.argument("spec", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--agent", "-a", required=True, help="Name of the agent to run.")
@click.option("--input", "-i", "input_text", default="", help="Input text for the agent.")
@click.option(
    "--mock",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="AGENCIA_MOCK",
    default=None,
    help="YAML file of canned backend responses.",
)
@click.option("--model", envvar="AGENCIA_MODEL", default=None, help="LiteLLM model string.")
@click.option(
    "--trace",
    "trace_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the call trace as Markdown to this file.",
)
@click.option("--short", is_flag=True, help="Write the short trace format.")
@click.option("--timeout", type=float, default=None, help="Abort the run after N seconds.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to the console.")
def run(
    spec: Path,
    agent: str,
    input_text: str,
    mock: Path | None,
    model: str | None,
    trace_path: Path | None,
    short: bool,
    timeout: float | None,
    verbose: bool,
    telemetry: bool,
) -> None:
    """Run AGENT from the SPEC file with the given input."""
    from agencia.core.engine.engine import Engine
    from agencia.core.interface.backend import Backend  # noqa: TC001
    from agencia.core.interface.client import ModelClient
    from agencia.core.interface.config import ModelConfig
    from agencia.core.interface.mock import MockBackend
    from agencia.core.registry.registry import load_registry
    from agencia.errors import AgenciaError, SpecValidationError

    setup_logging(verbose=verbose)

    if telemetry:
        from agencia.utils.telemetry import configure_telemetry

        configure_telemetry()

    try:
        registry = load_registry(spec)
    except SpecValidationError as exc:
        console.print("[red]Validation error:[/red]")
        console.print(exc.result.report(), markup=False, soft_wrap=True)
        sys.exit(1)
    except AgenciaError as exc:
        console.print(f"[red]Validation error:[/red] {escape(str(exc))}", soft_wrap=True)
        sys.exit(1)

    client = ModelClient(ModelConfig.from_env(model=model)) if model else None
    backend: Backend
    if mock is not None:
        try:
            backend = MockBackend.from_file(mock, fallback=client)
        except AgenciaError as exc:
            console.print(f"[red]Mock error:[/red] {escape(str(exc))}", soft_wrap=True)
            sys.exit(1)
    else:
        backend = client or ModelClient(ModelConfig.from_env())

    if verbose:
        console.print(f"Running agent: {agent}")

    engine = Engine(registry, backend)
    result = asyncio.run(engine.run(agent, input_text, timeout=timeout))

    print_run_result(result, verbose=verbose)
    if trace_path is not None and result.trace is not None:
        result.trace.save_markdown(trace_path, short=short)
        if verbose:
            console.print(f"Trace written to {trace_path}")

    if result.error is not None:
        sys.exit(1)
