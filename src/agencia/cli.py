"""Command line interface: ``agencia run`` and ``agencia lint``."""

from __future__ import annotations

import click

from agencia import __version__
from agencia.cli_commands import register_commands


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="agencia")
def main() -> None:
    """Lint agent specs and run their agents against a model or a mock."""


register_commands(main)

if __name__ == "__main__":
    main()
