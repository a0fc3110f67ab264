"""Main Typer application — imports and registers all CLI commands.

Entry point: ``udpdup`` (configured via pyproject.toml [project.scripts]).
"""

from __future__ import annotations

import typer

from udpdup import __version__
from udpdup.cli.commands.check import check_cmd
from udpdup.cli.commands.run import run_cmd

app = typer.Typer(
    name="udpdup",
    help="udpdup: duplicate incoming UDP packets to one or more UDP servers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="run", help="Start relaying datagrams to all destinations.")(run_cmd)
app.command(name="check", help="Validate config.json and list destinations.")(check_cmd)


@app.command(name="version", help="Show the udpdup version.")
def version_cmd() -> None:
    """Print the installed udpdup version."""
    typer.echo(f"udpdup {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
