"""``udpdup check`` — validate config.json without binding anything.

Loads the configuration, builds the destination table, and prints what
the relay would do.  Exits non-zero on any configuration error so it can
be used as a pre-deploy check.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from udpdup.config import RelaySettings
from udpdup.core.config_loader import load_config, load_destination_table
from udpdup.core.errors import ConfigError

console = Console()


def check_cmd(
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.json (default: $UDPDUP_CONFIG_PATH or ./config.json).",
    ),
) -> None:
    """Validate the relay configuration and list its destinations."""
    path = config_path or RelaySettings().config_path
    try:
        config = load_config(path)
        table = load_destination_table(config)
    except ConfigError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    dest_table = Table(show_header=True, header_style="bold cyan", expand=True)
    dest_table.add_column("#", justify="right", width=4)
    dest_table.add_column("Destination")
    dest_table.add_column("Family", width=8, justify="center")

    for index, destination in enumerate(table):
        family = "IPv6" if destination.is_ipv6 else "IPv4"
        dest_table.add_row(str(index), escape(str(destination)), family)

    if not table:
        subtitle = "[bold yellow]No destinations: packets will be discarded.[/bold yellow]"
        border_style = "yellow"
    else:
        subtitle = f"[bold green]{len(table)} destination(s) OK.[/bold green]"
        border_style = "green"

    console.print()
    console.print(
        Panel(
            dest_table,
            title=(
                f"[bold]udpdup[/bold] port {config.listen_port}, "
                f"maxbuf {config.max_datagram_size}, debug {config.verbosity}"
            ),
            subtitle=subtitle,
            border_style=border_style,
            padding=(1, 2),
        )
    )
    console.print()
