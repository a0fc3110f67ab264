"""``udpdup run`` — start the relay.

Loads config.json, validates the destination table, binds the inbound
socket and replicates every received datagram until interrupted.
"""

from __future__ import annotations

import logging
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from udpdup.cli._logging import configure_logging
from udpdup.config import RelaySettings
from udpdup.core.config_loader import (
    load_config,
    load_destination_table,
    parse_config,
)
from udpdup.core.engine import FanOutEngine
from udpdup.core.errors import BindError, ConfigError

logger = logging.getLogger(__name__)

console = Console()


def run_cmd(
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.json (default: $UDPDUP_CONFIG_PATH or ./config.json).",
    ),
    debug: int = typer.Option(
        None,
        "--debug",
        "-d",
        help="Override the config 'debug' level (>8 traces sends, >9 echoes payloads).",
    ),
    port: int = typer.Option(
        None,
        "--port",
        "-p",
        help="Override the config listen port.",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level (default: $UDPDUP_LOG_LEVEL or INFO).",
    ),
    max_workers: int = typer.Option(
        None,
        "--max-workers",
        help="Maximum concurrent sends (default: $UDPDUP_MAX_WORKERS or 32).",
    ),
) -> None:
    """Receive UDP datagrams and duplicate them to every configured destination.

    Exits with status 1 if the configuration cannot be loaded or the listen
    port cannot be bound.
    """
    settings = RelaySettings()
    configure_logging(log_level or settings.log_level)

    path = config_path or settings.config_path
    try:
        config = load_config(path)
        overrides: dict[str, int] = {}
        if debug is not None:
            overrides["verbosity"] = debug
        if port is not None:
            overrides["listen_port"] = port
        if overrides:
            config = parse_config({**config.model_dump(), **overrides})
        table = load_destination_table(config)
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    engine = FanOutEngine(
        config,
        table,
        console=console,
        max_workers=max_workers or settings.max_workers,
        listen_host=settings.listen_host,
    )
    try:
        engine.bind()
    except BindError as exc:
        console.print(f"[bold red]Bind error:[/bold red] {escape(str(exc))}")
        engine.close()
        raise typer.Exit(code=1)

    def _handle_sigterm(signum: int, frame: object) -> None:
        logger.info("Received signal %d, stopping", signum)
        engine.stop()

    previous = signal.signal(signal.SIGTERM, _handle_sigterm)
    try:
        engine.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
    finally:
        engine.close()
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
