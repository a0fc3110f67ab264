"""Logging setup for the command-line entry points.

The library modules only create loggers; handlers are installed here, once,
when a CLI command starts.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route the ``udpdup`` loggers through a ``RichHandler`` at *level*."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("udpdup")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
