"""udpdup CLI — Typer-based command-line interface.

Provides the ``udpdup`` command with ``run`` (start the relay), ``check``
(validate configuration) and ``version`` subcommands.

All operator-facing output uses Rich.
"""
