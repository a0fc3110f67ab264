"""Runtime settings — env-driven, separate from the relay's config.json.

``RelaySettings`` carries process-level knobs (where config.json lives, log
level, send pool size).  The relay topology itself (listen port, buffer
size, destinations) comes from config.json via ``udpdup.core.config_loader``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Process settings with environment variable overrides.

    All settings can be overridden via UDPDUP_* environment variables or a
    .env file in the working directory.

    Examples
    --------
    Override via environment::

        export UDPDUP_CONFIG_PATH=/etc/udpdup/config.json
        export UDPDUP_LOG_LEVEL=DEBUG
        export UDPDUP_MAX_WORKERS=64
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="UDPDUP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_path: Path = Path("config.json")
    log_level: str = "INFO"

    # Interface to bind; empty means all interfaces (dual-stack when possible)
    listen_host: str = ""

    # Upper bound on in-flight sends across all destinations
    max_workers: int = Field(default=32, ge=1)
