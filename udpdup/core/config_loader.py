"""Configuration loading — config.json to ``EngineConfig`` + ``DestinationTable``.

The file is read exactly once at startup.  Every failure here is fatal:
``ConfigError`` for an unreadable or ill-shaped file, ``InvalidDestination``
for a bad destination entry.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from udpdup.core.destination_table import DestinationTable
from udpdup.core.errors import ConfigError
from udpdup.models.config import EngineConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")


def parse_config(data: Any) -> EngineConfig:
    """Validate an already-decoded JSON document into an ``EngineConfig``."""
    if not isinstance(data, dict):
        raise ConfigError(
            f"configuration must be a JSON object, got {type(data).__name__}"
        )
    try:
        return EngineConfig.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"invalid configuration: {problems}") from exc


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> EngineConfig:
    """Read and decode the JSON configuration file at *path*.

    Raises
    ------
    ConfigError
        If the file cannot be opened, is not valid JSON, or does not match
        the expected shape.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to open config file {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Unable to decode config file {path}: {exc}") from exc

    config = parse_config(data)
    logger.info(
        "Loaded configuration from %s (port=%d, maxbuf=%d, %d destination(s))",
        path,
        config.listen_port,
        config.max_datagram_size,
        len(config.destinations),
    )
    return config


def load_destination_table(config: EngineConfig) -> DestinationTable:
    """Build the destination table for *config*; raises ``InvalidDestination``."""
    return DestinationTable.build(config.destinations)
