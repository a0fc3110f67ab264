"""Engine configuration model, decoded from config.json."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from udpdup.models.destination import DestinationEntry

# Verbosity thresholds.  ``debug`` values above these enable the output.
SEND_TRACE_LEVEL = 8
PAYLOAD_ECHO_LEVEL = 9

# Largest payload a UDP datagram can carry; bounds the per-read buffer.
MAX_DATAGRAM_SIZE = 65535


class EngineConfig(BaseModel):
    """Immutable relay configuration, loaded once before the engine starts.

    Field aliases match the keys of config.json (``port``, ``maxbuf``,
    ``debug``, ``dests``, ``trim``); the Python names may be used too.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    listen_port: int = Field(alias="port", ge=1, le=65535)
    max_datagram_size: int = Field(
        default=2048, alias="maxbuf", gt=0, le=MAX_DATAGRAM_SIZE
    )
    verbosity: int = Field(default=0, alias="debug")
    destinations: tuple[DestinationEntry, ...] = Field(default=(), alias="dests")
    trim_payload: bool = Field(default=False, alias="trim")

    @field_validator("destinations", mode="before")
    @classmethod
    def _null_dests_is_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def traces_sends(self) -> bool:
        """Whether one line per successful send is printed."""
        return self.verbosity > SEND_TRACE_LEVEL

    @property
    def echoes_payload(self) -> bool:
        """Whether each received payload is echoed."""
        return self.verbosity > PAYLOAD_ECHO_LEVEL
