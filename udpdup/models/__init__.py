"""udpdup data models — all Pydantic v2, all frozen (immutable)."""

from udpdup.models.config import (
    MAX_DATAGRAM_SIZE,
    PAYLOAD_ECHO_LEVEL,
    SEND_TRACE_LEVEL,
    EngineConfig,
)
from udpdup.models.destination import Destination, DestinationEntry

__all__ = [
    # config
    "EngineConfig",
    "SEND_TRACE_LEVEL",
    "PAYLOAD_ECHO_LEVEL",
    "MAX_DATAGRAM_SIZE",
    # destinations
    "Destination",
    "DestinationEntry",
]
