"""Error kinds raised by the relay.

Callers discriminate failures by type rather than by message text.  Fatal
startup errors (``ConfigError``, ``InvalidDestination``, ``BindError``) must
not be caught and ignored: the process should exit.  ``ReceiveError`` and
``SendError`` are per-cycle / per-destination and are logged by the engine.
"""

from __future__ import annotations


class UdpDupError(RuntimeError):
    """Base class for all udpdup errors."""


class ConfigError(UdpDupError):
    """Raised when the configuration cannot be read, decoded, or validated."""


class InvalidDestination(ConfigError):
    """Raised when a destination entry has a bad host or port.

    Attributes
    ----------
    index:
        Position of the offending entry in the configured list, or ``None``
        when the destination was built outside a table.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


class BindError(UdpDupError):
    """Raised when the inbound socket cannot be bound."""


class ReceiveError(UdpDupError):
    """Raised when a single receive call on the inbound socket fails."""


class SendError(UdpDupError):
    """Raised when a single send to one destination fails.

    Attributes
    ----------
    destination:
        Text form of the destination the send was addressed to.
    """

    def __init__(self, message: str, destination: str = "") -> None:
        super().__init__(message)
        self.destination = destination
