"""FanOutEngine — owns the inbound socket and runs the receive loop.

The engine alternates between two states:

* **blocked on receive**: waiting in ``recvfrom`` for the next datagram
  (initial and recurring state);
* **dispatching**: handing the datagram to the ``FanOutDispatcher``, which
  issues one send per destination and returns without waiting for them.

There is no terminal state in normal operation.  The loop runs until
``stop()`` is called or the process is terminated.  Only a bind failure is
fatal; receive and send errors are logged and the loop carries on.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import threading
from concurrent.futures import Future
from typing import Any, NamedTuple

from rich.console import Console

from udpdup.core.destination_table import DestinationTable
from udpdup.core.errors import BindError, ReceiveError
from udpdup.models.config import EngineConfig
from udpdup.routing._formatting import (
    display_text,
    format_banner,
    format_sockaddr,
    trim_payload,
)
from udpdup.routing.dispatcher import DEFAULT_MAX_WORKERS, FanOutDispatcher

logger = logging.getLogger(__name__)

# How often a blocked receive wakes up to check for stop().
DEFAULT_POLL_INTERVAL = 0.5


class InboundDatagram(NamedTuple):
    """One received datagram; lives for a single dispatch cycle."""

    payload: bytes
    source: Any


class DispatchCycle(NamedTuple):
    """The result of one receive: the datagram and its in-flight sends."""

    datagram: InboundDatagram
    sends: list[Future]


def open_inbound_socket(port: int, host: str = "") -> socket.socket:
    """Create a UDP socket bound to *host*:*port*.

    With no *host*, binds all interfaces: a dual-stack ``AF_INET6`` socket on
    ``::`` where the platform allows it, otherwise ``AF_INET`` on
    ``0.0.0.0``.

    Raises
    ------
    BindError
        If the socket cannot be created or bound.
    """
    if host:
        try:
            family = (
                socket.AF_INET6
                if ipaddress.ip_address(host).version == 6
                else socket.AF_INET
            )
        except ValueError as exc:
            raise BindError(f"invalid listen address {host!r}") from exc
        candidates = [(family, host)]
    else:
        candidates = []
        if socket.has_ipv6:
            candidates.append((socket.AF_INET6, "::"))
        candidates.append((socket.AF_INET, "0.0.0.0"))

    last_error: OSError | None = None
    for family, address in candidates:
        try:
            sock = socket.socket(family, socket.SOCK_DGRAM)
        except OSError as exc:
            # No IPv6 support in this kernel; try the next family.
            last_error = exc
            continue
        try:
            if family == socket.AF_INET6 and not host:
                sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            sock.bind((address, port))
        except (OSError, OverflowError) as exc:
            sock.close()
            raise BindError(f"Unable to bind UDP {address} port {port}: {exc}") from exc
        return sock

    raise BindError(f"Unable to create a UDP socket for port {port}: {last_error}")


class FanOutEngine:
    """Receives datagrams on one port and replicates them to every destination.

    Parameters
    ----------
    config:
        The immutable engine configuration.
    table:
        The destination table.  Built from ``config.destinations`` when
        omitted (raising ``InvalidDestination`` on a bad entry).
    console:
        Diagnostic console for the banner, payload echo, and send traces.
    max_workers:
        Bound on concurrently running sends.
    listen_host:
        Interface address to bind; empty for all interfaces.
    sock:
        An already-bound socket to use instead of calling ``bind()``.
    poll_interval:
        Receive timeout used to notice ``stop()``.  ``None`` blocks forever.

    Usage
    -----
    >>> with FanOutEngine(config) as engine:
    ...     engine.bind()
    ...     engine.serve_forever()
    """

    def __init__(
        self,
        config: EngineConfig,
        table: DestinationTable | None = None,
        *,
        console: Console | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        listen_host: str = "",
        sock: socket.socket | None = None,
        poll_interval: float | None = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._config = config
        self._table = table if table is not None else DestinationTable.build(
            config.destinations
        )
        self._console = console or Console()
        self._max_workers = max_workers
        self._listen_host = listen_host
        self._poll_interval = poll_interval
        self._stop_event = threading.Event()
        self._sock: socket.socket | None = None
        self._dispatcher: FanOutDispatcher | None = None

        if not self._table:
            logger.warning(
                "No destinations configured: received packets will be discarded"
            )

        if sock is not None:
            self._attach(sock)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def table(self) -> DestinationTable:
        return self._table

    @property
    def is_bound(self) -> bool:
        return self._sock is not None

    @property
    def local_address(self) -> str:
        """The bound local address, e.g. ``[::]:5514``."""
        if self._sock is None:
            return ""
        return format_sockaddr(self._sock.getsockname())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _attach(self, sock: socket.socket) -> None:
        if self._poll_interval is not None:
            sock.settimeout(self._poll_interval)
        self._sock = sock
        self._dispatcher = FanOutDispatcher(
            self._table,
            sock,
            max_workers=self._max_workers,
            console=self._console,
            trace_sends=self._config.traces_sends,
        )

    def bind(self) -> str:
        """Bind the inbound socket and print the startup banner.

        Returns the local address.  Raises ``BindError`` on failure, which is
        fatal: the engine cannot run without its inbound socket.
        """
        if self._sock is not None:
            return self.local_address
        sock = open_inbound_socket(self._config.listen_port, self._listen_host)
        self._attach(sock)
        address = self.local_address
        logger.info("Bound inbound socket on %s", address)
        self._console.print(
            format_banner(address), markup=False, highlight=False, emoji=False
        )
        return address

    def stop(self) -> None:
        """Ask ``serve_forever`` to return after the current receive."""
        self._stop_event.set()

    def close(self) -> None:
        """Stop the loop, drop pending sends, and release the socket."""
        self.stop()
        if self._dispatcher is not None:
            self._dispatcher.shutdown(wait=False)
            self._dispatcher = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> FanOutEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Receive loop
    # ------------------------------------------------------------------

    def _receive(self, sock: socket.socket) -> InboundDatagram | None:
        try:
            payload, source = sock.recvfrom(self._config.max_datagram_size)
        except socket.timeout:
            return None
        except OSError as exc:
            raise ReceiveError(f"Receive failed: {exc}") from exc
        return InboundDatagram(payload, source)

    def receive_once(self) -> DispatchCycle | None:
        """Receive one datagram and fan it out.

        Returns ``None`` when the receive timed out or failed (the failure
        is logged).  Otherwise returns the datagram and the send futures;
        the sends are issued but not awaited.
        """
        sock, dispatcher = self._sock, self._dispatcher
        if sock is None or dispatcher is None:
            raise RuntimeError("engine is not bound; call bind() first")

        try:
            datagram = self._receive(sock)
        except ReceiveError as exc:
            if not self._stop_event.is_set():
                logger.error("%s", exc)
            return None
        if datagram is None or self._stop_event.is_set():
            return None

        text = display_text(datagram.payload)
        if self._config.echoes_payload:
            self._console.print(
                text, markup=False, highlight=False, emoji=False, soft_wrap=True
            )

        payload = (
            trim_payload(datagram.payload)
            if self._config.trim_payload
            else datagram.payload
        )
        sends = dispatcher.dispatch(payload)
        return DispatchCycle(InboundDatagram(payload, datagram.source), sends)

    def serve_forever(self) -> None:
        """Run the receive loop until ``stop()`` is called."""
        if self._sock is None:
            self.bind()
        logger.debug("Entering receive loop")
        while not self._stop_event.is_set():
            self.receive_once()
        logger.debug("Receive loop stopped")
