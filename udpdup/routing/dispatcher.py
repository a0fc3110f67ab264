"""FanOutDispatcher — sends every payload to ALL table destinations.

Every payload dispatched through this module is fanned out to every
destination in the table, one independent send task per destination on a
bounded thread pool.  A failed send is logged against its destination and
does not prevent or delay delivery to the remaining destinations, nor does
it affect the next dispatch.  There is no retry.
"""

from __future__ import annotations

import logging
import socket
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from rich.console import Console

from udpdup.core.errors import SendError
from udpdup.routing._formatting import format_send_line, format_sockaddr

if TYPE_CHECKING:
    from udpdup.core.destination_table import DestinationTable
    from udpdup.models.destination import Destination

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 32


class FanOutDispatcher:
    """Routes payloads to every destination of a ``DestinationTable``.

    Parameters
    ----------
    table:
        The immutable destination table.
    sock:
        The shared socket to send from (the engine's inbound socket).
    max_workers:
        Upper bound on concurrently running sends.
    console:
        Diagnostic console for per-send trace lines.
    trace_sends:
        Print one line per successful send when ``True``.

    Usage
    -----
    >>> dispatcher = FanOutDispatcher(table, sock)
    >>> futures = dispatcher.dispatch(b"<134>May 24 14:43:05 host app: hello")
    """

    def __init__(
        self,
        table: DestinationTable,
        sock: socket.socket,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        console: Console | None = None,
        trace_sends: bool = False,
    ) -> None:
        self._table = table
        self._sock = sock
        self._local_address = format_sockaddr(sock.getsockname())
        self._console = console or Console()
        self._trace_sends = trace_sends
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="udpdup-send"
        )

    @property
    def table(self) -> DestinationTable:
        return self._table

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send_one(self, payload: bytes, destination: Destination) -> int:
        """Write *payload* as a single datagram to *destination*.

        Returns the number of bytes sent.

        Raises
        ------
        SendError
            If the destination is unreachable from the socket's address
            family or the underlying ``sendto`` fails.
        """
        address = destination.sockaddr(self._sock.family)
        try:
            return self._sock.sendto(payload, address)
        except OSError as exc:
            raise SendError(
                f"Unable to send packet to {destination}: {exc}",
                destination=str(destination),
            ) from exc

    def _send_task(self, payload: bytes, destination: Destination) -> int | None:
        try:
            sent = self.send_one(payload, destination)
        except SendError as exc:
            logger.error("%s", exc)
            return None
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected failure sending to %s", destination)
            return None

        if self._trace_sends:
            self._console.print(
                format_send_line(sent, self._local_address, str(destination)),
                markup=False,
                highlight=False,
                emoji=False,
            )
        return sent

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, payload: bytes) -> list[Future[int | None]]:
        """Issue one send per destination and return without waiting.

        Returns one future per destination, in table order.  Each future
        resolves to the number of bytes sent, or ``None`` when that send
        failed (the failure has already been logged).  An empty table
        yields an empty list and the payload is discarded.
        """
        return [
            self._pool.submit(self._send_task, payload, destination)
            for destination in self._table
        ]

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting dispatches; in-flight sends are not drained unless *wait*."""
        self._pool.shutdown(wait=wait, cancel_futures=not wait)
