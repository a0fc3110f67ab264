"""Shared test fixtures for udpdup."""

from __future__ import annotations

import collections
import io
import json
import socket
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from udpdup.core.destination_table import DestinationTable
from udpdup.models.config import EngineConfig


# ---------------------------------------------------------------------------
# Fake socket — records sends, replays scripted receives
# ---------------------------------------------------------------------------


class FakeSocket:
    """Stand-in for the engine's inbound socket.

    ``inbound`` items are either ``bytes`` (a datagram) or an exception
    instance to raise from ``recvfrom``.  When the script is exhausted,
    ``recvfrom`` raises ``socket.timeout`` like an idle socket would.
    Sends whose target host is in ``fail_hosts`` raise ``OSError``; hosts in
    ``crash_hosts`` raise ``ValueError``.  Sends to ``stall_hosts`` block
    until ``gate`` is set.
    """

    def __init__(
        self,
        inbound: list[bytes | Exception] | None = None,
        *,
        family: int = socket.AF_INET6,
        fail_hosts: tuple[str, ...] = (),
        crash_hosts: tuple[str, ...] = (),
        stall_hosts: tuple[str, ...] = (),
    ) -> None:
        self.family = family
        self.fail_hosts = fail_hosts
        self.crash_hosts = crash_hosts
        self.stall_hosts = stall_hosts
        self.gate = threading.Event()
        self.sent: list[tuple[bytes, tuple]] = []
        self.closed = False
        self.timeout: float | None = None
        self._inbound = collections.deque(inbound or [])
        self._lock = threading.Lock()

    def queue(self, item: bytes | Exception) -> None:
        self._inbound.append(item)

    def recvfrom(self, bufsize: int) -> tuple[bytes, tuple]:
        if not self._inbound:
            raise socket.timeout("timed out")
        item = self._inbound.popleft()
        if isinstance(item, Exception):
            raise item
        return item[:bufsize], ("::ffff:192.0.2.10", 40000, 0, 0)

    def sendto(self, data: bytes, address: tuple) -> int:
        if address[0] in self.stall_hosts:
            self.gate.wait(timeout=5)
        if address[0] in self.fail_hosts:
            raise OSError(101, "Network is unreachable")
        if address[0] in self.crash_hosts:
            raise ValueError(f"bad address {address!r}")
        with self._lock:
            self.sent.append((data, address))
        return len(data)

    def getsockname(self) -> tuple:
        if self.family == socket.AF_INET6:
            return ("::", 5514, 0, 0)
        return ("0.0.0.0", 5514)

    def settimeout(self, value: float | None) -> None:
        self.timeout = value

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_socket() -> FakeSocket:
    """Provide an empty dual-stack FakeSocket."""
    return FakeSocket()


@pytest.fixture
def make_fake_socket() -> type[FakeSocket]:
    """Factory fixture: the FakeSocket class, for scripted receives."""
    return FakeSocket


# ---------------------------------------------------------------------------
# Config and table factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config() -> Callable[..., EngineConfig]:
    """Factory fixture: build an EngineConfig from config.json-style keys."""

    def _factory(**overrides: Any) -> EngineConfig:
        data: dict[str, Any] = {
            "debug": 0,
            "port": 5514,
            "maxbuf": 2048,
            "dests": [
                {"ip": "127.0.0.1", "port": 8514},
                {"ip": "::1", "port": 7514},
            ],
        }
        data.update(overrides)
        return EngineConfig.model_validate(data)

    return _factory


@pytest.fixture
def config(make_config: Callable[..., EngineConfig]) -> EngineConfig:
    """Convenience: the two-destination config at debug 0."""
    return make_config()


@pytest.fixture
def table(config: EngineConfig) -> DestinationTable:
    return DestinationTable.build(config.destinations)


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], Path]:
    """Factory fixture: write a JSON document to a temp config.json."""

    def _write(document: Any, name: str = "config.json") -> Path:
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Diagnostics capture
# ---------------------------------------------------------------------------


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_buffer: io.StringIO) -> Console:
    """A Rich console writing plain text into ``console_buffer``."""
    return Console(file=console_buffer, width=200, color_system=None)


# ---------------------------------------------------------------------------
# Loopback receivers
# ---------------------------------------------------------------------------


def ipv6_loopback_available() -> bool:
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_DGRAM) as scratch:
            scratch.bind(("::1", 0))
    except OSError:
        return False
    return True


@pytest.fixture
def require_ipv6() -> None:
    if not ipv6_loopback_available():
        pytest.skip("IPv6 loopback is not available")


@pytest.fixture
def udp_receiver() -> Iterator[Callable[[str], socket.socket]]:
    """Factory fixture: open a UDP socket on *host* with an ephemeral port."""
    opened: list[socket.socket] = []

    def _open(host: str = "127.0.0.1") -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_DGRAM)
        sock.settimeout(2.0)
        sock.bind((host, 0))
        opened.append(sock)
        return sock

    yield _open

    for sock in opened:
        sock.close()
