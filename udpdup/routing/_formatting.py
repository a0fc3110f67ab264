"""Shared formatting helpers for relay diagnostics.

The text produced here is for operators only; nothing parses it.
"""

from __future__ import annotations

from typing import Any


def format_sockaddr(sockaddr: Any) -> str:
    """Render a socket address tuple as ``host:port`` / ``[host]:port``.

    Examples
    --------
    >>> format_sockaddr(("127.0.0.1", 5514))
    '127.0.0.1:5514'
    >>> format_sockaddr(("::", 5514, 0, 0))
    '[::]:5514'
    """
    if isinstance(sockaddr, tuple) and len(sockaddr) >= 2:
        host, port = sockaddr[0], sockaddr[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(sockaddr)


def display_text(payload: bytes) -> str:
    """Decode a payload for echoing, with surrounding whitespace trimmed.

    Undecodable bytes are replaced rather than rejected; the echo is for
    display only and never affects what is forwarded.
    """
    return payload.decode("utf-8", errors="replace").strip()


def format_banner(local_address: str) -> str:
    return f"server listening {local_address}"


def format_send_line(nbytes: int, local_address: str, destination: str) -> str:
    """One per-send trace line, e.g. ``Sent 104 bytes [::]:5514 -> 127.0.0.1:8514``."""
    return f"Sent {nbytes} bytes {local_address} -> {destination}"


# Every character with the Unicode White_Space property.
_WHITESPACE = (
    "\t\n\v\f\r \x85\xa0\u1680"
    + "".join(chr(c) for c in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000"
)


def trim_payload(payload: bytes) -> bytes:
    """Strip leading and trailing Unicode whitespace from a UTF-8 payload.

    Bytes that are not valid UTF-8 are kept exactly as received and stop
    the trim, so only well-formed whitespace runes are removed.

    Examples
    --------
    >>> trim_payload("\\xa0<134>msg\\u2028\\n".encode())
    b'<134>msg'
    """
    text = payload.decode("utf-8", errors="surrogateescape")
    return text.strip(_WHITESPACE).encode("utf-8", errors="surrogateescape")
