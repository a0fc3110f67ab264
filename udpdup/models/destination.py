"""Destination models — raw configuration rows and validated endpoints."""

from __future__ import annotations

import ipaddress
import socket

from pydantic import BaseModel, ConfigDict, Field, field_validator

from udpdup.core.errors import SendError

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class DestinationEntry(BaseModel):
    """One ``{"ip": ..., "port": ...}`` row as it appears in config.json.

    Only the shape is checked here.  Address and port range validation
    happens in ``Destination`` so that the table can report which entry
    was rejected.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    ip: str
    port: int


class Destination(BaseModel):
    """A validated forwarding target.

    ``host`` must be an IPv4 or IPv6 literal; hostnames are rejected so that
    a misconfigured destination fails at load time rather than at send time.
    """

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(ge=1, le=65535)

    @field_validator("host")
    @classmethod
    def _host_is_ip_literal(cls, value: str) -> str:
        try:
            return str(ipaddress.ip_address(value))
        except ValueError:
            raise ValueError(f"{value!r} is not a valid IPv4 or IPv6 address") from None

    @property
    def address(self) -> IPAddress:
        """The parsed address object."""
        return ipaddress.ip_address(self.host)

    @property
    def is_ipv6(self) -> bool:
        return self.address.version == 6

    def sockaddr(self, family: int) -> tuple:
        """Return the ``sendto`` address for a socket of *family*.

        On a dual-stack ``AF_INET6`` socket IPv4 destinations are addressed
        through their IPv4-mapped form.

        Raises
        ------
        SendError
            If an IPv6 destination is addressed from an ``AF_INET`` socket.
        """
        if family == socket.AF_INET6:
            if self.is_ipv6:
                return (self.host, self.port, 0, 0)
            return (f"::ffff:{self.host}", self.port, 0, 0)
        if self.is_ipv6:
            raise SendError(
                f"IPv6 destination {self} is unreachable from an IPv4 socket",
                destination=str(self),
            )
        return (self.host, self.port)

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
