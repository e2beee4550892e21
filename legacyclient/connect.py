"""Connections, their metadata, and the plain TCP connector."""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import socket
from dataclasses import dataclass, field
from typing import Any

from .uri import Uri


class Alpn(enum.Enum):
    """The protocol negotiated for a connection."""

    H2 = "h2"
    NONE = "none"


class _PoisonPill:
    """A flag shared between all copies of one connection's metadata."""

    def __init__(self) -> None:
        self.poisoned = False


@dataclass(frozen=True)
class Connected:
    """Metadata about an established connection.

    Copies made with ``proxy`` or ``negotiated_h2`` share the poison flag,
    so poisoning any of them marks the underlying connection unusable.
    """

    alpn: Alpn = Alpn.NONE
    is_proxied: bool = False
    extra: Any = None
    _poison: _PoisonPill = field(default_factory=_PoisonPill, repr=False, compare=False)

    def proxy(self, is_proxied: bool) -> "Connected":
        """Return metadata marking whether the connection goes via a proxy."""
        return dataclasses.replace(self, is_proxied=is_proxied)

    def negotiated_h2(self) -> "Connected":
        """Return metadata marking that HTTP/2 was negotiated."""
        return dataclasses.replace(self, alpn=Alpn.H2)

    def poison(self) -> None:
        """Mark the connection so that the pool will not reuse it."""
        self._poison.poisoned = True

    def is_poisoned(self) -> bool:
        """Return True once the connection has been poisoned."""
        return self._poison.poisoned


class Connection:
    """An open byte stream plus the metadata describing it."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        connected: Connected | None = None,
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.connected = connected if connected is not None else Connected()

    async def close(self) -> None:
        """Close the stream, ignoring errors from an already broken socket."""
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (OSError, asyncio.CancelledError):
            pass


_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


@dataclass
class TcpConnector:
    """Opens plain TCP connections to ``http`` destinations."""

    enforce_http: bool = True
    keepalive: float | None = None

    async def connect(self, dst: Uri) -> Connection:
        """Connect to the host and port named by a URI."""
        if self.enforce_http and dst.scheme != "http":
            raise ValueError("invalid URL, scheme is not http")
        host = dst.host
        if not host:
            raise ValueError("invalid URL, missing domain")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        port = dst.port
        if port is None:
            port = _DEFAULT_PORTS.get(dst.scheme or "http", 80)
        reader, writer = await asyncio.open_connection(host, port)
        sock = writer.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            if self.keepalive is not None:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        return Connection(reader, writer, Connected())