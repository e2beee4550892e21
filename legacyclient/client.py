"""A pooled HTTP/1 client that sends requests to absolute URIs."""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from .connect import Alpn, Connected, Connection, TcpConnector
from .errors import Error, ErrorKind
from .http1 import Http1Connection, Http1Error, Http1Options, RequestNotSent
from .messages import Request, Response, Version
from .pool import Pool, PoolConfig
from .uri import (
    PoolKey,
    Uri,
    absolute_form,
    authority_form,
    domain_as_uri,
    extract_domain,
    get_non_default_port,
    origin_form,
)

logger = logging.getLogger(__name__)


class Ver(enum.Enum):
    """Which protocol versions a client may use."""

    AUTO = "auto"
    HTTP2 = "http2"


@dataclass(frozen=True)
class Config:
    """Behaviour switches of a client."""

    retry_canceled_requests: bool = True
    set_host: bool = True
    ver: Ver = Ver.AUTO


class _Connector(Protocol):
    async def connect(self, dst: Uri) -> Connection: ...


class _PoolClient:
    """A connection the pool can hold, with the metadata it was opened with."""

    def __init__(self, conn_info: Connected, tx: Http1Connection) -> None:
        self.conn_info = conn_info
        self.tx = tx
        self.reused = False

    def is_open(self) -> bool:
        return not self.conn_info.is_poisoned() and self.tx.is_ready()

    async def close(self) -> None:
        await self.tx.close()


class _Retryable(Exception):
    """A request that never reached the connection and may be tried again."""

    def __init__(self, error: Error, connection_reused: bool) -> None:
        super().__init__(str(error))
        self.error = error
        self.connection_reused = connection_reused


def _host_header(uri: Uri) -> str:
    host = uri.host
    if host is None:
        raise ValueError("authority implies host")
    port = get_non_default_port(uri)
    return f"{host}:{port}" if port is not None else host


class Client:
    """Sends requests over pooled connections.

    Idle connections are reused per (scheme, authority). Responses carry the
    connection metadata in ``response.extensions["connected"]``.
    """

    def __init__(
        self,
        config: Config | None = None,
        connector: Any = None,
        pool: Pool | None = None,
        h1_options: Http1Options | None = None,
    ) -> None:
        self.config = config if config is not None else Config()
        self.connector: _Connector = connector if connector is not None else TcpConnector()
        self.pool: Pool = pool if pool is not None else Pool(PoolConfig())
        self.h1_options = h1_options if h1_options is not None else Http1Options()

    @classmethod
    def builder(cls, executor: Any = None) -> Any:
        """Return a builder to configure a new client."""
        from .builder import Builder

        return Builder(executor)

    def __repr__(self) -> str:
        return "Client()"

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close every idle connection held by the pool."""
        await self.pool.close()

    async def get(self, uri: Uri | str) -> Response:
        """Send a GET request with an empty body."""
        return await self.request(Request(uri))

    async def request(self, request: Request) -> Response:
        """Send a request and return its response, raising Error on failure."""
        is_http_connect = request.method == "CONNECT"
        if request.version is Version.HTTP_10:
            if is_http_connect:
                logger.warning("CONNECT is not allowed for HTTP/1.0")
                raise Error(ErrorKind.USER_UNSUPPORTED_REQUEST_METHOD)
        elif request.version not in (Version.HTTP_11, Version.HTTP_2):
            logger.warning('Request has unsupported version "%s"', request.version)
            raise Error(ErrorKind.USER_UNSUPPORTED_VERSION)

        pool_key, uri = extract_domain(request.uri, is_http_connect)
        if uri is not request.uri:
            request = dataclasses.replace(request, uri=uri)
        return await self._send_request(request, pool_key)

    async def _send_request(self, request: Request, pool_key: PoolKey) -> Response:
        while True:
            try:
                return await self._try_send_request(request, pool_key)
            except _Retryable as exc:
                retry = exc
            if not self.config.retry_canceled_requests or not retry.connection_reused:
                raise retry.error
            logger.debug(
                "unstarted request canceled, trying again (reason=%r)", retry.error
            )

    async def _try_send_request(self, request: Request, pool_key: PoolKey) -> Response:
        pooled = await self._connection_for(pool_key)
        conn_info = pooled.conn_info

        if request.version is Version.HTTP_2:
            logger.warning("Connection is HTTP/1, but request requires HTTP/2")
            await self.pool.put(pool_key, pooled)
            raise Error(ErrorKind.USER_UNSUPPORTED_VERSION, connect_info=conn_info)

        headers = list(request.headers)
        if self.config.set_host and request.header("host") is None:
            headers.append(("host", _host_header(request.uri)))

        if request.method == "CONNECT":
            uri = authority_form(request.uri)
        elif conn_info.is_proxied:
            uri = absolute_form(request.uri)
        else:
            uri = origin_form(request.uri)
        outgoing = dataclasses.replace(request, uri=uri, headers=headers)

        try:
            response = await pooled.tx.send_request(outgoing)
        except RequestNotSent as exc:
            await pooled.close()
            error = Error(ErrorKind.CANCELED, exc, conn_info)
            raise _Retryable(error, pooled.reused) from None
        except (Http1Error, OSError) as exc:
            raise Error(ErrorKind.SEND_REQUEST, exc, conn_info) from exc

        if isinstance(conn_info.extra, dict):
            response.extensions.update(conn_info.extra)
        response.extensions["connected"] = conn_info

        await self.pool.put(pool_key, pooled)
        return response

    async def _connection_for(self, pool_key: PoolKey) -> _PoolClient:
        if self.pool.is_enabled():
            idle = await self.pool.checkout(pool_key)
            if idle is not None:
                idle.reused = True
                return idle
        return await self._connect_to(pool_key)

    async def _connect_to(self, pool_key: PoolKey) -> _PoolClient:
        dst = domain_as_uri(pool_key)
        try:
            io = await self.connector.connect(dst)
        except Exception as exc:
            raise Error(ErrorKind.CONNECT, exc) from exc
        connected = io.connected
        if self.config.ver is Ver.HTTP2 or connected.alpn is Alpn.H2:
            logger.warning("HTTP/2 was required but only HTTP/1 is spoken")
            await io.close()
            raise Error(ErrorKind.USER_UNSUPPORTED_VERSION, connect_info=connected)
        logger.debug("http1 handshake complete")
        return _PoolClient(connected, Http1Connection(io, self.h1_options))