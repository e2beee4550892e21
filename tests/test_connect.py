import asyncio
import socket

import pytest

from legacyclient.connect import Alpn, Connected, Connection, TcpConnector
from legacyclient.uri import Uri


def test_connected_defaults():
    info = Connected()
    assert info.alpn is Alpn.NONE
    assert info.is_proxied is False
    assert info.extra is None
    assert info.is_poisoned() is False


def test_proxy_and_negotiated_h2_return_updated_copies():
    base = Connected()
    proxied = base.proxy(True)
    h2 = proxied.negotiated_h2()
    assert base.is_proxied is False
    assert proxied.is_proxied is True
    assert h2.alpn is Alpn.H2
    assert h2.is_proxied is True
    assert proxied.alpn is Alpn.NONE


def test_poison_is_shared_between_copies():
    base = Connected()
    copy = base.proxy(False).negotiated_h2()
    copy.poison()
    assert base.is_poisoned() is True
    assert copy.is_poisoned() is True


def test_poison_not_shared_between_independent_connections():
    first, second = Connected(), Connected()
    first.poison()
    assert second.is_poisoned() is False


async def _echo_server():
    async def handle(reader, writer):
        data = await reader.read(64)
        writer.write(data.upper())
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port


@pytest.mark.asyncio
async def test_tcp_connector_connects_and_exchanges_bytes():
    server, port = await _echo_server()
    async with server:
        conn = await TcpConnector().connect(Uri.parse(f"http://127.0.0.1:{port}/"))
        assert conn.connected.alpn is Alpn.NONE
        conn.writer.write(b"hello")
        await conn.writer.drain()
        assert await conn.reader.read(64) == b"HELLO"
        await conn.close()
        assert conn.writer.is_closing() is True


@pytest.mark.asyncio
async def test_tcp_connector_sets_keepalive():
    server, port = await _echo_server()
    async with server:
        conn = await TcpConnector(keepalive=90.0).connect(
            Uri.parse(f"http://127.0.0.1:{port}/")
        )
        assert conn.connected.is_proxied is False
        assert conn.connected.alpn is Alpn.NONE
        sock = conn.writer.get_extra_info("socket")
        keepalive = sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE)
        assert bool(keepalive) is True
        await conn.close()
        assert conn.writer.is_closing() is True


@pytest.mark.asyncio
async def test_tcp_connector_rejects_non_http_scheme():
    with pytest.raises(ValueError, match="scheme is not http"):
        await TcpConnector().connect(Uri.parse("https://hyper.rs"))


@pytest.mark.asyncio
async def test_tcp_connector_refused_raises_oserror():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        await TcpConnector().connect(Uri.parse(f"http://127.0.0.1:{port}/"))


@pytest.mark.asyncio
async def test_connection_close_is_idempotent():
    server, port = await _echo_server()
    async with server:
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        conn = Connection(reader, writer)
        await conn.close()
        await conn.close()
        assert conn.writer.is_closing() is True
        assert conn.connected.is_poisoned() is False