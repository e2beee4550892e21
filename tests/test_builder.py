import datetime
import sys

import pytest

from legacyclient.builder import Builder
from legacyclient.client import Client, Ver
from legacyclient.connect import TcpConnector
from legacyclient.errors import Error, ErrorKind


def test_defaults():
    builder = Builder()
    assert builder.client_config.retry_canceled_requests is True
    assert builder.client_config.set_host is True
    assert builder.client_config.ver is Ver.AUTO
    assert builder.pool_config.idle_timeout == 90
    assert builder.pool_config.max_idle_per_host == sys.maxsize


def test_client_builder_returns_builder():
    builder = Client.builder("exec")
    assert isinstance(builder, Builder)
    assert builder.executor == "exec"


def test_setters_chain():
    builder = Builder()
    result = builder.pool_idle_timeout(30).http2_only(True).set_host(False)
    assert result is builder
    assert builder.pool_config.idle_timeout == 30
    assert builder.client_config.ver is Ver.HTTP2
    assert builder.client_config.set_host is False


def test_http2_only_false_restores_auto():
    builder = Builder().http2_only(True).http2_only(False)
    assert builder.client_config.ver is Ver.AUTO


def test_pool_idle_timeout_none_and_timedelta():
    builder = Builder().pool_idle_timeout(None)
    assert builder.pool_config.idle_timeout is None
    builder.pool_idle_timeout(datetime.timedelta(seconds=30))
    assert builder.pool_config.idle_timeout == 30


def test_negative_values_rejected():
    with pytest.raises(ValueError):
        Builder().pool_max_idle_per_host(-1)
    with pytest.raises(ValueError):
        Builder().pool_idle_timeout(-5)


def test_max_buf_size_minimum():
    with pytest.raises(ValueError):
        Builder().http1_max_buf_size(8191)
    builder = Builder().http1_max_buf_size(8192)
    assert builder.h1_options.max_buf_size == 8192


def test_max_buf_size_unsets_exact_size():
    builder = Builder().http1_read_buf_exact_size(4096)
    assert builder.h1_options.read_buf_exact_size == 4096
    builder.http1_max_buf_size(65536)
    assert builder.h1_options.read_buf_exact_size is None
    assert builder.h1_options.head_limit == 65536


def test_http1_flags():
    builder = (
        Builder()
        .http1_allow_spaces_after_header_name_in_responses(True)
        .http1_allow_obsolete_multiline_headers_in_responses(True)
        .http1_ignore_invalid_headers_in_responses(True)
        .http1_title_case_headers(True)
        .http1_max_headers(10)
        .http09_responses(True)
    )
    opts = builder.h1_options
    assert opts.allow_spaces_after_header_name_in_responses is True
    assert opts.allow_obsolete_multiline_headers_in_responses is True
    assert opts.ignore_invalid_headers_in_responses is True
    assert opts.title_case_headers is True
    assert opts.max_headers == 10
    assert opts.http09_responses is True


def test_build_carries_configuration():
    connector = object()
    builder = Builder().retry_canceled_requests(False).pool_max_idle_per_host(0)
    client = builder.build(connector)
    assert client.connector is connector
    assert client.config.retry_canceled_requests is False
    assert client.pool.is_enabled() is False


def test_built_client_is_independent_of_later_changes():
    builder = Builder()
    client = builder.build(object())
    builder.pool_max_idle_per_host(0).http1_title_case_headers(True)
    assert client.pool.is_enabled() is True
    assert client.h1_options.title_case_headers is False


def test_build_http_sets_keepalive():
    client = Builder().pool_idle_timeout(30).build_http()
    assert isinstance(client.connector, TcpConnector)
    assert client.connector.keepalive == 30


def test_build_http_without_pool_has_no_keepalive():
    client = Builder().pool_max_idle_per_host(0).build_http()
    assert client.connector.keepalive is None


class _FailingConnector:
    def __init__(self):
        self.calls = 0

    async def connect(self, dst):
        self.calls += 1
        raise OSError("refused")


@pytest.mark.asyncio
async def test_built_client_reports_connect_errors():
    connector = _FailingConnector()
    client = Builder().build(connector)
    with pytest.raises(Error) as info:
        await client.get("http://mocked/a")
    assert info.value.kind is ErrorKind.CONNECT
    assert info.value.is_connect()
    assert connector.calls == 1


@pytest.mark.asyncio
async def test_connect_call_is_lazy():
    connector = _FailingConnector()
    client = Builder().build(connector)
    assert connector.calls == 0
    with pytest.raises(Error):
        await client.get("/relative")
    assert connector.calls == 0