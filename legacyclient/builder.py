"""A builder that configures and creates clients."""

from __future__ import annotations

import dataclasses
import datetime
from typing import Any

from .client import Client, Config, Ver
from .connect import TcpConnector
from .http1 import Http1Options
from .pool import DEFAULT_IDLE_TIMEOUT, Pool, PoolConfig


def _seconds(val: Any) -> float | None:
    if val is None:
        return None
    if isinstance(val, datetime.timedelta):
        return val.total_seconds()
    seconds = float(val)
    if seconds < 0:
        raise ValueError("a timeout cannot be negative")
    return seconds


class Builder:
    """Collects client settings; every setter returns the builder itself.

    Defaults: canceled requests are retried, a ``Host`` header is added,
    idle connections are kept for 90 seconds with no per-host limit.
    """

    def __init__(self, executor: Any = None) -> None:
        self.executor = executor
        self.client_config = Config(retry_canceled_requests=True, set_host=True, ver=Ver.AUTO)
        self.h1_options = Http1Options()
        self.pool_config = PoolConfig(idle_timeout=DEFAULT_IDLE_TIMEOUT)

    def __repr__(self) -> str:
        return f"Builder(client_config={self.client_config!r}, pool_config={self.pool_config!r})"

    def _h1(self, **changes: Any) -> "Builder":
        self.h1_options = dataclasses.replace(self.h1_options, **changes)
        return self

    def _client(self, **changes: Any) -> "Builder":
        self.client_config = dataclasses.replace(self.client_config, **changes)
        return self

    # ----- pool -----

    def pool_idle_timeout(self, val: Any) -> "Builder":
        """Set how long idle connections are kept, in seconds; None keeps them."""
        self.pool_config = dataclasses.replace(self.pool_config, idle_timeout=_seconds(val))
        return self

    def pool_max_idle_per_host(self, max_idle: int) -> "Builder":
        """Set the maximum idle connections per host; zero disables pooling."""
        if max_idle < 0:
            raise ValueError("max_idle_per_host cannot be negative")
        self.pool_config = dataclasses.replace(self.pool_config, max_idle_per_host=max_idle)
        return self

    # ----- HTTP/1 -----

    def http1_read_buf_exact_size(self, sz: int) -> "Builder":
        """Always read with a buffer of exactly this size."""
        return self._h1(read_buf_exact_size=sz)

    def http1_max_buf_size(self, max: int) -> "Builder":
        """Set the maximum buffer size; unsets the exact read buffer size.

        Raises ValueError if ``max`` is below 8192.
        """
        return self._h1(max_buf_size=max, read_buf_exact_size=None)

    def http1_allow_spaces_after_header_name_in_responses(self, val: bool) -> "Builder":
        """Accept whitespace between a header name and its colon."""
        return self._h1(allow_spaces_after_header_name_in_responses=val)

    def http1_allow_obsolete_multiline_headers_in_responses(self, val: bool) -> "Builder":
        """Accept obsolete line folding in header values."""
        return self._h1(allow_obsolete_multiline_headers_in_responses=val)

    def http1_ignore_invalid_headers_in_responses(self, val: bool) -> "Builder":
        """Skip malformed header lines instead of failing."""
        return self._h1(ignore_invalid_headers_in_responses=val)

    def http1_title_case_headers(self, val: bool) -> "Builder":
        """Write header names in title case."""
        return self._h1(title_case_headers=val)

    def http1_max_headers(self, val: int) -> "Builder":
        """Set the maximum number of response headers."""
        if val < 0:
            raise ValueError("max_headers cannot be negative")
        return self._h1(max_headers=val)

    def http09_responses(self, val: bool) -> "Builder":
        """Tolerate HTTP/0.9 responses."""
        return self._h1(http09_responses=val)

    # ----- protocol and behaviour -----

    def http2_only(self, val: bool) -> "Builder":
        """Require HTTP/2 for every connection."""
        return self._client(ver=Ver.HTTP2 if val else Ver.AUTO)

    def retry_canceled_requests(self, val: bool) -> "Builder":
        """Retry requests whose reused connection failed before sending."""
        return self._client(retry_canceled_requests=val)

    def set_host(self, val: bool) -> "Builder":
        """Add a ``Host`` header derived from the URI when one is missing."""
        return self._client(set_host=val)

    # ----- building -----

    def build_http(self) -> Client:
        """Build a client using the plain TCP connector."""
        connector = TcpConnector()
        if self.pool_config.is_enabled():
            connector.keepalive = self.pool_config.idle_timeout
        return self.build(connector)

    def build(self, connector: Any) -> Client:
        """Build a client with this configuration and the given connector."""
        return Client(
            config=self.client_config,
            connector=connector,
            pool=Pool(dataclasses.replace(self.pool_config)),
            h1_options=dataclasses.replace(self.h1_options),
        )