"""An idle-connection pool keyed by destination."""

from __future__ import annotations

import sys
import time
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

DEFAULT_IDLE_TIMEOUT = 90.0


class Poolable(Protocol):
    """What the pool needs from a connection it keeps idle."""

    def is_open(self) -> bool: ...

    async def close(self) -> None: ...


T = TypeVar("T", bound=Poolable)


@dataclass
class PoolConfig:
    """Limits for idle connections.

    ``idle_timeout`` is in seconds; ``None`` keeps idle connections forever.
    A ``max_idle_per_host`` of zero disables pooling.
    """

    idle_timeout: float | None = DEFAULT_IDLE_TIMEOUT
    max_idle_per_host: int = sys.maxsize

    def is_enabled(self) -> bool:
        """Return True if any connection may be kept idle."""
        return self.max_idle_per_host > 0


@dataclass
class _Idle(Generic[T]):
    conn: T
    since: float


class Pool(Generic[T]):
    """Keeps idle connections per key and hands them out most recent first."""

    def __init__(self, config: PoolConfig | None = None) -> None:
        self.config = config if config is not None else PoolConfig()
        self._idle: dict[Hashable, list[_Idle[T]]] = {}
        self._closed = False

    def is_enabled(self) -> bool:
        """Return True if this pool keeps idle connections at all."""
        return self.config.is_enabled()

    def _expired(self, entry: _Idle[T], now: float) -> bool:
        timeout = self.config.idle_timeout
        return timeout is not None and now - entry.since > timeout

    def _usable(self, entry: _Idle[T], now: float) -> bool:
        return not self._expired(entry, now) and entry.conn.is_open()

    async def checkout(self, key: Hashable) -> T | None:
        """Take an idle, open connection for ``key``, or return None.

        Expired or closed connections met on the way are closed and dropped.
        """
        entries = self._idle.get(key)
        if not entries:
            return None
        now = time.monotonic()
        try:
            while entries:
                entry = entries.pop()
                if self._usable(entry, now):
                    return entry.conn
                await entry.conn.close()
            return None
        finally:
            if not entries:
                self._idle.pop(key, None)

    async def put(self, key: Hashable, conn: T) -> bool:
        """Offer a connection back to the pool.

        Returns True if it was kept; otherwise the connection is closed.
        """
        if self._closed or not self.is_enabled() or not conn.is_open():
            await conn.close()
            return False
        now = time.monotonic()
        entries = self._idle.setdefault(key, [])
        stale = [entry for entry in entries if not self._usable(entry, now)]
        entries[:] = [entry for entry in entries if entry not in stale]
        for entry in stale:
            await entry.conn.close()
        if len(entries) >= self.config.max_idle_per_host:
            await conn.close()
            return False
        entries.append(_Idle(conn, now))
        return True

    def idle_count(self, key: Hashable) -> int:
        """Return how many usable idle connections are held for ``key``."""
        now = time.monotonic()
        return sum(1 for entry in self._idle.get(key, ()) if self._usable(entry, now))

    async def close(self) -> None:
        """Close every idle connection and stop accepting new ones."""
        self._closed = True
        idle, self._idle = self._idle, {}
        for entries in idle.values():
            for entry in entries:
                await entry.conn.close()