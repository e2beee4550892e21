"""Errors raised by the HTTP client."""

from __future__ import annotations

import enum
from typing import Any


class ErrorKind(enum.Enum):
    """The category of a client error."""

    CANCELED = "Canceled"
    CHANNEL_CLOSED = "ChannelClosed"
    CONNECT = "Connect"
    USER_UNSUPPORTED_REQUEST_METHOD = "UserUnsupportedRequestMethod"
    USER_UNSUPPORTED_VERSION = "UserUnsupportedVersion"
    USER_ABSOLUTE_URI_REQUIRED = "UserAbsoluteUriRequired"
    SEND_REQUEST = "SendRequest"


def _as_exception(source: Any) -> BaseException | None:
    if source is None or isinstance(source, BaseException):
        return source
    return RuntimeError(str(source))


class Error(Exception):
    """A failure while sending a request through the client.

    The underlying cause, if any, is available as ``source`` and is also
    chained as ``__cause__``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        source: Any = None,
        connect_info: Any = None,
    ) -> None:
        self.kind = ErrorKind(kind)
        self.source = _as_exception(source)
        self.connect_info = connect_info
        super().__init__(str(self))
        self.__cause__ = self.source

    def __str__(self) -> str:
        return f"client error ({self.kind.value})"

    def __repr__(self) -> str:
        if self.source is None:
            return f"Error({self.kind.value})"
        return f"Error({self.kind.value}, {self.source!r})"

    def is_connect(self) -> bool:
        """Return True if this error came from establishing a connection."""
        return self.kind is ErrorKind.CONNECT

    def is_canceled(self) -> bool:
        """Return True if the request was canceled before it started."""
        return self.kind is ErrorKind.CANCELED

    def with_connect_info(self, connect_info: Any) -> "Error":
        """Return a copy of this error carrying the given connection info."""
        return Error(self.kind, self.source, connect_info)