"""HTTP request and response messages used by the client."""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .uri import Uri

_TOKEN_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

HeaderInput = Union[Mapping[str, str], Iterable[tuple[str, str]]]


class Version(enum.Enum):
    """An HTTP protocol version."""

    HTTP_09 = "HTTP/0.9"
    HTTP_10 = "HTTP/1.0"
    HTTP_11 = "HTTP/1.1"
    HTTP_2 = "HTTP/2.0"
    HTTP_3 = "HTTP/3.0"

    def __str__(self) -> str:
        return self.value


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    return str(value)


def _normalize_headers(headers: HeaderInput) -> list[tuple[str, str]]:
    items = headers.items() if isinstance(headers, Mapping) else headers
    normalized = []
    for raw_name, raw_value in items:
        name, value = _text(raw_name), _text(raw_value)
        if not _TOKEN_RE.fullmatch(name):
            raise ValueError(f"invalid header name: {name!r}")
        if any(ch in value for ch in "\r\n\x00"):
            raise ValueError(f"invalid header value for {name!r}")
        normalized.append((name, value))
    return normalized


def _lookup(headers: list[tuple[str, str]], name: str) -> str | None:
    wanted = name.lower()
    return next((value for key, value in headers if key.lower() == wanted), None)


@dataclass
class Request:
    """An outgoing HTTP request.

    ``headers`` is a list of (name, value) pairs in the order they are sent;
    names keep the case they were given. ``body`` is bytes or an iterable of
    byte chunks (sync or async).
    """

    uri: Uri
    method: str = "GET"
    version: Version = Version.HTTP_11
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: Any = b""
    extensions: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.uri, str):
            self.uri = Uri.parse(self.uri)
        if not _TOKEN_RE.fullmatch(self.method):
            raise ValueError(f"invalid HTTP method: {self.method!r}")
        self.version = Version(self.version)
        self.headers = _normalize_headers(self.headers)
        if isinstance(self.body, (str, bytearray, memoryview)):
            self.body = self.body.encode() if isinstance(self.body, str) else bytes(self.body)

    def header(self, name: str) -> str | None:
        """Return the first value of a header, matched case-insensitively."""
        return _lookup(self.headers, name)


@dataclass
class Response:
    """An HTTP response received by the client."""

    status: int
    version: Version = Version.HTTP_11
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    reason: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 100 <= self.status <= 999:
            raise ValueError(f"invalid status code: {self.status}")
        self.version = Version(self.version)
        self.headers = _normalize_headers(self.headers)

    def header(self, name: str) -> str | None:
        """Return the first value of a header, matched case-insensitively."""
        return _lookup(self.headers, name)