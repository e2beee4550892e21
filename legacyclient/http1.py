"""A single HTTP/1.1 client connection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import h11

from .connect import Connection
from .messages import Request, Response, Version

INIT_BUFFER_SIZE = 8192
MINIMUM_MAX_BUFFER_SIZE = 8192
DEFAULT_MAX_BUF_SIZE = 8192 + 4096 * 100
DEFAULT_MAX_HEADERS = 100

_STATUS_RE = re.compile(rb"HTTP/1\.[01] [0-9]{3}(?: [^\r\n]*)?")
_TOKEN_RE = re.compile(rb"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_INVALID_VALUE_RE = re.compile(rb"[\x00-\x08\x0a-\x1f\x7f]")
_BODY_METHODS = {"POST", "PUT", "PATCH"}


class Http1Error(Exception):
    """A protocol or I/O failure on an HTTP/1 connection."""


class IncompleteMessage(Http1Error):
    """The connection closed before a complete response was received."""


class RequestNotSent(Http1Error):
    """The connection could not take the request; nothing was written."""

    def __init__(self, request: Request, message: str = "connection is not ready") -> None:
        super().__init__(message)
        self.request = request


@dataclass
class Http1Options:
    """Settings for HTTP/1 connections."""

    read_buf_exact_size: int | None = None
    max_buf_size: int = DEFAULT_MAX_BUF_SIZE
    allow_spaces_after_header_name_in_responses: bool = False
    allow_obsolete_multiline_headers_in_responses: bool = False
    ignore_invalid_headers_in_responses: bool = False
    title_case_headers: bool = False
    max_headers: int = DEFAULT_MAX_HEADERS
    http09_responses: bool = False

    def __post_init__(self) -> None:
        if self.max_buf_size < MINIMUM_MAX_BUFFER_SIZE:
            raise ValueError(
                f"the max_buf_size cannot be smaller than {MINIMUM_MAX_BUFFER_SIZE}"
            )
        if self.read_buf_exact_size is not None and self.read_buf_exact_size <= 0:
            raise ValueError("read_buf_exact_size must be positive")

    @property
    def head_limit(self) -> int:
        """The largest response head that will be buffered."""
        return self.read_buf_exact_size or self.max_buf_size

    @property
    def read_size(self) -> int:
        return self.read_buf_exact_size or INIT_BUFFER_SIZE


@dataclass
class Upgraded:
    """The raw connection after a protocol switch, with bytes already read."""

    connection: Connection
    read_buf: bytes = field(default=b"")


def _title_case(name: str) -> str:
    return "-".join(part[:1].upper() + part[1:] for part in name.lower().split("-"))


def _find_head_end(buf: bytearray) -> int | None:
    ends = [
        index + len(marker)
        for marker in (b"\r\n\r\n", b"\n\n")
        if (index := buf.find(marker)) >= 0
    ]
    return min(ends) if ends else None


def _could_be_status_line(buf: bytearray) -> bool:
    prefix = b"HTTP/"
    n = min(len(buf), len(prefix))
    return bytes(buf[:n]) == prefix[:n]


class Http1Connection:
    """Sends requests one at a time over an open connection."""

    def __init__(self, connection: Connection, options: Http1Options | None = None) -> None:
        self.connection = connection
        self.options = options if options is not None else Http1Options()
        self._h11 = h11.Connection(
            h11.CLIENT, max_incomplete_event_size=self.options.head_limit
        )
        self._buffer = bytearray()
        self._busy = False
        self._closed = False
        self._detached = False

    # ----- state -----

    def is_open(self) -> bool:
        """Return True while the underlying stream can still be used."""
        return (
            not self._closed
            and not self._detached
            and not self.connection.reader.at_eof()
            and not self.connection.writer.is_closing()
        )

    def is_ready(self) -> bool:
        """Return True if a new request can be sent right now."""
        return (
            self.is_open()
            and not self._busy
            and self._h11.our_state is h11.IDLE
            and self._h11.their_state is h11.IDLE
        )

    async def close(self) -> None:
        """Close the connection; an upgraded stream is left to its new owner."""
        if self._closed:
            return
        self._closed = True
        if not self._detached:
            await self.connection.close()

    # ----- sending -----

    async def send_request(self, request: Request) -> Response:
        """Send a request and return its complete response.

        Raises RequestNotSent if the connection could not take the request,
        IncompleteMessage if it closed mid-response, and Http1Error otherwise.
        """
        if not self.is_ready():
            raise RequestNotSent(request)
        self._busy = True
        try:
            await self._send(self._request_event(request))
            await self._send_body(request.body)
            response = await self._receive()
        except BaseException:
            await self.close()
            raise
        finally:
            self._busy = False
        await self._finish_cycle()
        return response

    def _request_event(self, request: Request) -> h11.Request:
        headers = []
        for name, value in request.headers:
            name = _title_case(name) if self.options.title_case_headers else name.lower()
            headers.append((name, value))
        lowered = {name.lower() for name, _ in headers}
        if not lowered & {"content-length", "transfer-encoding"}:
            body = request.body
            if body is None or isinstance(body, bytes):
                if body or request.method in _BODY_METHODS:
                    name = "Content-Length" if self.options.title_case_headers else "content-length"
                    headers.append((name, str(len(body or b""))))
            else:
                name = (
                    "Transfer-Encoding" if self.options.title_case_headers else "transfer-encoding"
                )
                headers.append((name, "chunked"))
        try:
            target = str(request.uri).encode("ascii")
            return h11.Request(method=request.method, target=target, headers=headers)
        except (UnicodeEncodeError, h11.LocalProtocolError) as exc:
            raise Http1Error(f"invalid request: {exc}") from exc

    async def _send(self, event: Any) -> None:
        try:
            data = self._h11.send(event)
        except h11.LocalProtocolError as exc:
            raise Http1Error(f"invalid request: {exc}") from exc
        if not data:
            return
        try:
            self.connection.writer.write(data)
            await self.connection.writer.drain()
        except OSError as exc:
            raise Http1Error("error writing a request to the connection") from exc

    async def _send_body(self, body: Any) -> None:
        if body is None or isinstance(body, bytes):
            if body:
                await self._send(h11.Data(data=body))
        elif hasattr(body, "__aiter__"):
            async for chunk in body:
                await self._send_chunk(chunk)
        else:
            for chunk in body:
                await self._send_chunk(chunk)
        await self._send(h11.EndOfMessage())

    async def _send_chunk(self, chunk: Any) -> None:
        data = chunk.encode() if isinstance(chunk, str) else bytes(chunk)
        if data:
            await self._send(h11.Data(data=data))

    # ----- receiving -----

    async def _read_chunk(self) -> bytes:
        try:
            return await self.connection.reader.read(self.options.read_size)
        except OSError as exc:
            raise Http1Error("error reading a response from the connection") from exc

    async def _read_head(self) -> bytes | None:
        """Return the raw response head, or None for an HTTP/0.9 response."""
        while True:
            if (
                self.options.http09_responses
                and self._buffer
                and not _could_be_status_line(self._buffer)
            ):
                return None
            end = _find_head_end(self._buffer)
            if end is not None:
                head = bytes(self._buffer[:end])
                del self._buffer[:end]
                return head
            if len(self._buffer) >= self.options.head_limit:
                raise Http1Error("message head is too large")
            chunk = await self._read_chunk()
            if not chunk:
                raise IncompleteMessage("connection closed before message completed")
            self._buffer += chunk

    def _reject(self, message: str) -> None:
        if not self.options.ignore_invalid_headers_in_responses:
            raise Http1Error(message)

    def _parse_header_line(self, line: bytes) -> tuple[bytes, bytes] | None:
        name, sep, value = line.partition(b":")
        if not sep:
            return self._reject("invalid header: missing colon")
        stripped = name.rstrip(b" \t")
        if stripped != name:
            if not self.options.allow_spaces_after_header_name_in_responses:
                return self._reject("invalid header: whitespace before colon")
            name = stripped
        if not _TOKEN_RE.fullmatch(name):
            return self._reject("invalid header name")
        value = value.strip(b" \t")
        if _INVALID_VALUE_RE.search(value):
            return self._reject("invalid header value")
        return name, value

    def _normalize_head(self, raw: bytes) -> bytes:
        lines = [line[:-1] if line.endswith(b"\r") else line for line in raw.split(b"\n")]
        while lines and not lines[-1]:
            lines.pop()
        if not lines or not _STATUS_RE.fullmatch(lines[0]):
            raise Http1Error("invalid HTTP status line")
        status, *rest = lines
        headers: list[list[bytes]] = []
        for line in rest:
            if b"\x00" in line or b"\r" in line:
                raise Http1Error("invalid header: forbidden byte")
            if line[:1] in (b" ", b"\t"):
                if self.options.allow_obsolete_multiline_headers_in_responses and headers:
                    headers[-1][1] = (headers[-1][1] + b" " + line.strip(b" \t")).strip()
                    continue
                self._reject("invalid header: obsolete line folding")
                continue
            parsed = self._parse_header_line(line)
            if parsed is None:
                continue
            headers.append(list(parsed))
            if len(headers) > self.options.max_headers:
                raise Http1Error("message header too large")
        out = [status, b"\r\n"]
        for name, value in headers:
            out += [name, b": ", value, b"\r\n"]
        out.append(b"\r\n")
        return b"".join(out)

    async def _http09_response(self) -> Response:
        body = bytearray(self._buffer)
        self._buffer.clear()
        while chunk := await self._read_chunk():
            body += chunk
        await self.close()
        return Response(200, Version.HTTP_09, body=bytes(body))

    def _build(self, event: Any, body: bytes, extensions: dict | None = None) -> Response:
        return Response(
            status=event.status_code,
            version=Version("HTTP/" + event.http_version.decode("ascii")),
            headers=[(n.decode("latin-1"), v.decode("latin-1")) for n, v in event.headers],
            body=body,
            reason=event.reason.decode("latin-1"),
            extensions=extensions or {},
        )

    def _upgraded(self, event: Any) -> Response:
        leftover = self._h11.trailing_data[0] + bytes(self._buffer)
        self._buffer.clear()
        self._detached = True
        return self._build(event, b"", {"upgraded": Upgraded(self.connection, leftover)})

    async def _receive(self) -> Response:
        awaiting_head = True
        eof = False
        body = bytearray()
        head_event: Any = None
        while True:
            try:
                event = self._h11.next_event()
            except h11.RemoteProtocolError as exc:
                if eof:
                    raise IncompleteMessage("connection closed before message completed") from exc
                raise Http1Error(f"invalid response: {exc}") from exc
            if event is h11.NEED_DATA:
                if awaiting_head:
                    raw = await self._read_head()
                    if raw is None:
                        return await self._http09_response()
                    self._h11.receive_data(self._normalize_head(raw))
                elif self._buffer:
                    self._h11.receive_data(bytes(self._buffer))
                    self._buffer.clear()
                else:
                    chunk = await self._read_chunk()
                    eof = not chunk
                    self._h11.receive_data(chunk)
            elif isinstance(event, h11.InformationalResponse):
                if event.status_code == 101:
                    return self._upgraded(event)
                awaiting_head = True
            elif isinstance(event, h11.Response):
                head_event = event
                awaiting_head = False
                if self._h11.their_state is h11.SWITCHED_PROTOCOL:
                    return self._upgraded(event)
            elif isinstance(event, h11.Data):
                body += event.data
            elif isinstance(event, h11.EndOfMessage):
                return self._build(head_event, bytes(body))
            elif isinstance(event, h11.ConnectionClosed):
                raise IncompleteMessage("connection closed before message completed")
            else:
                raise Http1Error(f"unexpected connection state: {event!r}")

    async def _finish_cycle(self) -> None:
        if self._detached:
            return
        trailing, closed = self._h11.trailing_data
        reusable = (
            self._h11.our_state is h11.DONE
            and self._h11.their_state is h11.DONE
            and not trailing
            and not closed
            and not self._buffer
        )
        if reusable:
            self._h11.start_next_cycle()
        else:
            await self.close()