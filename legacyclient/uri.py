"""Request URIs and the request-target forms the client sends."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import NamedTuple

from .errors import Error, ErrorKind

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_INVALID_RE = re.compile(r"[\x00-\x20\x7f]")


def _split_host_port(authority: str) -> tuple[str, int | None]:
    hostport = authority.rpartition("@")[2]
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"invalid IPv6 authority: {authority!r}")
        host = hostport[: end + 1]
        rest = hostport[end + 1 :]
        if rest and not rest.startswith(":"):
            raise ValueError(f"invalid authority: {authority!r}")
        port_text = rest[1:] if rest else ""
    else:
        host, _, port_text = hostport.partition(":")
    if not host:
        raise ValueError(f"authority has no host: {authority!r}")
    if not port_text:
        return host, None
    if not port_text.isdigit():
        raise ValueError(f"invalid port in authority: {authority!r}")
    port = int(port_text)
    if port > 0xFFFF:
        raise ValueError(f"port out of range in authority: {authority!r}")
    return host, port


@dataclass(frozen=True)
class Uri:
    """A request URI in absolute, origin or authority form."""

    scheme: str | None = None
    authority: str | None = None
    path_and_query: str | None = "/"

    def __post_init__(self) -> None:
        if self.scheme is not None and not self.authority:
            raise ValueError("a URI with a scheme needs an authority")
        if self.scheme is None and self.authority is None and not self.path_and_query:
            raise ValueError("a URI needs an authority or a path")
        if self.authority:
            _split_host_port(self.authority)

    @classmethod
    def parse(cls, text: str) -> "Uri":
        """Parse a URI string, raising ValueError if it is malformed."""
        if not text:
            raise ValueError("empty URI")
        if _INVALID_RE.search(text):
            raise ValueError(f"invalid character in URI: {text!r}")
        if text == "*":
            return cls(None, None, "*")
        if text.startswith("/"):
            return cls(None, None, text.split("#", 1)[0])
        scheme, sep, rest = text.partition("://")
        if sep:
            if not _SCHEME_RE.fullmatch(scheme):
                raise ValueError(f"invalid scheme in URI: {text!r}")
            match = re.search(r"[/?#]", rest)
            end = match.start() if match else len(rest)
            authority, tail = rest[:end], rest[end:]
            if not authority:
                raise ValueError(f"URI has no authority: {text!r}")
            path_and_query = tail.split("#", 1)[0]
            if not path_and_query.startswith("/"):
                path_and_query = "/" + path_and_query
            return cls(scheme.lower(), authority, path_and_query)
        if re.search(r"[/?#]", text):
            raise ValueError(f"invalid URI format: {text!r}")
        return cls(None, text, None)

    @property
    def host(self) -> str | None:
        if not self.authority:
            return None
        return _split_host_port(self.authority)[0]

    @property
    def port(self) -> int | None:
        if not self.authority:
            return None
        return _split_host_port(self.authority)[1]

    @property
    def path(self) -> str:
        if not self.path_and_query:
            return ""
        return self.path_and_query.split("?", 1)[0]

    def __str__(self) -> str:
        parts = []
        if self.scheme is not None:
            parts.append(f"{self.scheme}://")
        if self.authority is not None:
            parts.append(self.authority)
        if self.path_and_query is not None:
            parts.append(self.path_and_query)
        return "".join(parts)


class PoolKey(NamedTuple):
    """Identifies the connections that may serve a request."""

    scheme: str
    authority: str


def origin_form(uri: Uri) -> Uri:
    """Return the origin-form (path and query only) of a URI."""
    if uri.path_and_query and uri.path_and_query != "/":
        return Uri(None, None, uri.path_and_query)
    return Uri()


def absolute_form(uri: Uri) -> Uri:
    """Return the URI to send to a proxy.

    HTTPS destinations should already have been tunneled, so they get the
    origin-form instead.
    """
    if uri.scheme is None:
        raise ValueError("absolute_form needs a scheme")
    if uri.authority is None:
        raise ValueError("absolute_form needs an authority")
    if uri.scheme == "https":
        return origin_form(uri)
    return uri


def authority_form(uri: Uri) -> Uri:
    """Return the authority-form of a URI, as used by CONNECT."""
    if uri.path_and_query is not None and uri.path_and_query != "/":
        logger.warning("HTTP/1.1 CONNECT request stripping path: %r", uri.path_and_query)
    if uri.authority is None:
        raise ValueError("authority_form with relative uri")
    return Uri(None, uri.authority, None)


def extract_domain(uri: Uri, is_http_connect: bool) -> tuple[PoolKey, Uri]:
    """Find the pool key of a request URI.

    Returns the key and the URI to use, which gains a scheme when a CONNECT
    request names only an authority.
    """
    if uri.scheme is not None and uri.authority is not None:
        return PoolKey(uri.scheme, uri.authority), uri
    if uri.scheme is None and uri.authority is not None and is_http_connect:
        scheme = "https" if uri.port == 443 else "http"
        return PoolKey(scheme, uri.authority), Uri(scheme, uri.authority, "/")
    logger.debug("Client requires absolute-form URIs, received: %s", uri)
    raise Error(ErrorKind.USER_ABSOLUTE_URI_REQUIRED)


def domain_as_uri(pool_key: tuple[str, str]) -> Uri:
    """Build the URI a connector is asked to connect to."""
    scheme, authority = pool_key
    return Uri(scheme, authority, "/")


def get_non_default_port(uri: Uri) -> int | None:
    """Return the port of a URI unless it is the default for its scheme."""
    port = uri.port
    secure = is_schema_secure(uri)
    if (port == 443 and secure) or (port == 80 and not secure):
        return None
    return port


def is_schema_secure(uri: Uri) -> bool:
    """Return True for the https and wss schemes."""
    return uri.scheme in ("https", "wss")