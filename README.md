# legacyclient

`legacyclient` is an asynchronous HTTP/1.1 client built on `asyncio` and `h11`.

- It keeps idle connections in a pool for each scheme and authority, and reuses them for later requests.
- It adds a `Host` header when a request has none.
- It writes the request target in the form the connection and method need:
  - origin form for ordinary requests,
  - absolute form through a proxy,
  - authority form for `CONNECT`.
- If a reused connection cannot take a request before anything has been written, the request is retried.

## Installation

```
pip install legacyclient
```

## Command line

```
legacyclient http://example.com/
```

The command sends a `GET` request to the URL. It prints the response version and status line to standard error, then the response headers.

It accepts only `http` URLs. For any other scheme it prints a note and exits with status 0. Run without a URL, it prints `Usage: client <url>` and exits with status 0. A malformed URL or a failed request prints `Error: ...` and exits with status 1.

## Library use

```python
import asyncio

from legacyclient.client import Client
from legacyclient.messages import Request
from legacyclient.uri import Uri


async def main():
    builder = Client.builder(None)
    builder.pool_idle_timeout(30.0).pool_max_idle_per_host(4)
    async with builder.build_http() as client:
        response = await client.get(Uri.parse("http://example.com/"))
        print(response.status, response.header("content-type"))

        request = Request(uri=Uri.parse("http://example.com/post"), method="POST", body=b"Hallo!")
        response = await client.request(request)
        print(response.status, response.body)


asyncio.run(main())
```

`Client` is an async context manager. Leaving the block calls `close()`, which closes every idle pooled connection.

### Requests and responses

These classes are in `legacyclient.messages`.

`Request` takes the following:

- a `Uri`, or a string that is parsed into one;
- a method, `GET` by default;
- a `Version`, `HTTP/1.1` by default;
- headers as a list of `(name, value)` pairs;
- a body, which is one of:
  - `bytes` or `str`, sent with a `Content-Length`;
  - a sync or async iterable of byte chunks, sent chunked.

`Response` has these fields:

- `status`
- `reason`
- `version`
- `headers`
- `body`, which is read into memory in full
- `extensions`, a dict

On both classes, `header(name)` returns the first value of a header, with the name matched case-insensitively.

Each response has `extensions["connected"]`, the `Connected` metadata of the connection it came over. When the connection was upgraded by a `101 Switching Protocols` response, `extensions["upgraded"]` holds an `Upgraded` value. It carries:

- `connection`, the raw connection;
- `read_buf`, any bytes that were already read.

### URIs

`legacyclient.uri.Uri.parse` accepts URIs in these forms:

- absolute (`http://host:port/path?q`)
- origin (`/path`)
- authority (`host:port`)
- `*`

The client needs absolute URIs. The one exception is `CONNECT`, which also accepts an authority-form URI. In that case the client takes `https` as the scheme for port 443 and `http` for any other port.

### Configuration

`Client.builder(executor)`, or `legacyclient.builder.Builder`, configures a `Client`. The `executor` argument is stored on the builder and nothing else uses it. Every setter returns the builder, so calls can be chained.

- `pool_idle_timeout(val)`: how long an idle connection stays usable.
  - Takes seconds or a `datetime.timedelta`.
  - `None` keeps idle connections with no time limit.
  - The default is 90 seconds.
- `pool_max_idle_per_host(n)`: the largest number of idle connections kept per host.
  - `0` turns pooling off.
  - By default there is no limit.
- `retry_canceled_requests(flag)`: whether to retry a request whose reused connection failed before the request started. The default is `True`.
- `set_host(flag)`: whether to add a `Host` header derived from the URI. The default is `True`.
- HTTP/1 response parsing and writing:
  - `http1_read_buf_exact_size(sz)`
  - `http1_max_buf_size(max)`: the value must be at least 8192. Setting it clears the exact read buffer size.
  - `http1_allow_spaces_after_header_name_in_responses(val)`
  - `http1_allow_obsolete_multiline_headers_in_responses(val)`
  - `http1_ignore_invalid_headers_in_responses(val)`
  - `http1_title_case_headers(val)`
  - `http1_max_headers(val)`: the default is 100.
  - `http09_responses(val)`
- `http2_only(flag)`: require HTTP/2. HTTP/2 is not implemented (see below), so every request made with this set fails.

There are two ways to build the client:

- `build(connector)` combines the configuration with any connector that has an async `connect(dst)` method returning a `legacyclient.connect.Connection`.
- `build_http()` uses `TcpConnector`, which opens plain TCP connections to `http` destinations only.

### Errors

A failed request raises `legacyclient.errors.Error`.

- `kind` is an `ErrorKind`:
  - `CONNECT`
  - `SEND_REQUEST`
  - `CANCELED`
  - `USER_ABSOLUTE_URI_REQUIRED`
  - `USER_UNSUPPORTED_VERSION`
  - `USER_UNSUPPORTED_REQUEST_METHOD`
  - `CHANNEL_CLOSED`
- `is_connect()` tells connection failures apart from other failures.
- `source` holds the underlying cause, and the same cause is chained as `__cause__`.
- `connect_info` holds the `Connected` details of the connection when the error happened on one.

These requests are refused:

- A `CONNECT` request with version HTTP/1.0 raises `USER_UNSUPPORTED_REQUEST_METHOD`.
- A request with version HTTP/0.9 or HTTP/3 raises `USER_UNSUPPORTED_VERSION`.

### Connection metadata

`legacyclient.connect.Connected` describes an established connection.

- `is_proxied` says whether the connection goes through a proxy.
- `alpn` is an `Alpn` value.
- `extra` is a dict that is merged into every response's `extensions`.

`proxy(flag)` and `negotiated_h2()` each return a copy that shares a poison flag with the original. Calling `poison()` on any of these copies keeps the pool from reusing the connection.

## What it does not do

- HTTP/2 is not spoken. A request with version HTTP/2, or a connection that negotiated `h2`, raises `Error` with kind `USER_UNSUPPORTED_VERSION`.
- There is no TLS. `TcpConnector` connects only to `http` URLs, so `https` needs a connector you supply.
- There is no proxy tunnelling and no system proxy lookup.
- There is no server side.

## Running the tests

```
pip install -e ".[test]"
pytest
```