import pytest

from legacyclient.messages import Request, Response, Version
from legacyclient.uri import Uri


def test_version_wire_names():
    assert str(Version.HTTP_11) == "HTTP/1.1"
    assert Version("HTTP/1.0") is Version.HTTP_10
    assert Version.HTTP_2.value == "HTTP/2.0"


def test_request_defaults_and_uri_parsing():
    req = Request("http://hyper.local/a")
    assert req.method == "GET"
    assert req.version is Version.HTTP_11
    assert req.uri == Uri.parse("http://hyper.local/a")
    assert req.headers == []
    assert req.body == b""


def test_request_header_lookup_is_case_insensitive():
    req = Request("http://mocked", headers=[("hoSt", "mocked"), ("conNection", "close")])
    assert req.header("host") == "mocked"
    assert req.header("CONNECTION") == "close"
    assert req.header("missing") is None
    assert req.headers[0][0] == "hoSt"


def test_request_header_returns_first_value():
    req = Request("http://mocked", headers=[("X-A", "1"), ("x-a", "2")])
    assert req.header("x-a") == "1"


def test_request_accepts_mapping_headers():
    req = Request("http://mocked", headers={"Accept": "*/*"})
    assert req.headers == [("Accept", "*/*")]


def test_request_body_string_is_encoded():
    req = Request("http://mocked", method="POST", body="Hallo!")
    assert req.body == b"Hallo!"


@pytest.mark.parametrize("method", ["", "GE T", "GET\r\n"])
def test_request_rejects_invalid_method(method):
    with pytest.raises(ValueError):
        Request("http://mocked", method=method)


def test_request_rejects_header_injection():
    with pytest.raises(ValueError):
        Request("http://mocked", headers=[("X-A", "a\r\nb: c")])
    with pytest.raises(ValueError):
        Request("http://mocked", headers=[("bad name", "v")])


def test_request_rejects_malformed_uri():
    with pytest.raises(ValueError):
        Request("http://bad host/")


def test_response_header_and_status():
    resp = Response(200, headers=[("Transfer-Encoding", "chunked")], body=b"hello")
    assert resp.status == 200
    assert resp.header("transfer-encoding") == "chunked"
    assert resp.body == b"hello"


@pytest.mark.parametrize("status", [99, 1000])
def test_response_rejects_invalid_status(status):
    with pytest.raises(ValueError):
        Response(status)