import pytest

from legacyclient.errors import Error, ErrorKind


def test_display_names_kind():
    assert str(Error(ErrorKind.CONNECT)) == "client error (Connect)"


def test_display_uses_kind_value_for_every_kind():
    for kind in ErrorKind:
        assert str(Error(kind)) == f"client error ({kind.value})"


def test_is_connect():
    assert Error(ErrorKind.CONNECT).is_connect() is True
    assert Error(ErrorKind.SEND_REQUEST).is_connect() is False


def test_is_canceled():
    assert Error(ErrorKind.CANCELED).is_canceled() is True
    assert Error(ErrorKind.CONNECT).is_canceled() is False


def test_source_is_chained_as_cause():
    cause = OSError("mock connection failure")
    err = Error(ErrorKind.SEND_REQUEST, cause)
    assert err.source is cause
    assert err.__cause__ is cause


def test_string_source_becomes_exception():
    err = Error(ErrorKind.CANCELED, "ALPN upgraded to HTTP/2")
    assert isinstance(err.source, Exception)
    assert str(err.source) == "ALPN upgraded to HTTP/2"


def test_no_source_by_default():
    err = Error(ErrorKind.CHANNEL_CLOSED)
    assert err.source is None
    assert err.connect_info is None


def test_with_connect_info_keeps_kind_and_source():
    cause = ValueError("boom")
    info = object()
    err = Error(ErrorKind.CANCELED, cause)
    updated = err.with_connect_info(info)
    assert updated.connect_info is info
    assert updated.kind is ErrorKind.CANCELED
    assert updated.source is cause
    assert err.connect_info is None


def test_can_be_raised_and_caught():
    err = Error(ErrorKind.CANCELED)
    with pytest.raises(Error) as excinfo:
        raise err
    assert excinfo.value is err
    assert excinfo.value.is_canceled() is True
    assert excinfo.value.is_connect() is False


def test_kind_accepts_value_string():
    assert Error("Connect").kind is ErrorKind.CONNECT