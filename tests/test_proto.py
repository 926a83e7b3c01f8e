import io

import pytest

from miniredis.proto import ProtocolError, read_array, read_string


def _reader(payload):
    if isinstance(payload, str):
        payload = payload.encode()
    return io.BufferedReader(io.BytesIO(payload))


@pytest.mark.parametrize(
    "payload, expected",
    [
        ("*1\r\n$4\r\nPING\r\n", ["PING"]),
        ("*2\r\n$4\r\nLLEN\r\n$6\r\nmylist\r\n", ["LLEN", "mylist"]),
        ("*0\r\n", []),
        ("*-1\r\n", []),
    ],
)
def test_read_array(payload, expected):
    assert read_array(_reader(payload)) == expected


@pytest.mark.parametrize(
    "payload",
    [
        "*2\r\n$4\r\nLLEN\r\n$6\r\nmyl",
        "PING",
    ],
)
def test_read_array_eof(payload):
    with pytest.raises(EOFError):
        read_array(_reader(payload))


def test_read_array_requires_array_marker():
    with pytest.raises(ProtocolError):
        read_array(_reader("$4\r\nPING\r\n"))


def test_read_array_bad_count():
    with pytest.raises(ProtocolError):
        read_array(_reader("*x\r\n"))


def test_read_array_reads_one_request_at_a_time():
    reader = _reader("*1\r\n$4\r\nPING\r\n*2\r\n$4\r\nECHO\r\n$2\r\nhi\r\n")
    assert read_array(reader) == ["PING"]
    assert read_array(reader) == ["ECHO", "hi"]


@pytest.mark.parametrize(
    "payload, expected",
    [
        ("+hello world\r\n", "hello world"),
        ("-some error\r\n", "some error"),
        (":42\r\n", "42"),
        (":\r\n", ""),
        ("$4\r\nabcd\r\n", "abcd"),
        ("$-1\r\n", ""),
    ],
)
def test_read_string(payload, expected):
    assert read_string(_reader(payload)) == expected


def test_read_string_big_payload():
    big = "X" * (1 << 24)
    payload = f"${len(big)}\r\n{big}\r\n"
    assert read_string(_reader(payload)) == big


@pytest.mark.parametrize("payload", ["", ":42", "XXX", "XXXXXX"])
def test_read_string_eof(payload):
    with pytest.raises(EOFError):
        read_string(_reader(payload))


@pytest.mark.parametrize("payload", ["\r\n", "XXXX\r\n"])
def test_read_string_protocol_error(payload):
    with pytest.raises(ProtocolError):
        read_string(_reader(payload))


def test_protocol_error_message():
    with pytest.raises(ProtocolError, match="invalid request"):
        read_string(_reader("XXXX\r\n"))


def test_read_string_bulk_binary_round_trip():
    raw = b"$3\r\n\xff\x00a\r\n"
    value = read_string(_reader(raw))
    assert value.encode("utf-8", "surrogateescape") == b"\xff\x00a"