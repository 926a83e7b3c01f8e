"""Reading of the redis wire protocol as sent by clients."""

from __future__ import annotations

import re
from typing import BinaryIO

_INTEGER = re.compile(rb"[+-]?[0-9]+")


class ProtocolError(ValueError):
    """Unexpected input on the wire."""

    def __init__(self, message: str = "invalid request") -> None:
        super().__init__(message)


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _read_line(reader: BinaryIO) -> bytes:
    line = reader.readline()
    if not line.endswith(b"\n"):
        raise EOFError("unexpected end of stream")
    if len(line) < 3:
        raise ProtocolError()
    return line


def _parse_int(raw: bytes) -> int:
    if not _INTEGER.fullmatch(raw):
        raise ProtocolError(f"invalid integer: {raw!r}")
    return int(raw)


def _read_exactly(reader: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = reader.read(remaining)
        if not chunk:
            raise EOFError("unexpected end of stream")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_array(reader: BinaryIO) -> list[str]:
    """Read one request: an array of bulk strings."""
    line = _read_line(reader)
    if line[:1] != b"*":
        raise ProtocolError()
    count = _parse_int(line[1:-2])
    # A negative count (a nil array) reads as empty.
    return [read_string(reader) for _ in range(count)]


def read_string(reader: BinaryIO) -> str:
    """Read a simple string, error, integer or bulk string as text."""
    line = _read_line(reader)
    kind = line[:1]
    if kind in (b"+", b"-", b":"):
        return _decode(line[1:-2])
    if kind == b"$":
        length = _parse_int(line[1:-2])
        if length < 0:
            return ""
        data = _read_exactly(reader, length + 2)
        return _decode(data[:length])
    raise ProtocolError()