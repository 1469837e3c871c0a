"""Stream-like reading of raw bytes and length-prefixed string encoding."""

from __future__ import annotations

import struct
from typing import Any

from thera import clog

_LENGTH = struct.Struct("<I")
_BYTE_ORDER_CHARS = "@=<>!"


def serialise_string(value: str) -> bytes:
    """Encode a string as a little-endian uint32 length followed by its UTF-8 bytes."""
    encoded = value.encode("utf-8")
    return _LENGTH.pack(len(encoded)) + encoded


def deserialise_string(data: bytes) -> tuple[str, int]:
    """Decode a length-prefixed string; return it with the number of bytes consumed."""
    view = memoryview(data)
    if len(view) < _LENGTH.size:
        clog.error("Not enough data to read string length.", True)
    (length,) = _LENGTH.unpack_from(view)
    end = _LENGTH.size + length
    if len(view) < end:
        clog.error("Not enough data to read string.", True)
    return bytes(view[_LENGTH.size:end]).decode("utf-8"), end


class MemoryReader:
    """Reads values sequentially from a block of bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._position = 0

    def current(self) -> bytes:
        """Return the unread bytes."""
        return bytes(self._data[self._position:])

    def remaining(self) -> int:
        return len(self._data) - self._position

    def skip(self, count: int) -> None:
        if count < 0 or count > self.remaining():
            raise ValueError("cannot skip past the end of the data")
        self._position += count

    def read(self, fmt: str) -> Any:
        """Read values with a struct format (little-endian unless stated)."""
        if not fmt or fmt[0] not in _BYTE_ORDER_CHARS:
            fmt = "<" + fmt
        layout = struct.Struct(fmt)
        if layout.size > self.remaining():
            clog.error("Not enough data to read.", True)
        values = layout.unpack_from(self._data, self._position)
        self._position += layout.size
        return values[0] if len(values) == 1 else values

    def read_string(self) -> str:
        value, consumed = deserialise_string(self._data[self._position:])
        self._position += consumed
        return value