"""Network packets, packet aggregates and packet handler registries."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, Optional

from thera import clog
from thera.memory import MemoryReader, serialise_string

MAX_FIELD = 0xFFFF
"""Largest value a packet ID, size or count field can hold."""

_HEADER = struct.Struct("<HH")
_BYTE_ORDER_CHARS = "@=<>!"

PacketHandler = Callable[[Any, "Packet"], None]


def _layout(fmt: str) -> struct.Struct:
    if not fmt or fmt[0] not in _BYTE_ORDER_CHARS:
        fmt = "<" + fmt
    return struct.Struct(fmt)


class BasePacketType(enum.IntEnum):
    """Packet IDs reserved by the networking layer."""

    CONNECT = 0
    DISCONNECT = 1
    HEARTBEAT = 2


FIRST_USER_ID = int(BasePacketType.HEARTBEAT) + 1
"""First packet ID free for application use."""


@dataclass
class PacketHeader:
    """The ID and data size found before every packet's data."""

    HEADER_SIZE: ClassVar[int] = _HEADER.size

    id: int
    size: int = 0


class Packet:
    """An identified block of data with a 16-bit ID and 16-bit size."""

    def __init__(self, packet_id: int) -> None:
        packet_id = int(packet_id)
        if not 0 <= packet_id <= MAX_FIELD:
            raise ValueError(f"packet id {packet_id} is out of range")
        self._id = packet_id
        self._data = bytearray()

    @property
    def id(self) -> int:
        return self._id

    @property
    def header(self) -> PacketHeader:
        return PacketHeader(self._id, len(self._data))

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    def size(self) -> int:
        """Size of the packet's data, excluding the header."""
        return len(self._data)

    def full_size(self) -> int:
        """Size of the packet including its header."""
        return PacketHeader.HEADER_SIZE + len(self._data)

    def write_bytes(self, data: bytes) -> None:
        """Append raw bytes to the packet's data."""
        if len(self._data) + len(data) > MAX_FIELD:
            raise OverflowError("packet data would exceed the maximum packet size")
        self._data.extend(data)

    def write_value(self, fmt: str, value: Any) -> None:
        """Append a value (or a tuple of values) packed with a struct format."""
        values = value if isinstance(value, tuple) else (value,)
        self.write_bytes(_layout(fmt).pack(*values))

    def write_string(self, value: str) -> None:
        """Append a length-prefixed string."""
        self.write_bytes(serialise_string(value))

    def pop_value(self, fmt: str) -> Any:
        """Remove and return a value from the end of the packet's data."""
        layout = _layout(fmt)
        if layout.size > len(self._data):
            raise ValueError("not enough data in packet to pop value")
        start = len(self._data) - layout.size
        values = layout.unpack_from(self._data, start)
        del self._data[start:]
        return values[0] if len(values) == 1 else values

    def reader(self) -> MemoryReader:
        """Return a reader over the packet's data."""
        return MemoryReader(bytes(self._data))

    def to_bytes(self) -> bytes:
        return _HEADER.pack(self._id, len(self._data)) + bytes(self._data)

    @classmethod
    def from_bytes(cls, data: bytes) -> Packet:
        """Build a packet from raw bytes holding exactly one header and its data."""
        reader = MemoryReader(data)
        packet = cls.from_reader(reader)
        if reader.remaining():
            raise ValueError("trailing bytes after packet")
        return packet

    @classmethod
    def from_reader(cls, reader: MemoryReader) -> Packet:
        """Read one packet from a reader positioned at a packet header."""
        if reader.remaining() < PacketHeader.HEADER_SIZE:
            raise ValueError("not enough data for a packet header")
        packet_id, size = reader.read("HH")
        if reader.remaining() < size:
            raise ValueError("not enough data for the packet body")
        packet = cls(packet_id)
        packet.write_bytes(reader.current()[:size])
        reader.skip(size)
        return packet

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Packet):
            return NotImplemented
        return self._id == other._id and self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Packet(id={self._id}, size={len(self._data)})"


class AggregatePacket:
    """A group of packets bundled behind a count and total-size header."""

    HEADER_SIZE: ClassVar[int] = _HEADER.size

    def __init__(self) -> None:
        self.packets: list[Packet] = []
        self._size = 0

    @property
    def size(self) -> int:
        """Total size of the contained packets, headers included."""
        return self._size

    def add_packet(self, packet: Packet) -> None:
        """Add a copy of a packet to the aggregate."""
        if len(self.packets) >= MAX_FIELD:
            raise OverflowError("aggregate holds the maximum number of packets")
        if self._size + packet.full_size() > MAX_FIELD:
            raise OverflowError("aggregate would exceed the maximum size")
        snapshot = Packet(packet.id)
        snapshot.write_bytes(packet.data)
        self.packets.append(snapshot)
        self._size += snapshot.full_size()

    def add_from_reader(self, reader: MemoryReader) -> Packet:
        """Read one packet from a reader and add it; return the packet."""
        packet = Packet.from_reader(reader)
        self.add_packet(packet)
        return packet

    def to_bytes(self) -> bytes:
        body = b"".join(packet.to_bytes() for packet in self.packets)
        return _HEADER.pack(len(self.packets), self._size) + body

    @classmethod
    def from_bytes(cls, data: bytes) -> AggregatePacket:
        """Parse an aggregate from raw bytes holding exactly one aggregate."""
        reader = MemoryReader(data)
        if reader.remaining() < cls.HEADER_SIZE:
            raise ValueError("not enough data for an aggregate header")
        count, size = reader.read("HH")
        if reader.remaining() != size:
            raise ValueError("aggregate size does not match its data")
        aggregate = cls()
        for _ in range(count):
            aggregate.add_from_reader(reader)
        if reader.remaining():
            raise ValueError("trailing bytes after aggregate packets")
        return aggregate

    def __len__(self) -> int:
        return len(self.packets)

    def __iter__(self) -> Iterator[Packet]:
        return iter(self.packets)


class PacketRegistry:
    """Maps packet IDs to the handlers that process them."""

    def __init__(self) -> None:
        self._handlers: dict[int, PacketHandler] = {}

    def register(self, packet_id: int, handler: PacketHandler) -> None:
        """Register a handler for a packet ID, replacing any previous one."""
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[int(packet_id)] = handler

    def get(self, packet_id: int) -> Optional[PacketHandler]:
        """Return the handler for a packet ID, or None."""
        return self._handlers.get(int(packet_id))

    def dispatch(self, connection: Any, packet: Packet) -> bool:
        """Call the packet's handler; return whether one was registered."""
        handler = self.get(packet.id)
        if handler is None:
            clog.warning(f"No handler registered for packet id {packet.id}.")
            return False
        handler(connection, packet)
        return True