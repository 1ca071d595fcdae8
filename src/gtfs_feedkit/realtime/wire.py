"""Schema-less reader for the Protocol Buffer binary wire format.

The reader walks a buffer and yields one WireField per tag. It knows nothing
about GTFS-realtime; interpretation of field numbers is left to the builder.
"""

import struct
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum

from gtfs_feedkit.errors import (
    InvalidTag,
    InvalidUtf8,
    InvalidWireType,
    NestingTooDeep,
    TruncatedMessage,
    VarintOverflow,
)

MAX_VARINT_BYTES = 10
DEFAULT_MAX_DEPTH = 32

_FLOAT = struct.Struct("<f")
_DOUBLE = struct.Struct("<d")


class WireType(IntEnum):
    """Low three bits of a field tag."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


@dataclass(frozen=True, slots=True)
class WireField:
    """One decoded field event.

    Attributes:
        number: Field number from the tag.
        wire_type: Wire type from the tag.
        value: int for varint/fixed fields, memoryview for length-delimited
            fields, None for skipped groups.
        offset: Absolute offset of the tag in the original buffer.
        value_offset: Absolute offset of the first value byte (after the
            length prefix for length-delimited fields).
    """

    number: int
    wire_type: WireType
    value: int | memoryview | None
    offset: int
    value_offset: int


def decode_varint(buf: memoryview, pos: int, end: int, base: int = 0) -> tuple[int, int]:
    """Decode a base-128 little-endian varint.

    Args:
        buf: Buffer to read from.
        pos: Position of the first varint byte.
        end: Exclusive end of the readable region.
        base: Absolute offset of `buf[0]`, used in error offsets.

    Returns:
        Tuple of (value, position after the varint).

    Raises:
        TruncatedMessage: If the region ends before the final byte.
        VarintOverflow: If the varint is longer than ten bytes.
    """
    result = 0
    shift = 0
    start = pos
    while True:
        if pos >= end:
            raise TruncatedMessage("Truncated varint", base + start)
        if pos - start >= MAX_VARINT_BYTES:
            raise VarintOverflow("Varint longer than 10 bytes", base + start)
        byte = buf[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            # 64-bit wire values; bits beyond 64 from a 10th byte are discarded
            return result & 0xFFFFFFFFFFFFFFFF, pos
        shift += 7


class WireReader:
    """Iterate fields of one message held in a bounded region of a buffer."""

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        base: int = 0,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        """Initialize the reader.

        Args:
            data: Message bytes. Only this region is ever read.
            base: Absolute offset of `data[0]` in the top-level buffer.
            max_depth: Maximum nesting of skipped groups.
        """
        self._buf = memoryview(data)
        if self._buf.format != "B":
            self._buf = self._buf.cast("B")
        self._end = len(self._buf)
        self.base = base
        self.max_depth = max_depth

    def __len__(self) -> int:
        return self._end

    def __iter__(self) -> Iterator[WireField]:
        return self.fields()

    def fields(self) -> Iterator[WireField]:
        """Yield every field in wire order.

        Raises:
            TruncatedMessage: On exhaustion inside a field.
            InvalidTag: On field number zero.
            InvalidWireType: On wire types 6 and 7, or a stray end-group.
        """
        pos = 0
        while pos < self._end:
            field, pos = self._read_field(pos, depth=0)
            if field.wire_type is WireType.END_GROUP:
                raise InvalidWireType("Unexpected end-group tag", field.offset)
            yield field

    def _read_tag(self, pos: int) -> tuple[int, WireType, int]:
        tag_offset = self.base + pos
        tag, pos = decode_varint(self._buf, pos, self._end, self.base)
        number = tag >> 3
        raw_type = tag & 0x7
        if number == 0:
            raise InvalidTag("Field number 0 is not allowed", tag_offset)
        try:
            wire_type = WireType(raw_type)
        except ValueError:
            raise InvalidWireType(f"Invalid wire type {raw_type}", tag_offset) from None
        return number, wire_type, pos

    def _take(self, pos: int, size: int) -> int:
        if size > self._end - pos:
            raise TruncatedMessage(
                f"Field needs {size} bytes, {self._end - pos} remain", self.base + pos
            )
        return pos + size

    def _read_field(self, pos: int, depth: int) -> tuple[WireField, int]:
        tag_offset = self.base + pos
        number, wire_type, pos = self._read_tag(pos)
        start = pos

        if wire_type is WireType.VARINT:
            value, pos = decode_varint(self._buf, pos, self._end, self.base)
            return WireField(number, wire_type, value, tag_offset, self.base + start), pos

        if wire_type is WireType.FIXED64:
            end = self._take(pos, 8)
            value = int.from_bytes(self._buf[pos:end], "little")
            return WireField(number, wire_type, value, tag_offset, self.base + pos), end

        if wire_type is WireType.FIXED32:
            end = self._take(pos, 4)
            value = int.from_bytes(self._buf[pos:end], "little")
            return WireField(number, wire_type, value, tag_offset, self.base + pos), end

        if wire_type is WireType.LENGTH_DELIMITED:
            size, pos = decode_varint(self._buf, pos, self._end, self.base)
            end = self._take(pos, size)
            return WireField(
                number, wire_type, self._buf[pos:end], tag_offset, self.base + pos
            ), end

        if wire_type is WireType.START_GROUP:
            pos = self._skip_group(number, pos, depth + 1)
            return WireField(number, wire_type, None, tag_offset, self.base + start), pos

        return WireField(number, wire_type, None, tag_offset, self.base + start), pos

    def _skip_group(self, number: int, pos: int, depth: int) -> int:
        if depth > self.max_depth:
            raise NestingTooDeep("Group nesting too deep", self.base + pos)
        while pos < self._end:
            field, pos = self._read_field(pos, depth)
            if field.wire_type is WireType.END_GROUP:
                if field.number != number:
                    raise InvalidWireType("Mismatched end-group tag", field.offset)
                return pos
        raise TruncatedMessage("Unterminated group", self.base + pos)

    def sub_reader(self, field: WireField) -> "WireReader":
        """Return a reader over a length-delimited field's payload."""
        if not isinstance(field.value, memoryview):
            raise InvalidWireType("Field is not length-delimited", field.offset)
        return WireReader(field.value, field.value_offset, self.max_depth)


def as_int32(value: int) -> int:
    """Reinterpret a varint as a signed 32-bit integer."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def as_int64(value: int) -> int:
    """Reinterpret a varint as a signed 64-bit integer."""
    return value - (1 << 64) if value & (1 << 63) else value


def as_uint32(value: int) -> int:
    return value & 0xFFFFFFFF


def as_sint(value: int) -> int:
    """Undo zigzag encoding."""
    return (value >> 1) ^ -(value & 1)


def as_float(value: int) -> float:
    """Reinterpret fixed32 bits as an IEEE 754 single."""
    return _FLOAT.unpack(value.to_bytes(4, "little"))[0]


def as_double(value: int) -> float:
    """Reinterpret fixed64 bits as an IEEE 754 double."""
    return _DOUBLE.unpack(value.to_bytes(8, "little"))[0]


def as_string(value: memoryview, offset: int | None = None) -> str:
    """Decode a length-delimited payload as UTF-8 text."""
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidUtf8(f"Invalid UTF-8 in string field: {e.reason}", offset) from e
