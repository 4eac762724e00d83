"""Byte-level helpers used by generated table modules.

RowReader/RowWriter drive the runtime path: a cursor that advances by each
field's width, with strings resolved against (or added to) the string
block. The ``const_`` helpers serve the constant path: they work on the
embedded buffer at explicit offsets, never build growable collections,
return memoryview slices for strings, and abort on malformed data.
"""

import codecs
import struct
from typing import BinaryIO

from dbc.errors import (
    DbcError,
    DecodeAbort,
    EncodingError,
    InvalidStringOffsetError,
    UnexpectedEofError,
)
from dbc.field_types import (
    BOOL,
    BOOL32,
    FLOAT,
    INT8,
    INT16,
    INT32,
    SCALARS,
    STRING_OFFSET,
    UINT8,
    UINT16,
    UINT32,
    Scalar,
)
from dbc.localized import (
    ConstExtendedLocalizedString,
    ConstLocalizedString,
    ExtendedLocalizedString,
    LocalizedString,
)
from dbc.string_cache import StringCache

# Scalar kind -> cursor method suffix, e.g. reader.read_u32()
METHOD_SUFFIX = {
    "int8": "i8",
    "int16": "i16",
    "int32": "i32",
    "uint8": "u8",
    "uint16": "u16",
    "uint32": "u32",
    "float": "f32",
    "bool": "bool",
    "bool32": "bool32",
}

# Shared value of every empty borrowed string
EMPTY = memoryview(b"")


def read_exact(b: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes from a stream."""
    data = b.read(size)
    if len(data) != size:
        raise UnexpectedEofError(size, len(data))
    return data


def get_string(string_block: bytes, offset: int) -> str:
    """Resolve a string offset. Offset 0 is the empty string."""
    if offset == 0:
        return ""
    end = string_block.find(b"\x00", offset) if offset < len(string_block) else -1
    if end < 0:
        raise InvalidStringOffsetError(offset, len(string_block))
    try:
        return string_block[offset:end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(offset, e) from e


# ──────────────────────────────────────────────────────────────
# Runtime path
# ──────────────────────────────────────────────────────────────


class RowReader:
    """Cursor over the row block of a table."""

    __slots__ = ("_data", "_pos", "_strings")

    def __init__(self, data: bytes, string_block: bytes = b"\x00", offset: int = 0):
        self._data = data
        self._strings = string_block
        self._pos = offset

    @property
    def position(self) -> int:
        return self._pos

    def _read(self, scalar: Scalar):
        value = scalar.codec.unpack_from(self._data, self._pos)[0]
        self._pos += scalar.width
        return value

    def read_i8(self) -> int:
        return self._read(INT8)

    def read_i16(self) -> int:
        return self._read(INT16)

    def read_i32(self) -> int:
        return self._read(INT32)

    def read_u8(self) -> int:
        return self._read(UINT8)

    def read_u16(self) -> int:
        return self._read(UINT16)

    def read_u32(self) -> int:
        return self._read(UINT32)

    def read_f32(self) -> float:
        return self._read(FLOAT)

    def read_bool(self) -> bool:
        return self._read(BOOL) != 0

    def read_bool32(self) -> bool:
        return self._read(BOOL32) != 0

    def read_string(self) -> str:
        return get_string(self._strings, self._read(STRING_OFFSET))

    def read_localized_string(self) -> LocalizedString:
        strings = [self.read_string() for _ in LocalizedString.SLOTS]
        return LocalizedString(*strings, flags=self.read_u32())

    def read_extended_localized_string(self) -> ExtendedLocalizedString:
        strings = [self.read_string() for _ in ExtendedLocalizedString.SLOTS]
        return ExtendedLocalizedString(*strings, flags=self.read_u32())


class RowWriter:
    """Appends row bytes, routing strings through a StringCache."""

    __slots__ = ("_out", "cache")

    def __init__(self, cache: StringCache = None):
        self._out = bytearray()
        self.cache = cache if cache is not None else StringCache()

    def _write(self, scalar: Scalar, value) -> None:
        try:
            self._out += scalar.codec.pack(value)
        except struct.error as e:
            raise ValueError(f"{value!r} does not fit {scalar.name}") from e

    def write_i8(self, value: int) -> None:
        self._write(INT8, value)

    def write_i16(self, value: int) -> None:
        self._write(INT16, value)

    def write_i32(self, value: int) -> None:
        self._write(INT32, value)

    def write_u8(self, value: int) -> None:
        self._write(UINT8, value)

    def write_u16(self, value: int) -> None:
        self._write(UINT16, value)

    def write_u32(self, value: int) -> None:
        self._write(UINT32, value)

    def write_f32(self, value: float) -> None:
        self._write(FLOAT, value)

    def write_bool(self, value: bool) -> None:
        self._write(BOOL, 1 if value else 0)

    def write_bool32(self, value: bool) -> None:
        self._write(BOOL32, 1 if value else 0)

    def write_string(self, value: str) -> None:
        self._write(STRING_OFFSET, self.cache.add(value))

    def write_localized_string(self, value) -> None:
        """Write either localized variant: offsets in slot order, then flags."""
        for s in value.strings():
            self.write_string(s)
        self.write_u32(value.flags)

    write_extended_localized_string = write_localized_string

    def getvalue(self) -> bytes:
        return bytes(self._out)

    def __len__(self) -> int:
        return len(self._out)


# ──────────────────────────────────────────────────────────────
# Constant path
# ──────────────────────────────────────────────────────────────


def const_read_int(b: bytes, offset: int, width: int, signed: bool) -> int:
    """Little-endian integer from ``b[offset:offset + width]``."""
    if offset + width > len(b):
        raise DecodeAbort(f"read of {width} bytes at {offset} past end of table")
    return int.from_bytes(b[offset:offset + width], "little", signed=signed)


def const_read_f32(b: bytes, offset: int) -> float:
    if offset + FLOAT.width > len(b):
        raise DecodeAbort(f"read of 4 bytes at {offset} past end of table")
    return FLOAT.codec.unpack_from(b, offset)[0]


def get_string_from_block(
    b: bytes, offset: int, string_block: int, string_end: int
) -> memoryview:
    """Borrow the string whose u32 offset is stored at ``b[offset]``.

    ``string_block`` and ``string_end`` are the absolute bounds of the string
    block in ``b``; the string and its NUL must lie inside them.
    Returns a memoryview slice of ``b``; nothing is copied.
    """
    start = const_read_int(b, offset, STRING_OFFSET.width, False)
    if start == 0:
        return EMPTY
    start += string_block
    end = b.find(b"\x00", start, string_end) if start < string_end else -1
    if end < 0:
        raise DecodeAbort(f"string offset {start - string_block} outside string block")
    view = memoryview(b)[start:end]
    try:
        codecs.utf_8_decode(view, "strict", True)
    except UnicodeDecodeError:
        raise DecodeAbort(f"invalid UTF-8 at string offset {start - string_block}") from None
    return view


def const_localized_string(
    b: bytes, offset: int, string_block: int, string_end: int
) -> ConstLocalizedString:
    slots = len(ConstLocalizedString.SLOTS)
    width = STRING_OFFSET.width
    strings = [
        get_string_from_block(b, offset + i * width, string_block, string_end) for i in range(slots)
    ]
    flags = const_read_int(b, offset + slots * width, width, False)
    return ConstLocalizedString(*strings, flags)


def const_extended_localized_string(
    b: bytes, offset: int, string_block: int, string_end: int
) -> ConstExtendedLocalizedString:
    slots = len(ConstExtendedLocalizedString.SLOTS)
    width = STRING_OFFSET.width
    strings = [
        get_string_from_block(b, offset + i * width, string_block, string_end) for i in range(slots)
    ]
    flags = const_read_int(b, offset + slots * width, width, False)
    return ConstExtendedLocalizedString(*strings, flags)


def reader_method(kind: str) -> str:
    """RowReader method name for a scalar kind."""
    return f"read_{METHOD_SUFFIX[SCALARS[kind].name]}"


def writer_method(kind: str) -> str:
    """RowWriter method name for a scalar kind."""
    return f"write_{METHOD_SUFFIX[SCALARS[kind].name]}"


def const_convert(cls, value: int):
    """``cls.try_from(value)`` for keys, enums and flags, aborting on failure."""
    try:
        return cls.try_from(value)
    except DbcError as e:
        raise DecodeAbort(str(e)) from None
