"""DBC file header.

Layout (20 bytes, little-endian):
  [4B magic: WDBC]
  [4B record_count]
  [4B field_count]
  [4B record_size]
  [4B string_block_size]

``record_count * record_size`` bytes of rows follow, then exactly
``string_block_size`` bytes of strings.
"""

import struct
from dataclasses import dataclass

from dbc.errors import DecodeAbort, InvalidMagicError, UnexpectedEofError

MAGIC = b"WDBC"
HEADER_SIZE = 20

_HEADER = struct.Struct("<4sIIII")


@dataclass(frozen=True)
class DbcHeader:
    """The four counts stored after the magic."""

    record_count: int
    field_count: int
    record_size: int
    string_block_size: int

    @property
    def rows_size(self) -> int:
        return self.record_count * self.record_size

    @property
    def file_size(self) -> int:
        return HEADER_SIZE + self.rows_size + self.string_block_size

    def write_header(self) -> bytes:
        """Serialize to 20 bytes. No validation is done here."""
        return _HEADER.pack(
            MAGIC,
            self.record_count,
            self.field_count,
            self.record_size,
            self.string_block_size,
        )


def parse_header(data: bytes) -> DbcHeader:
    """Parse the first 20 bytes of a DBC file.

    Raises:
        UnexpectedEofError: If fewer than 20 bytes are given.
        InvalidMagicError: If the magic is not ``WDBC``.
    """
    if len(data) < HEADER_SIZE:
        raise UnexpectedEofError(HEADER_SIZE, len(data))

    magic, record_count, field_count, record_size, string_block_size = _HEADER.unpack_from(
        data, 0
    )
    if magic != MAGIC:
        raise InvalidMagicError(magic)

    return DbcHeader(
        record_count=record_count,
        field_count=field_count,
        record_size=record_size,
        string_block_size=string_block_size,
    )


def const_parse_header(data: bytes) -> DbcHeader:
    """Header parse for embedded tables: aborts instead of raising."""
    if len(data) < HEADER_SIZE:
        raise DecodeAbort("embedded table shorter than a header")
    if bytes(data[:4]) != MAGIC:
        raise DecodeAbort("embedded table has invalid magic")

    _, record_count, field_count, record_size, string_block_size = _HEADER.unpack_from(
        data, 0
    )
    header = DbcHeader(record_count, field_count, record_size, string_block_size)
    if len(data) < header.file_size:
        raise DecodeAbort(
            f"embedded table is {len(data)} bytes, header says {header.file_size}"
        )
    return header
