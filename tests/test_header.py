"""Tests for the DBC header codec."""

import os
import struct
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from dbc.errors import DecodeAbort, InvalidMagicError, StructuralError, UnexpectedEofError
from dbc.header import HEADER_SIZE, MAGIC, DbcHeader, const_parse_header, parse_header


def _raw_header(magic=b"WDBC", count=2, fields=3, size=12, strings=5):
    return magic + struct.pack("<IIII", count, fields, size, strings)


def test_write_header_layout():
    header = DbcHeader(record_count=2, field_count=3, record_size=12, string_block_size=5)
    data = header.write_header()
    assert len(data) == HEADER_SIZE
    assert data[:4] == MAGIC
    assert data == _raw_header(), f"Unexpected header bytes {data!r}"
    assert header.rows_size == 24
    assert header.file_size == 20 + 24 + 5
    print("  PASS: test_write_header_layout")


def test_parse_header():
    header = parse_header(_raw_header(count=7, fields=9, size=36, strings=100))
    assert header == DbcHeader(7, 9, 36, 100)
    # Trailing bytes are ignored
    assert parse_header(_raw_header() + b"rest") == DbcHeader(2, 3, 12, 5)
    print("  PASS: test_parse_header")


def test_parse_header_bad_magic():
    try:
        parse_header(_raw_header(magic=b"WDB2"))
        assert False, "Should have raised InvalidMagicError"
    except InvalidMagicError as e:
        assert isinstance(e, StructuralError)
        assert e.actual == b"WDB2"
    print("  PASS: test_parse_header_bad_magic")


def test_parse_header_short():
    try:
        parse_header(b"WDBC\x00\x00")
        assert False, "Should have raised UnexpectedEofError"
    except UnexpectedEofError as e:
        assert e.expected == 20 and e.actual == 6
    print("  PASS: test_parse_header_short")


def test_const_parse_header():
    data = _raw_header(count=1, fields=1, size=4, strings=1) + b"\x01\x00\x00\x00" + b"\x00"
    assert const_parse_header(data) == DbcHeader(1, 1, 4, 1)

    for bad in (b"WDBC", _raw_header(magic=b"XXXX"), data[:-1]):
        try:
            const_parse_header(bad)
            assert False, f"Should have aborted on {bad!r}"
        except DecodeAbort:
            pass
    print("  PASS: test_const_parse_header")


if __name__ == "__main__":
    test_write_header_layout()
    test_parse_header()
    test_parse_header_bad_magic()
    test_parse_header_short()
    test_const_parse_header()
