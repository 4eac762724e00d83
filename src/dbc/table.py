"""Base interfaces implemented by generated table classes."""

import io
from typing import BinaryIO, Optional, Tuple

from dbc.header import DbcHeader, const_parse_header


class DbcTable:
    """A table file decoded into a list of rows.

    Subclasses are dataclasses with a ``rows`` field and implement
    ``read``/``write`` for their own layout.
    """

    FILENAME = ""
    RECORD_SIZE = 0
    FIELD_COUNT = 0

    @classmethod
    def read(cls, b: BinaryIO) -> "DbcTable":
        raise NotImplementedError

    def write(self, b: BinaryIO) -> None:
        raise NotImplementedError

    @classmethod
    def from_bytes(cls, data: bytes) -> "DbcTable":
        return cls.read(io.BytesIO(data))

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write(buf)
        return buf.getvalue()

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)


class Indexable:
    """Lookup by primary key for tables that have one."""

    KEY = None  # TableKey subclass
    KEY_FIELD = "id"

    def get(self, key) -> Optional[object]:
        """First row whose primary key equals ``key``, or None.

        Rows are not sorted, so this is a linear scan. The returned row is
        the stored object; changes to it are visible in the table.
        """
        key = self.KEY.try_from(key)
        for row in self.rows:
            if getattr(row, self.KEY_FIELD) == key:
                return row
        return None


class ConstDbcTable:
    """A table decoded from an embedded buffer into a fixed tuple of rows."""

    OWNED = None  # Runtime table class

    def __init__(self, rows: Tuple = ()):
        self.rows = tuple(rows)

    @classmethod
    def const_read(cls, b: bytes, header: DbcHeader) -> "ConstDbcTable":
        raise NotImplementedError

    @classmethod
    def from_embedded(cls, b: bytes) -> "ConstDbcTable":
        """Parse the header and decode. Malformed data raises DecodeAbort."""
        return cls.const_read(b, const_parse_header(b))

    def to_owned(self) -> DbcTable:
        return self.OWNED(rows=[row.to_owned() for row in self.rows])

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rows == other.rows

    def __hash__(self):
        return hash(self.rows)
