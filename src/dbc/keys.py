"""Primary key newtypes.

Each generated table with a primary key gets a subclass of TableKey that
names its storage kind. Values of narrower kinds convert without checks;
anything else is range-checked against the storage kind.
"""

from functools import total_ordering

from dbc.errors import KeyConversionError
from dbc.field_types import LOSSLESS_FROM, SCALARS


@total_ordering
class TableKey:
    """Integer wrapper identifying a row of one table."""

    __slots__ = ("id",)

    STORAGE = "uint32"
    TABLE = ""

    def __init__(self, id: int = 0):
        if not SCALARS[self.STORAGE].contains(id):
            raise KeyConversionError(type(self).__name__, id, self.STORAGE)
        self.id = id

    @classmethod
    def accepts(cls):
        """Kinds that convert into this key without a range check."""
        return LOSSLESS_FROM[cls.STORAGE]

    @classmethod
    def from_int(cls, value: int, kind: str):
        """Convert a value read as ``kind``.

        Accepted kinds never fail. Wider kinds are range-checked and raise
        KeyConversionError when the value does not fit.
        """
        if kind in cls.accepts():
            key = cls.__new__(cls)
            key.id = value
            return key
        return cls.try_from(value)

    @classmethod
    def try_from(cls, value):
        """Build a key from an int or another key of this table."""
        if isinstance(value, cls):
            return value
        if isinstance(value, TableKey):
            value = value.id
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{cls.__name__} needs an int, got {type(value).__name__}")
        return cls(value)

    def __int__(self) -> int:
        return self.id

    def __index__(self) -> int:
        return self.id

    def __eq__(self, other):
        if isinstance(other, TableKey):
            return type(other) is type(self) and other.id == self.id
        return NotImplemented

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.id < other.id

    def __hash__(self):
        return hash((type(self).__name__, self.id))

    def __repr__(self):
        return f"{type(self).__name__}({self.id})"
