"""Bases for generated enum and flag types.

An enum field may only hold one of its declared values. A flag field may
hold any combination of its declared bits, and nothing else.
"""

import enum
from typing import Dict, Optional

from dbc.errors import InvalidDiscriminantError
from dbc.field_types import SCALARS


class DbcEnum(enum.IntEnum):
    """Closed integer -> symbol mapping."""

    @classmethod
    def from_value(cls, value: int) -> Optional["DbcEnum"]:
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def try_from(cls, value: int) -> "DbcEnum":
        member = cls.from_value(value)
        if member is None:
            raise InvalidDiscriminantError(cls.__name__, value)
        return member

    @classmethod
    def default(cls) -> "DbcEnum":
        """The first declared member."""
        return next(iter(cls))

    def as_int(self) -> int:
        return int(self)


class DbcFlags:
    """Bit set over a declared list of flags."""

    __slots__ = ("value",)

    KIND = "uint32"
    FLAGS: Dict[str, int] = {}

    def __init__(self, value: int = 0):
        # Signed kinds store the top bit as a negative value, as read from disk
        scalar = SCALARS[self.KIND]
        if scalar.min_value < 0 and value > scalar.max_value:
            value -= 1 << (scalar.width * 8)
        self.value = value

    @classmethod
    def known_bits(cls) -> int:
        bits = 0
        for flag in cls.FLAGS.values():
            bits |= flag
        return bits & cls._mask()

    @classmethod
    def _mask(cls) -> int:
        return (1 << (SCALARS[cls.KIND].width * 8)) - 1

    @classmethod
    def try_from(cls, value: int) -> "DbcFlags":
        """Accept only combinations of declared bits."""
        unknown = (value & cls._mask()) & ~cls.known_bits()
        if unknown:
            raise InvalidDiscriminantError(cls.__name__, value)
        return cls(value)

    def as_int(self) -> int:
        return self.value

    def names(self):
        """Declared flags set in this value, in declaration order."""
        return [name for name, bit in self.FLAGS.items() if bit and (self.value & bit) == bit]

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return other.value == self.value

    def __hash__(self):
        return hash((type(self).__name__, self.value))

    def __repr__(self):
        return f"{type(self).__name__}({self.value:#x})"
