"""Field-type model for DBC rows.

Every field kind has a fixed byte width. The scalar table below is the only
place widths and struct formats are spelled out; the runtime reader/writer,
the constant path helpers and the source generator all look them up here.

All values are little-endian.
"""

import struct
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Scalar:
    """Layout of one atomic value."""

    name: str  # Schema spelling, e.g. "uint32"
    codec: struct.Struct
    python_type: str  # "int", "float" or "bool"
    default: str  # Literal used to pre-fill rows
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    @property
    def width(self) -> int:
        return self.codec.size

    @property
    def is_integer(self) -> bool:
        return self.python_type == "int"

    def contains(self, value: int) -> bool:
        """Check whether an integer fits this kind."""
        return self.min_value <= value <= self.max_value


def _int(name: str, fmt: str) -> Scalar:
    codec = struct.Struct(fmt)
    bits = codec.size * 8
    if fmt[-1].islower():
        lo, hi = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        lo, hi = 0, (1 << bits) - 1
    return Scalar(name, codec, "int", "0", lo, hi)


INT8 = _int("int8", "<b")
INT16 = _int("int16", "<h")
INT32 = _int("int32", "<i")
UINT8 = _int("uint8", "<B")
UINT16 = _int("uint16", "<H")
UINT32 = _int("uint32", "<I")
FLOAT = Scalar("float", struct.Struct("<f"), "float", "0.0")
BOOL = Scalar("bool", struct.Struct("<B"), "bool", "False")
BOOL32 = Scalar("bool32", struct.Struct("<I"), "bool", "False")

SCALARS: Dict[str, Scalar] = {
    s.name: s for s in (INT8, INT16, INT32, UINT8, UINT16, UINT32, FLOAT, BOOL, BOOL32)
}

INTEGER_KINDS = ("int8", "int16", "int32", "uint8", "uint16", "uint32")

# Key storage kind -> kinds that always fit into it
LOSSLESS_FROM: Dict[str, Tuple[str, ...]] = {
    "int8": ("int8",),
    "int16": ("int8", "int16", "uint8"),
    "int32": ("int8", "int16", "int32", "uint8", "uint16"),
    "uint8": ("uint8",),
    "uint16": ("uint8", "uint16"),
    "uint32": ("uint8", "uint16", "uint32"),
}

STRING_REF_NAME = "string_ref"
STRING_REF_LOC_NAME = "string_ref_loc"
EXTENDED_STRING_REF_LOC_NAME = "extended_string_ref_loc"

# u32 offset per locale slot, then one u32 flags word
LOCALE_SLOTS = (
    "en_gb",
    "ko_kr",
    "fr_fr",
    "de_de",
    "en_cn",
    "en_tw",
    "es_es",
    "es_mx",
)
EXTENDED_LOCALE_SLOTS = LOCALE_SLOTS + (
    "ru_ru",
    "ja_jp",
    "pt_pt",
    "it_it",
    "unknown_12",
    "unknown_13",
    "unknown_14",
    "unknown_15",
)

STRING_OFFSET = UINT32


# ──────────────────────────────────────────────────────────────
# Field kinds
# ──────────────────────────────────────────────────────────────


class FieldType:
    """Base for all field kinds."""

    @property
    def width(self) -> int:
        raise NotImplementedError

    @property
    def field_count(self) -> int:
        return 1

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Primitive(FieldType):
    """A plain integer, float or boolean."""

    scalar: Scalar

    @property
    def width(self) -> int:
        return self.scalar.width

    def describe(self) -> str:
        return self.scalar.name


@dataclass(frozen=True)
class StringRef(FieldType):
    """u32 offset into the string block."""

    @property
    def width(self) -> int:
        return STRING_OFFSET.width

    def describe(self) -> str:
        return STRING_REF_NAME


@dataclass(frozen=True)
class LocalizedStringRef(FieldType):
    """8 locale offsets and a flags word."""

    slots = LOCALE_SLOTS

    @property
    def width(self) -> int:
        return (len(self.slots) + 1) * STRING_OFFSET.width

    @property
    def field_count(self) -> int:
        return len(self.slots) + 1

    def describe(self) -> str:
        return STRING_REF_LOC_NAME


@dataclass(frozen=True)
class ExtendedLocalizedStringRef(LocalizedStringRef):
    """16 locale offsets and a flags word."""

    slots = EXTENDED_LOCALE_SLOTS

    def describe(self) -> str:
        return f"{STRING_REF_LOC_NAME} (Extended)"


@dataclass(frozen=True)
class PrimaryKey(FieldType):
    """Integer that identifies a row of ``table``."""

    table: str
    inner: Primitive

    @property
    def width(self) -> int:
        return self.inner.width

    def describe(self) -> str:
        return f"primary_key ({self.table}) {self.inner.describe()}"


@dataclass(frozen=True)
class ForeignKey(FieldType):
    """Integer holding a primary key value of another table."""

    table: str
    inner: Primitive

    @property
    def width(self) -> int:
        return self.inner.width

    def describe(self) -> str:
        return f"foreign_key ({self.table}) {self.inner.describe()}"


@dataclass(frozen=True)
class EnumRef(FieldType):
    """Integer restricted to the values of a named enum."""

    name: str
    inner: Primitive

    @property
    def width(self) -> int:
        return self.inner.width

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class FlagRef(EnumRef):
    """Integer made of the bits of a named flag set."""
    pass


@dataclass(frozen=True)
class FixedArray(FieldType):
    """``size`` consecutive elements of one kind."""

    element: FieldType
    size: int

    @property
    def width(self) -> int:
        return self.size * self.element.width

    @property
    def field_count(self) -> int:
        return self.size * self.element.field_count

    def describe(self) -> str:
        return f"{self.element.describe()}[{self.size}]"


def primitive(name: str) -> Primitive:
    """Look up a primitive kind by its schema name."""
    return Primitive(SCALARS[name])
