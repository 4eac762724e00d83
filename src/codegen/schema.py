"""
Table schema model consumed by the source generator.

A TableSchema is an ordered list of named fields, each with a kind from
dbc.field_types, plus the enums and flags those fields refer to.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dbc.field_types import (
    EnumRef,
    FieldType,
    FixedArray,
    FlagRef,
    ForeignKey,
    PrimaryKey,
    Primitive,
)
from utils.formatting import python_identifier, to_snake_case, to_upper_snake_case

# Attributes of DbcFlags that a flag predicate must not shadow
_FLAG_RESERVED = {"value", "as_int", "names", "try_from", "known_bits", "KIND", "FLAGS"}


class SchemaError(ValueError):
    """A schema description is malformed or self-contradictory."""
    pass


class LayoutMismatchError(AssertionError):
    """Computed row layout disagrees with the declared record size or field count."""

    def __init__(self, table: str, what: str, declared: int, computed: int):
        self.table = table
        self.what = what
        self.declared = declared
        self.computed = computed
        super().__init__(
            f"{table}: declared {what} {declared} but fields add up to {computed}"
        )


@dataclass(frozen=True)
class Enumerator:
    name: str
    value: int


@dataclass
class Definer:
    """A named enum or flag set over one integer kind."""

    name: str
    inner: Primitive
    enumerators: List[Enumerator] = field(default_factory=list)
    is_flag: bool = False

    def member_name(self, enumerator: Enumerator) -> str:
        """Python name of an option: enum members are UPPER_SNAKE, flag predicates snake_case."""
        if self.is_flag:
            snake = to_snake_case(enumerator.name)
            if not snake:
                return ""
            name = python_identifier(snake)
            if name in _FLAG_RESERVED:
                name += "_"
            return name
        return to_upper_snake_case(enumerator.name)

    def validate(self) -> None:
        if not self.name.isidentifier():
            raise SchemaError(f"{self.name!r} is not a valid type name")
        if not self.inner.scalar.is_integer:
            raise SchemaError(f"{self.name}: enum/flag type must be an integer kind")
        if not self.enumerators:
            raise SchemaError(f"{self.name}: needs at least one option")
        seen = set()
        for e in self.enumerators:
            member = self.member_name(e)
            if not member or member in seen:
                raise SchemaError(f"{self.name}: duplicate or empty option {e.name!r}")
            seen.add(member)
            # Flag values may be written as unsigned hex for signed kinds
            fits = self.inner.scalar.contains(e.value)
            if self.is_flag:
                fits = fits or 0 <= e.value < (1 << (self.inner.width * 8))
            if not fits:
                raise SchemaError(
                    f"{self.name}: value {e.value} of {e.name} does not fit "
                    f"{self.inner.scalar.name}"
                )


@dataclass
class Field:
    name: str
    ty: FieldType


@dataclass
class TableSchema:
    """Everything the generator knows about one table."""

    name: str
    fields: List[Field] = field(default_factory=list)
    enums: List[Definer] = field(default_factory=list)
    flags: List[Definer] = field(default_factory=list)
    declared_record_size: Optional[int] = None
    declared_field_count: Optional[int] = None

    @property
    def module_name(self) -> str:
        return to_snake_case(self.name)

    @property
    def file_name(self) -> str:
        return f"{self.name}.dbc"

    @property
    def key_name(self) -> str:
        return f"{self.name}Key"

    @property
    def row_name(self) -> str:
        return f"{self.name}Row"

    def primary_key(self) -> Optional[Field]:
        keys = [f for f in self.fields if isinstance(f.ty, PrimaryKey)]
        if len(keys) > 1:
            raise SchemaError(f"{self.name}: more than one primary key")
        return keys[0] if keys else None

    def row_size(self) -> int:
        return sum(f.ty.width for f in self.fields)

    def field_count(self) -> int:
        return sum(f.ty.field_count for f in self.fields)

    @property
    def record_size(self) -> int:
        """Declared record size, or the computed one when none was declared."""
        if self.declared_record_size is not None:
            return self.declared_record_size
        return self.row_size()

    @property
    def record_field_count(self) -> int:
        if self.declared_field_count is not None:
            return self.declared_field_count
        return self.field_count()

    def foreign_keys(self) -> List[str]:
        """Sorted, deduplicated names of tables referenced by foreign keys."""
        tables = set()
        for f in self.fields:
            ty = f.ty.element if isinstance(f.ty, FixedArray) else f.ty
            if isinstance(ty, ForeignKey):
                tables.add(ty.table)
        return sorted(tables)

    def definers(self) -> Dict[str, Definer]:
        return {d.name: d for d in self.enums + self.flags}

    def validate(self) -> None:
        """Check names and references. Layout is checked by check_layout()."""
        if not self.name.isidentifier():
            raise SchemaError(f"{self.name!r} is not a valid table name")
        if not self.fields:
            raise SchemaError(f"{self.name}: table has no fields")

        names = set()
        for f in self.fields:
            if f.name in names:
                raise SchemaError(f"{self.name}: duplicate field {f.name}")
            names.add(f.name)

        reserved = {self.name, self.row_name, self.key_name, f"Const{self.name}",
                    f"Const{self.row_name}"}
        definers = self.definers()
        if len(definers) != len(self.enums) + len(self.flags):
            raise SchemaError(f"{self.name}: enum and flag names must be unique")
        for d in definers.values():
            if d.name in reserved:
                raise SchemaError(f"{self.name}: {d.name} clashes with a generated class")
            d.validate()

        for f in self.fields:
            ty = f.ty.element if isinstance(f.ty, FixedArray) else f.ty
            if isinstance(ty, EnumRef):
                d = definers.get(ty.name)
                if d is None or d.is_flag != isinstance(ty, FlagRef):
                    raise SchemaError(f"{self.name}.{f.name}: unknown type {ty.name}")

        self.primary_key()

    def check_layout(self) -> None:
        """Raise LayoutMismatchError if declared sizes disagree with the fields."""
        if self.record_size != self.row_size():
            raise LayoutMismatchError(
                self.name, "record size", self.record_size, self.row_size()
            )
        if self.record_field_count != self.field_count():
            raise LayoutMismatchError(
                self.name, "field count", self.record_field_count, self.field_count()
            )
