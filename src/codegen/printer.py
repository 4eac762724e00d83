"""
Per-table module printer.

Module layout, in order:
  imports
  <Name>Key            primary key class, if the table has one
  enums, then flags
  <Name>Row            runtime row dataclass
  <Name>               runtime table (read/write)
  Const<Name>Row       constant path, optional
  Const<Name>
"""

from typing import Iterator, Optional, Set

from codegen.const_ty import emit_const_row, emit_const_table
from codegen.context import GenContext
from codegen.registry import SchemaRegistry
from codegen.runtime_ty import emit_read, emit_write
from codegen.schema import Definer, TableSchema
from codegen.writer import Writer
from constants import APP_VERSION
from dbc.field_types import (
    EnumRef,
    ExtendedLocalizedStringRef,
    FieldType,
    FixedArray,
    ForeignKey,
    LocalizedStringRef,
    PrimaryKey,
    Primitive,
    StringRef,
)

GENERATED_NOTICE = f"Generated by dbc-tools {APP_VERSION}. Do not edit by hand."


def _leaves(schema: TableSchema) -> Iterator[FieldType]:
    for f in schema.fields:
        ty = f.ty
        while isinstance(ty, FixedArray):
            ty = ty.element
        yield ty


def print_table_module(
    schema: TableSchema,
    registry: Optional[SchemaRegistry] = None,
    emit_const_path: bool = True,
) -> str:
    """
    Render the Python module for one table.

    Raises:
        SchemaError: If the schema is malformed.
        LayoutMismatchError: If declared sizes disagree with the fields.
    """
    schema.validate()
    schema.check_layout()
    ctx = GenContext(schema, registry if registry is not None else SchemaRegistry())

    s = Writer()
    s.wln(f'"""{schema.file_name} table.')
    s.newline()
    s.wln(GENERATED_NOTICE)
    s.wln('"""')
    s.newline()
    _emit_imports(s, ctx, emit_const_path)

    pk = schema.primary_key()
    if pk is not None:
        _top_level_gap(s)
        _emit_key(s, schema, pk.ty)

    for definer in schema.enums:
        _top_level_gap(s)
        _emit_enum(s, definer)

    for definer in schema.flags:
        _top_level_gap(s)
        _emit_flag(s, definer)

    _top_level_gap(s)
    _emit_row(s, ctx)

    _top_level_gap(s)
    _emit_table(s, ctx)

    if emit_const_path:
        _top_level_gap(s)
        emit_const_row(s, ctx)
        _top_level_gap(s)
        emit_const_table(s, ctx)

    return s.getvalue()


def _top_level_gap(s: Writer) -> None:
    s.newline()
    s.newline()


# ──────────────────────────────────────────────────────────────
# Imports
# ──────────────────────────────────────────────────────────────


def _emit_imports(s: Writer, ctx: GenContext, emit_const_path: bool) -> None:
    schema = ctx.schema
    leaves = list(_leaves(schema))
    has_array = any(isinstance(f.ty, FixedArray) for f in schema.fields)
    has_pk = schema.primary_key() is not None

    s.wln("from __future__ import annotations")
    s.newline()
    s.wln("from dataclasses import dataclass, field")
    typing_names = ["BinaryIO", "List"]
    if emit_const_path and has_array:
        typing_names.append("Tuple")
    s.wln(f"from typing import {', '.join(typing_names)}")
    s.newline()

    definer_names = []
    if schema.enums:
        definer_names.append("DbcEnum")
    if schema.flags:
        definer_names.append("DbcFlags")
    if definer_names:
        s.wln(f"from dbc.definers import {', '.join(definer_names)}")

    errors = ["FieldCountMismatch", "RecordSizeMismatch"]
    if emit_const_path:
        errors.insert(0, "DecodeAbort")
    s.wln(f"from dbc.errors import {', '.join(errors)}")
    s.wln("from dbc.header import HEADER_SIZE, DbcHeader, parse_header")
    if has_pk:
        s.wln("from dbc.keys import TableKey")

    localized: Set[str] = set()
    for ty in leaves:
        if isinstance(ty, ExtendedLocalizedStringRef):
            localized.add("ExtendedLocalizedString")
            if emit_const_path:
                localized.add("ConstExtendedLocalizedString")
        elif isinstance(ty, LocalizedStringRef):
            localized.add("LocalizedString")
            if emit_const_path:
                localized.add("ConstLocalizedString")
    if localized:
        s.wln(f"from dbc.localized import {', '.join(sorted(localized))}")

    s.wln("from dbc.string_cache import StringCache")
    tables = ["DbcTable"]
    if has_pk:
        tables.append("Indexable")
    if emit_const_path:
        tables.insert(0, "ConstDbcTable")
    s.wln(f"from dbc.table import {', '.join(tables)}")

    util = {"RowReader", "RowWriter", "read_exact"}
    if emit_const_path:
        util |= _const_helpers(ctx, leaves)
    _import_line(s, "dbc.util", sorted(util, key=lambda n: (n.lower(), n)))

    siblings = ctx.sibling_modules()
    if siblings:
        s.newline()
        for module in siblings:
            s.wln(f"from . import {module}")


def _import_line(s: Writer, module: str, names) -> None:
    line = f"from {module} import {', '.join(names)}"
    if len(line) <= 88:
        s.wln(line)
        return
    with s.block(f"from {module} import ("):
        for name in names:
            s.wln(f"{name},")
    s.wln(")")


def _const_helpers(ctx: GenContext, leaves) -> Set[str]:
    names = set()
    for ty in leaves:
        if isinstance(ty, (PrimaryKey, ForeignKey)):
            names.add("const_read_int")
            if ctx.key_ref(ty) is not None:
                names.add("const_convert")
        elif isinstance(ty, EnumRef):
            names.update(("const_read_int", "const_convert"))
        elif isinstance(ty, Primitive):
            if ty.scalar.python_type == "float":
                names.add("const_read_f32")
            else:
                names.add("const_read_int")
        elif isinstance(ty, StringRef):
            names.update(("get_string_from_block", "EMPTY"))
        elif isinstance(ty, ExtendedLocalizedStringRef):
            names.add("const_extended_localized_string")
        elif isinstance(ty, LocalizedStringRef):
            names.add("const_localized_string")
    return names


# ──────────────────────────────────────────────────────────────
# Types
# ──────────────────────────────────────────────────────────────


def _emit_key(s: Writer, schema: TableSchema, ty: PrimaryKey) -> None:
    with s.block(f"class {schema.key_name}(TableKey):"):
        s.wln(f'"""Primary key of {schema.name}."""')
        s.newline()
        s.wln(f'STORAGE = "{ty.inner.scalar.name}"')
        s.wln(f'TABLE = "{schema.name}"')


def _emit_enum(s: Writer, definer: Definer) -> None:
    with s.block(f"class {definer.name}(DbcEnum):"):
        for e in definer.enumerators:
            s.wln(f"{definer.member_name(e)} = {e.value}")


def _emit_flag(s: Writer, definer: Definer) -> None:
    with s.block(f"class {definer.name}(DbcFlags):"):
        s.wln(f'KIND = "{definer.inner.scalar.name}"')
        with s.block("FLAGS = {"):
            for e in definer.enumerators:
                s.wln(f'"{definer.member_name(e)}": {e.value:#x},')
        s.wln("}")
        for e in definer.enumerators:
            s.newline()
            with s.block(f"def {definer.member_name(e)}(self) -> bool:"):
                if e.value == 0:
                    s.wln("return self.value == 0")
                else:
                    s.wln(f"return (self.value & {e.value:#x}) != 0")


def _emit_row(s: Writer, ctx: GenContext) -> None:
    schema = ctx.schema
    s.wln("@dataclass")
    with s.block(f"class {schema.row_name}:"):
        for f in schema.fields:
            s.wln(f"{f.name}: {ctx.annotation(f.ty)}")


def _emit_table(s: Writer, ctx: GenContext) -> None:
    schema = ctx.schema
    pk = schema.primary_key()
    bases = "DbcTable, Indexable" if pk is not None else "DbcTable"

    s.wln("@dataclass")
    with s.block(f"class {schema.name}({bases}):"):
        s.wln(f"rows: List[{schema.row_name}] = field(default_factory=list)")
        s.newline()
        s.wln(f'FILENAME = "{schema.file_name}"')
        s.wln(f"RECORD_SIZE = {schema.record_size}")
        s.wln(f"FIELD_COUNT = {schema.record_field_count}")
        if pk is not None:
            s.wln(f"KEY = {schema.key_name}")
            s.wln(f'KEY_FIELD = "{pk.name}"')
        s.newline()
        emit_read(s, ctx)
        s.newline()
        emit_write(s, ctx)
