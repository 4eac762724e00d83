"""
SQLite converter emission.

Generates a ``sqlite_converter`` module for a table package: one
CREATE/INSERT pair per table and ``write_to_sqlite`` which decodes a table
file and stores its rows. Localized strings and arrays are flattened into
``<field>_<member>`` and ``<field>_<index>`` columns.
"""

from typing import List, NamedTuple

from codegen.printer import GENERATED_NOTICE
from codegen.registry import SchemaRegistry
from codegen.schema import TableSchema
from codegen.writer import Writer
from dbc.field_types import (
    EnumRef,
    FieldType,
    FixedArray,
    ForeignKey,
    LocalizedStringRef,
    PrimaryKey,
    Primitive,
    StringRef,
)

MODULE_NAME = "sqlite_converter"


class Column(NamedTuple):
    name: str
    sql_type: str
    value: str  # Expression producing the column value from ``row``
    primary_key: bool = False


def columns(ty: FieldType, name: str, value: str) -> List[Column]:
    """Flatten one field into SQL columns."""
    if isinstance(ty, PrimaryKey):
        return [Column(name, "INTEGER", f"int({value})", True)]
    if isinstance(ty, ForeignKey):
        return [Column(name, "INTEGER", f"int({value})")]
    if isinstance(ty, EnumRef):
        return [Column(name, "INTEGER", f"{value}.as_int()")]
    if isinstance(ty, Primitive):
        if ty.scalar.python_type == "float":
            return [Column(name, "REAL", value)]
        return [Column(name, "INTEGER", f"int({value})")]
    if isinstance(ty, StringRef):
        return [Column(name, "TEXT", value)]
    if isinstance(ty, LocalizedStringRef):
        result = [Column(f"{name}_{slot}", "TEXT", f"{value}.{slot}") for slot in ty.slots]
        result.append(Column(f"{name}_flags", "INTEGER", f"{value}.flags"))
        return result
    if isinstance(ty, FixedArray):
        result = []
        for i in range(ty.size):
            result.extend(columns(ty.element, f"{name}_{i}", f"{value}[{i}]"))
        return result
    raise TypeError(f"Unhandled field kind {ty!r}")


def table_columns(schema: TableSchema) -> List[Column]:
    result = []
    for f in schema.fields:
        result.extend(columns(f.ty, f.name, f"row.{f.name}"))
    return result


def create_sql(schema: TableSchema) -> str:
    parts = []
    for c in table_columns(schema):
        pk = " PRIMARY KEY" if c.primary_key else ""
        parts.append(f'"{c.name}" {c.sql_type}{pk} NOT NULL')
    return f'CREATE TABLE IF NOT EXISTS "{schema.name}" ({", ".join(parts)})'


def insert_sql(schema: TableSchema) -> str:
    cols = table_columns(schema)
    names = ", ".join(f'"{c.name}"' for c in cols)
    params = ", ".join("?" for _ in cols)
    return f'INSERT INTO "{schema.name}" ({names}) VALUES ({params})'


def print_sqlite_converter(registry: SchemaRegistry) -> str:
    """Render the converter module for every table in ``registry``."""
    tables = registry.tables()
    if not tables:
        raise ValueError("No tables to export")
    s = Writer()
    s.wln('"""SQLite export of the generated tables.')
    s.newline()
    s.wln(GENERATED_NOTICE)
    s.wln('"""')
    s.newline()
    s.wln("import sqlite3")
    s.wln("from typing import Tuple")
    s.newline()
    s.wln(f"from . import {', '.join(t.module_name for t in tables)}")
    s.newline()
    s.newline()
    with s.block("class FilenameNotFoundError(Exception):"):
        s.wln('"""No generated table reads a file with this name."""')
        s.newline()
        with s.block("def __init__(self, name: str):"):
            s.wln("self.name = name")
            s.wln('super().__init__(f"No table for file {name}")')
    s.newline()
    s.newline()
    with s.block("def write_to_sqlite(file_name: str, data: bytes, output_path: str) -> None:"):
        s.wln('"""Decode ``data`` as the table stored in ``file_name`` and insert its rows."""')
        s.wln("entry = TABLES.get(file_name)")
        with s.block("if entry is None:"):
            s.wln("raise FilenameNotFoundError(file_name)")
        s.wln("table_cls, sql, values = entry")
        s.wln("create, insert = sql()")
        s.wln("table = table_cls.from_bytes(data)")
        s.newline()
        s.wln("conn = sqlite3.connect(output_path)")
        with s.block("try:"):
            with s.block("with conn:"):
                s.wln("conn.execute(create)")
                s.wln("conn.executemany(insert, [values(row) for row in table.rows])")
        with s.block("finally:"):
            s.wln("conn.close()")

    for schema in tables:
        s.newline()
        s.newline()
        with s.block(f"def {schema.module_name}_sql() -> Tuple[str, str]:"):
            s.wln("return (")
            s.indent()
            s.wln(f"{create_sql(schema)!r},")
            s.wln(f"{insert_sql(schema)!r},")
            s.dedent()
            s.wln(")")
        s.newline()
        s.newline()
        with s.block(f"def _{schema.module_name}_values(row) -> tuple:"):
            s.wln("return (")
            s.indent()
            for c in table_columns(schema):
                s.wln(f"{c.value},")
            s.dedent()
            s.wln(")")

    s.newline()
    s.newline()
    with s.block("TABLES = {"):
        for schema in tables:
            s.wln(
                f'"{schema.file_name}": ({schema.module_name}.{schema.name}, '
                f"{schema.module_name}_sql, _{schema.module_name}_values),"
            )
    s.wln("}")
    return s.getvalue()
