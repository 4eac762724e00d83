"""
Runtime path emission.

Generates ``read`` and ``write`` for a table class. Reads walk a RowReader
cursor field by field; writes go through a RowWriter whose StringCache
becomes the string block.
"""

from codegen.context import GenContext
from codegen.writer import Writer
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
from dbc.util import reader_method, writer_method


def read_expr(ty: FieldType, ctx: GenContext) -> str:
    """Expression that reads one value of ``ty`` from ``reader``."""
    if isinstance(ty, (PrimaryKey, ForeignKey)):
        kind = ty.inner.scalar.name
        raw = f"reader.{reader_method(kind)}()"
        key = ctx.key_ref(ty)
        if key is None:
            return raw
        return f'{key}.from_int({raw}, "{kind}")'
    if isinstance(ty, EnumRef):
        return f"{ty.name}.try_from(reader.{reader_method(ty.inner.scalar.name)}())"
    if isinstance(ty, Primitive):
        return f"reader.{reader_method(ty.scalar.name)}()"
    if isinstance(ty, StringRef):
        return "reader.read_string()"
    if isinstance(ty, ExtendedLocalizedStringRef):
        return "reader.read_extended_localized_string()"
    if isinstance(ty, LocalizedStringRef):
        return "reader.read_localized_string()"
    if isinstance(ty, FixedArray):
        return f"[{read_expr(ty.element, ctx)} for _ in range({ty.size})]"
    raise TypeError(f"Unhandled field kind {ty!r}")


def write_stmts(s: Writer, ty: FieldType, value: str, depth: int = 0) -> None:
    """Statements that write ``value`` of kind ``ty`` through ``writer``."""
    if isinstance(ty, (PrimaryKey, ForeignKey)):
        s.wln(f"writer.{writer_method(ty.inner.scalar.name)}(int({value}))")
    elif isinstance(ty, EnumRef):
        s.wln(f"writer.{writer_method(ty.inner.scalar.name)}({value}.as_int())")
    elif isinstance(ty, Primitive):
        s.wln(f"writer.{writer_method(ty.scalar.name)}({value})")
    elif isinstance(ty, StringRef):
        s.wln(f"writer.write_string({value})")
    elif isinstance(ty, ExtendedLocalizedStringRef):
        s.wln(f"writer.write_extended_localized_string({value})")
    elif isinstance(ty, LocalizedStringRef):
        s.wln(f"writer.write_localized_string({value})")
    elif isinstance(ty, FixedArray):
        with s.block(f"if len({value}) != {ty.size}:"):
            s.wln(f'raise ValueError(f"{value} needs {ty.size} values, got {{len({value})}}")')
        var = f"v{depth}"
        with s.block(f"for {var} in {value}:"):
            write_stmts(s, ty.element, var, depth + 1)
    else:
        raise TypeError(f"Unhandled field kind {ty!r}")


def emit_read(s: Writer, ctx: GenContext) -> None:
    schema = ctx.schema
    s.wln("@classmethod")
    with s.block(f"def read(cls, b: BinaryIO) -> {schema.name}:"):
        s.wln("header = parse_header(read_exact(b, HEADER_SIZE))")
        s.newline()
        with s.block("if header.record_size != cls.RECORD_SIZE:"):
            s.wln("raise RecordSizeMismatch(cls.RECORD_SIZE, header.record_size)")
        s.newline()
        with s.block("if header.field_count != cls.FIELD_COUNT:"):
            s.wln("raise FieldCountMismatch(cls.FIELD_COUNT, header.field_count)")
        s.newline()
        s.wln("data = read_exact(b, header.rows_size)")
        s.wln("string_block = read_exact(b, header.string_block_size)")
        s.wln("reader = RowReader(data, string_block)")
        s.newline()
        s.wln(f"rows: List[{schema.row_name}] = []")
        with s.block("for _ in range(header.record_count):"):
            s.wln("rows.append(")
            s.indent()
            s.wln(f"{schema.row_name}(")
            s.indent()
            for f in schema.fields:
                s.wln(f"# {f.name}: {f.ty.describe()}")
                s.wln(f"{f.name}={read_expr(f.ty, ctx)},")
            s.dedent()
            s.wln(")")
            s.dedent()
            s.wln(")")
        s.newline()
        s.wln("return cls(rows=rows)")


def emit_write(s: Writer, ctx: GenContext) -> None:
    schema = ctx.schema
    with s.block("def write(self, b: BinaryIO) -> None:"):
        s.wln("writer = RowWriter(StringCache())")
        s.newline()
        with s.block("for row in self.rows:"):
            for f in schema.fields:
                s.wln(f"# {f.name}: {f.ty.describe()}")
                write_stmts(s, f.ty, f"row.{f.name}")
                s.newline()
        s.wln("header = DbcHeader(")
        s.indent()
        s.wln("record_count=len(self.rows),")
        s.wln("field_count=self.FIELD_COUNT,")
        s.wln("record_size=self.RECORD_SIZE,")
        s.wln("string_block_size=writer.cache.size(),")
        s.dedent()
        s.wln(")")
        s.wln("b.write(header.write_header())")
        s.wln("b.write(writer.getvalue())")
        s.wln("b.write(writer.cache.buffer())")
