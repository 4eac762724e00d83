"""
Constant path emission.

Generates ``Const<Name>Row`` and ``Const<Name>`` for decoding a table that
is embedded in the program as a bytes literal. Every field is extracted at
a fixed offset from the start of its row, strings stay memoryview slices of
the embedded buffer, rows are pre-filled with per-field defaults, and any
malformed data raises DecodeAbort.
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


def _int_expr(ty: Primitive, offset: str) -> str:
    scalar = ty.scalar
    signed = scalar.min_value is not None and scalar.min_value < 0
    return f"const_read_int(b, {offset}, {scalar.width}, {signed})"


def const_expr(ty: FieldType, offset: str, ctx: GenContext, depth: int = 0) -> str:
    """Expression decoding ``ty`` from ``b`` at absolute position ``offset``."""
    if isinstance(ty, (PrimaryKey, ForeignKey)):
        raw = _int_expr(ty.inner, offset)
        key = ctx.key_ref(ty)
        if key is None:
            return raw
        return f"const_convert({key}, {raw})"
    if isinstance(ty, EnumRef):
        return f"const_convert({ty.name}, {_int_expr(ty.inner, offset)})"
    if isinstance(ty, Primitive):
        if ty.scalar.python_type == "float":
            return f"const_read_f32(b, {offset})"
        if ty.scalar.python_type == "bool":
            return f"{_int_expr(ty, offset)} != 0"
        return _int_expr(ty, offset)
    if isinstance(ty, StringRef):
        return f"get_string_from_block(b, {offset}, string_block, string_end)"
    if isinstance(ty, ExtendedLocalizedStringRef):
        return f"const_extended_localized_string(b, {offset}, string_block, string_end)"
    if isinstance(ty, LocalizedStringRef):
        return f"const_localized_string(b, {offset}, string_block, string_end)"
    if isinstance(ty, FixedArray):
        var = f"j{depth}"
        element = const_expr(
            ty.element, f"{offset} + {var} * {ty.element.width}", ctx, depth + 1
        )
        return f"tuple({element} for {var} in range({ty.size}))"
    raise TypeError(f"Unhandled field kind {ty!r}")


def default_expr(ty: FieldType, ctx: GenContext) -> str:
    """Value a pre-filled row holds before decoding."""
    if isinstance(ty, (PrimaryKey, ForeignKey)):
        key = ctx.key_ref(ty)
        return f"{key}()" if key else "0"
    if isinstance(ty, EnumRef):
        if ctx.schema.definers()[ty.name].is_flag:
            return f"{ty.name}(0)"
        return f"{ty.name}.default()"
    if isinstance(ty, Primitive):
        return ty.scalar.default
    if isinstance(ty, StringRef):
        return "EMPTY"
    if isinstance(ty, ExtendedLocalizedStringRef):
        return "ConstExtendedLocalizedString.empty()"
    if isinstance(ty, LocalizedStringRef):
        return "ConstLocalizedString.empty()"
    if isinstance(ty, FixedArray):
        return f"({default_expr(ty.element, ctx)},) * {ty.size}"
    raise TypeError(f"Unhandled field kind {ty!r}")


def owned_expr(ty: FieldType, value: str, depth: int = 0) -> str:
    """Expression converting a borrowed value into its runtime form."""
    if isinstance(ty, StringRef):
        return f'bytes({value}).decode("utf-8")'
    if isinstance(ty, LocalizedStringRef):
        return f"{value}.to_owned()"
    if isinstance(ty, FixedArray):
        var = f"v{depth}"
        return f"[{owned_expr(ty.element, var, depth + 1)} for {var} in {value}]"
    return value


def emit_const_row(s: Writer, ctx: GenContext) -> None:
    schema = ctx.schema
    s.wln("@dataclass(frozen=True)")
    with s.block(f"class Const{schema.row_name}:"):
        for f in schema.fields:
            s.wln(f"{f.name}: {ctx.annotation(f.ty, const=True)}")
        s.newline()
        s.wln("@classmethod")
        with s.block(f"def default(cls) -> Const{schema.row_name}:"):
            s.wln("return cls(")
            s.indent()
            for f in schema.fields:
                s.wln(f"{f.name}={default_expr(f.ty, ctx)},")
            s.dedent()
            s.wln(")")
        s.newline()
        with s.block(f"def to_owned(self) -> {schema.row_name}:"):
            s.wln(f"return {schema.row_name}(")
            s.indent()
            for f in schema.fields:
                s.wln(f"{f.name}={owned_expr(f.ty, f'self.{f.name}')},")
            s.dedent()
            s.wln(")")


def emit_const_table(s: Writer, ctx: GenContext) -> None:
    schema = ctx.schema
    with s.block(f"class Const{schema.name}(ConstDbcTable):"):
        s.wln(f"OWNED = {schema.name}")
        s.newline()
        s.wln("@classmethod")
        with s.block(f"def const_read(cls, b: bytes, header: DbcHeader) -> Const{schema.name}:"):
            with s.block(f"if header.record_size != {schema.record_size}:"):
                s.wln(
                    f'raise DecodeAbort(f"{schema.name}: invalid record size, '
                    f'expected {schema.record_size} got {{header.record_size}}")'
                )
            s.newline()
            with s.block(f"if header.field_count != {schema.record_field_count}:"):
                s.wln(
                    f'raise DecodeAbort(f"{schema.name}: invalid field count, '
                    f'expected {schema.record_field_count} got {{header.field_count}}")'
                )
            s.newline()
            s.wln("string_block = HEADER_SIZE + header.rows_size")
            s.wln("string_end = string_block + header.string_block_size")
            s.wln(f"rows = [Const{schema.row_name}.default()] * header.record_count")
            s.newline()
            s.wln("offset = HEADER_SIZE")
            s.wln("i = 0")
            with s.block("while i < header.record_count:"):
                s.wln(f"rows[i] = Const{schema.row_name}(")
                s.indent()
                position = 0
                for f in schema.fields:
                    s.wln(f"# {f.name}: {f.ty.describe()}")
                    at = f"offset + {position}" if position else "offset"
                    s.wln(f"{f.name}={const_expr(f.ty, at, ctx)},")
                    position += f.ty.width
                s.dedent()
                s.wln(")")
                s.wln(f"offset += {schema.record_size}")
                s.wln("i += 1")
            s.newline()
            s.wln("return cls(rows)")
