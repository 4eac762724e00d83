"""
Runtime support for generated DBC table modules.
"""

from dbc.definers import DbcEnum, DbcFlags
from dbc.errors import (
    DbcError,
    DecodeAbort,
    EncodingError,
    FieldCountMismatch,
    InvalidDiscriminantError,
    InvalidMagicError,
    InvalidStringOffsetError,
    KeyConversionError,
    RecordSizeMismatch,
    StructuralError,
    UnexpectedEofError,
)
from dbc.header import HEADER_SIZE, MAGIC, DbcHeader, const_parse_header, parse_header
from dbc.keys import TableKey
from dbc.localized import (
    ConstExtendedLocalizedString,
    ConstLocalizedString,
    ExtendedLocalizedString,
    LocalizedString,
)
from dbc.string_cache import StringCache
from dbc.table import ConstDbcTable, DbcTable, Indexable

__all__ = [
    "ConstDbcTable",
    "ConstExtendedLocalizedString",
    "ConstLocalizedString",
    "DbcEnum",
    "DbcError",
    "DbcFlags",
    "DbcHeader",
    "DbcTable",
    "DecodeAbort",
    "EncodingError",
    "ExtendedLocalizedString",
    "FieldCountMismatch",
    "HEADER_SIZE",
    "Indexable",
    "InvalidDiscriminantError",
    "InvalidMagicError",
    "InvalidStringOffsetError",
    "KeyConversionError",
    "LocalizedString",
    "MAGIC",
    "RecordSizeMismatch",
    "StringCache",
    "StructuralError",
    "TableKey",
    "UnexpectedEofError",
    "const_parse_header",
    "parse_header",
]
