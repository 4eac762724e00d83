"""Error types for reading and writing DBC tables.

Everything a runtime read can fail with derives from DbcError, so a batch
job can catch one type per file and move on. The constant path has no
recoverable errors: it raises DecodeAbort, which is a BaseException and is
not caught by ``except Exception``.
"""


class DbcError(Exception):
    """Base class for recoverable DBC errors."""
    pass


# ──────────────────────────────────────────────────────────────
# Structural errors (header and layout)
# ──────────────────────────────────────────────────────────────


class StructuralError(DbcError):
    """The file does not have the shape the table expects."""
    pass


class InvalidMagicError(StructuralError):
    """The first four bytes are not the DBC magic."""

    def __init__(self, actual: bytes):
        self.actual = actual
        super().__init__(f"Not a DBC file (magic: {actual!r})")


class RecordSizeMismatch(StructuralError):
    """Header record size differs from the table's row size."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid record size, expected {expected} got {actual}")


class FieldCountMismatch(StructuralError):
    """Header field count differs from the table's field count."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid field count, expected {expected} got {actual}")


class InvalidStringOffsetError(StructuralError):
    """A string reference points outside the string block."""

    def __init__(self, offset: int, block_size: int):
        self.offset = offset
        self.block_size = block_size
        super().__init__(
            f"String offset {offset} has no terminated string in a block of {block_size} bytes"
        )


# ──────────────────────────────────────────────────────────────
# Value errors
# ──────────────────────────────────────────────────────────────


class EncodingError(DbcError):
    """A string in the string block is not valid UTF-8."""

    def __init__(self, offset: int, cause: UnicodeDecodeError):
        self.offset = offset
        self.cause = cause
        super().__init__(f"Invalid UTF-8 in string at offset {offset}: {cause}")


class InvalidDiscriminantError(DbcError):
    """An enum or flag field holds a value with no declared symbol."""

    def __init__(self, name: str, value: int):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value {value} for {name}")


class UnexpectedEofError(DbcError, EOFError):
    """The stream ended before the header said it would."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unexpected end of data, wanted {expected} bytes got {actual}")


class KeyConversionError(DbcError, ValueError):
    """A value does not fit the storage width of a key."""

    def __init__(self, key_name: str, value: int, kind: str):
        self.key_name = key_name
        self.value = value
        self.kind = kind
        super().__init__(f"{value} does not fit {key_name} ({kind})")


# ──────────────────────────────────────────────────────────────
# Constant path
# ──────────────────────────────────────────────────────────────


class DecodeAbort(BaseException):
    """Unrecoverable failure while decoding an embedded table."""
    pass
