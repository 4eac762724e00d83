"""
File helpers for reading and writing many tables at once.
A bad file is logged and skipped so one broken table does not stop a batch.
"""

import os
import traceback
from typing import Dict, Iterable, Optional, Tuple, Type

from constants import TABLE_FILE_SUFFIX
from dbc.errors import DbcError
from dbc.table import DbcTable
from utils.logging import log_error


def read_table_file(path: str, table_cls: Type[DbcTable]) -> DbcTable:
    """
    Read one table from disk.

    Raises:
        DbcError: If the file does not decode as ``table_cls``.
        OSError: If the file cannot be read.
    """
    with open(path, "rb") as f:
        return table_cls.read(f)


def write_table_file(path: str, table: DbcTable) -> None:
    """Encode a table and write it to ``path``, creating directories."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(path, "wb") as f:
        table.write(f)


def try_read_table_file(path: str, table_cls: Type[DbcTable]) -> Optional[DbcTable]:
    """Read one table, logging and returning None on failure."""
    try:
        return read_table_file(path, table_cls)
    except (DbcError, OSError) as e:
        log_error(
            f"Failed to read {path} as {table_cls.__name__}: {e}",
            type(e).__name__,
            traceback.format_exc(),
        )
        return None


def load_directory(
    directory: str, table_classes: Iterable[Type[DbcTable]]
) -> Tuple[Dict[str, DbcTable], Dict[str, str]]:
    """
    Load every known table found in a directory.

    Files are matched case-insensitively against each class's FILENAME.
    Tables whose file is missing are left out of both results.

    Args:
        directory: Directory holding ``.dbc`` files
        table_classes: Generated table classes to try

    Returns:
        Tuple of (loaded tables by file name, error messages by file name)
    """
    on_disk = {}
    if os.path.isdir(directory):
        for name in sorted(os.listdir(directory)):
            if name.lower().endswith(TABLE_FILE_SUFFIX):
                on_disk[name.lower()] = os.path.join(directory, name)

    loaded: Dict[str, DbcTable] = {}
    errors: Dict[str, str] = {}
    for table_cls in table_classes:
        path = on_disk.get(table_cls.FILENAME.lower())
        if path is None:
            continue
        try:
            loaded[table_cls.FILENAME] = read_table_file(path, table_cls)
        except (DbcError, OSError) as e:
            errors[table_cls.FILENAME] = str(e)
            log_error(
                f"Skipping {path}: {e}",
                type(e).__name__,
                traceback.format_exc(),
            )

    return loaded, errors
