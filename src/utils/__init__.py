"""
Utility functions for DBC Tools.
"""

from .logging import log_error, update_log_file_path, get_log_file
from .formatting import (
    to_snake_case,
    to_upper_snake_case,
    python_identifier,
)

__all__ = [
    "log_error",
    "update_log_file_path",
    "get_log_file",
    "to_snake_case",
    "to_upper_snake_case",
    "python_identifier",
]
