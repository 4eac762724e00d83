"""
Formatting utilities for DBC Tools.
Converts schema names into Python identifiers and module names.
"""

import keyword
import re

_WORD_BOUNDARY = re.compile(r"[^0-9A-Za-z]+")
_CAMEL_SPLIT = re.compile(r"([a-z0-9])([A-Z])|([A-Z]+)([A-Z][a-z])")


def _words(name: str):
    """Split a name on separators and camel-case humps."""
    spaced = _CAMEL_SPLIT.sub(
        lambda m: f"{m.group(1)} {m.group(2)}" if m.group(1) else f"{m.group(3)} {m.group(4)}",
        name,
    )
    return [w for w in _WORD_BOUNDARY.split(spaced) if w]


def to_snake_case(name: str) -> str:
    """
    Convert a name to snake_case.

    Args:
        name: e.g. "ChrRaces", "Item-Class", "spell_range"

    Returns:
        e.g. "chr_races", "item_class", "spell_range"
    """
    return "_".join(w.lower() for w in _words(name))


def to_upper_snake_case(name: str) -> str:
    """Convert a name to UPPER_SNAKE_CASE ("DeathKnight" -> "DEATH_KNIGHT")."""
    result = "_".join(w.upper() for w in _words(name))
    if result and result[0].isdigit():
        result = "_" + result
    return result


def python_identifier(name: str) -> str:
    """
    Make a schema field name usable as a Python attribute.

    Trailing underscores are stripped (schemas use them to dodge reserved
    words of other languages), then Python keywords get one back.

    Args:
        name: Raw field name

    Returns:
        Valid Python identifier
    """
    result = name.rstrip("_")
    if not result:
        raise ValueError(f"Field name {name!r} has no usable characters")
    if result[0].isdigit():
        result = "_" + result
    if keyword.iskeyword(result):
        result += "_"
    return result
