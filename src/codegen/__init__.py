"""
Source generator for DBC table modules.
"""

from .package import generate_from_settings, generate_package, render_package
from .printer import print_table_module
from .registry import SchemaRegistry
from .schema import Definer, Enumerator, Field, LayoutMismatchError, SchemaError, TableSchema
from .xml_parser import parse_dbc_xml, parse_dbc_xml_file

__all__ = [
    "Definer",
    "Enumerator",
    "Field",
    "LayoutMismatchError",
    "SchemaError",
    "SchemaRegistry",
    "TableSchema",
    "generate_from_settings",
    "generate_package",
    "parse_dbc_xml",
    "parse_dbc_xml_file",
    "print_table_module",
    "render_package",
]
