"""
Package generation driver.
Renders one module per registered table, the package __init__ and, when
enabled, the SQLite converter, then writes them to the output directory.
"""

import os
import traceback
from typing import Any, Dict, List, Optional

from codegen.fetcher import SchemaFetcher
from codegen.printer import GENERATED_NOTICE, print_table_module
from codegen.registry import SchemaRegistry
from codegen.schema import LayoutMismatchError, SchemaError
from codegen.sqlite_converter import MODULE_NAME as SQLITE_MODULE
from codegen.sqlite_converter import print_sqlite_converter
from codegen.writer import Writer
from utils.logging import log_error, update_log_file_path


def print_init(registry: SchemaRegistry, emit_const_path: bool = True) -> str:
    """Render the package ``__init__`` re-exporting every table."""
    s = Writer()
    s.wln('"""Generated DBC table package.')
    s.newline()
    s.wln(GENERATED_NOTICE)
    s.wln('"""')
    s.newline()

    exported = []
    for schema in registry.tables():
        names = [schema.name, schema.row_name]
        if schema.primary_key() is not None:
            names.append(schema.key_name)
        if emit_const_path:
            names += [f"Const{schema.name}", f"Const{schema.row_name}"]
        names.sort()
        exported += names
        s.wln(f"from .{schema.module_name} import {', '.join(names)}")

    s.newline()
    with s.block("ALL_TABLES = ("):
        for schema in registry.tables():
            s.wln(f"{schema.name},")
    s.wln(")")
    s.newline()
    with s.block("__all__ = ["):
        s.wln('"ALL_TABLES",')
        for name in exported:
            s.wln(f'"{name}",')
    s.wln("]")
    return s.getvalue()


def render_package(
    registry: SchemaRegistry,
    emit_const_path: bool = True,
    emit_sqlite_converter: bool = False,
) -> Dict[str, str]:
    """
    Render every file of a table package without touching the disk.

    Returns:
        Mapping of file name to source, in a stable order
    """
    files: Dict[str, str] = {"__init__.py": print_init(registry, emit_const_path)}
    for schema in registry.tables():
        files[f"{schema.module_name}.py"] = print_table_module(
            schema, registry, emit_const_path
        )
    if emit_sqlite_converter and len(registry):
        files[f"{SQLITE_MODULE}.py"] = print_sqlite_converter(registry)
    return files


def write_package(files: Dict[str, str], output_dir: str, package_name: str) -> List[str]:
    """Write rendered files to ``output_dir/package_name``. Returns the written paths."""
    package_dir = os.path.join(output_dir, package_name)
    os.makedirs(package_dir, exist_ok=True)

    written = []
    for file_name, source in files.items():
        path = os.path.join(package_dir, file_name)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(source)
        written.append(path)
    return written


def generate_package(
    registry: SchemaRegistry,
    output_dir: str,
    package_name: str,
    emit_const_path: bool = True,
    emit_sqlite_converter: bool = False,
) -> List[str]:
    """Render and write a table package."""
    files = render_package(registry, emit_const_path, emit_sqlite_converter)
    return write_package(files, output_dir, package_name)


def generate_from_settings(settings: Dict[str, Any]) -> Optional[List[str]]:
    """
    Generate the package described by a settings dictionary.

    Schemas are read from ``schema_dir``. When ``schema_base_url`` is set,
    foreign key targets missing locally are fetched from there first.

    Raises:
        SchemaError: If a schema is malformed.
        LayoutMismatchError: If a schema's declared sizes are wrong.

    Returns:
        Written paths, or None if the schema directory does not exist
    """
    work_dir = settings.get("work_dir", "")
    if work_dir:
        update_log_file_path(work_dir)

    schema_dir = settings.get("schema_dir", "")
    if not os.path.isdir(schema_dir):
        log_error(f"Schema directory not found: {schema_dir}")
        return None

    try:
        registry = SchemaRegistry.from_directory(schema_dir)

        base_url = settings.get("schema_base_url", "")
        if base_url:
            fetcher = SchemaFetcher(base_url, settings["cache_dir"])
            missing = sorted(
                {name for schema in registry for name in schema.foreign_keys()}
                - {schema.name for schema in registry}
            )
            fetcher.fetch_into(registry, missing)

        return generate_package(
            registry,
            settings["output_dir"],
            settings["package_name"],
            emit_const_path=settings.get("emit_const_path", True),
            emit_sqlite_converter=settings.get("emit_sqlite_converter", False),
        )
    except (SchemaError, LayoutMismatchError) as e:
        log_error(f"Generation failed: {e}", type(e).__name__, traceback.format_exc())
        raise
