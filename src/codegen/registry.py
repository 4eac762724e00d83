"""
Registry of all table schemas known to one generator run.

Foreign keys are only typed as their target's key class when the target
table is registered and has a primary key; the registry answers that.
"""

import os
from typing import Dict, Iterable, Iterator, List, Optional

from codegen.schema import SchemaError, TableSchema
from codegen.xml_parser import parse_dbc_xml_file
from constants import SCHEMA_FILE_SUFFIX


class SchemaRegistry:
    """Table schemas keyed by table name."""

    def __init__(self, schemas: Iterable[TableSchema] = ()):
        self._tables: Dict[str, TableSchema] = {}
        for schema in schemas:
            self.add(schema)

    @classmethod
    def from_directory(cls, directory: str) -> "SchemaRegistry":
        """Parse every ``*.xml`` file in a directory, in file-name order."""
        registry = cls()
        for name in sorted(os.listdir(directory)):
            if name.lower().endswith(SCHEMA_FILE_SUFFIX):
                registry.add(parse_dbc_xml_file(os.path.join(directory, name)))
        return registry

    def add(self, schema: TableSchema) -> None:
        schema.validate()
        if schema.name in self._tables:
            raise SchemaError(f"Table {schema.name} registered twice")
        for other in self._tables.values():
            if other.module_name == schema.module_name:
                raise SchemaError(
                    f"Tables {other.name} and {schema.name} map to the same module"
                )
        self._tables[schema.name] = schema

    def get(self, name: str) -> Optional[TableSchema]:
        return self._tables.get(name)

    def key_target(self, name: str) -> Optional[TableSchema]:
        """The registered table ``name`` if it has a primary key, else None."""
        schema = self._tables.get(name)
        if schema is None or schema.primary_key() is None:
            return None
        return schema

    def tables(self) -> List[TableSchema]:
        """All schemas ordered by table name."""
        return [self._tables[name] for name in sorted(self._tables)]

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[TableSchema]:
        return iter(self.tables())

    def __len__(self) -> int:
        return len(self._tables)
