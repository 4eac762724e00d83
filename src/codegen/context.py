"""
Per-table generation context.
Resolves how field kinds are spelled in generated code: annotations, key
class references and the sibling modules a table has to import.
"""

from dataclasses import dataclass
from typing import List, Optional

from codegen.registry import SchemaRegistry
from codegen.schema import TableSchema
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


@dataclass
class GenContext:
    schema: TableSchema
    registry: SchemaRegistry

    def key_ref(self, ty: FieldType) -> Optional[str]:
        """Key class expression for a key field, or None for untyped foreign keys."""
        if isinstance(ty, PrimaryKey):
            return self.schema.key_name
        if isinstance(ty, ForeignKey):
            if ty.table == self.schema.name:
                return self.schema.key_name if self.schema.primary_key() else None
            target = self.registry.key_target(ty.table)
            if target is not None:
                return f"{target.module_name}.{target.key_name}"
        return None

    def sibling_modules(self) -> List[str]:
        """Modules of other tables whose key classes this table uses."""
        modules = set()
        for name in self.schema.foreign_keys():
            if name == self.schema.name:
                continue
            target = self.registry.key_target(name)
            if target is not None:
                modules.add(target.module_name)
        return sorted(modules)

    def annotation(self, ty: FieldType, const: bool = False) -> str:
        """Type annotation of a row attribute."""
        if isinstance(ty, (PrimaryKey, ForeignKey)):
            return self.key_ref(ty) or "int"
        if isinstance(ty, EnumRef):
            return ty.name
        if isinstance(ty, Primitive):
            return ty.scalar.python_type
        if isinstance(ty, StringRef):
            return "memoryview" if const else "str"
        if isinstance(ty, ExtendedLocalizedStringRef):
            return "ConstExtendedLocalizedString" if const else "ExtendedLocalizedString"
        if isinstance(ty, LocalizedStringRef):
            return "ConstLocalizedString" if const else "LocalizedString"
        if isinstance(ty, FixedArray):
            inner = self.annotation(ty.element, const)
            return f"Tuple[{inner}, ...]" if const else f"List[{inner}]"
        raise TypeError(f"Unhandled field kind {ty!r}")
