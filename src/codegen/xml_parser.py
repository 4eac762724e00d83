"""
XML schema description parser.

Format (one table per file):
  <dbc>
    <name>ChrRaces</name>
    <record_size>116</record_size>            optional
    <field_count>29</field_count>             optional
    <enum> <name/> <type/> <options><option name=".." value=".."/></options> </enum>
    <flag> ...same shape as enum... </flag>
    <field> <name/> <type/> <key><type>primary|foreign</type><parent/></key> </field>
  </dbc>

Enums and flags must appear before the fields that use them. Values may be
decimal or 0x-prefixed hex. Array types are written as ``type[N]``.
"""

import re
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from codegen.schema import Definer, Enumerator, Field, SchemaError, TableSchema
from dbc.field_types import (
    EXTENDED_STRING_REF_LOC_NAME,
    INTEGER_KINDS,
    SCALARS,
    STRING_REF_LOC_NAME,
    STRING_REF_NAME,
    EnumRef,
    ExtendedLocalizedStringRef,
    FieldType,
    FixedArray,
    FlagRef,
    ForeignKey,
    LocalizedStringRef,
    PrimaryKey,
    StringRef,
    primitive,
)
from utils.formatting import python_identifier

_ARRAY_TYPE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*\[\s*(\d+)\s*\]\s*$")


def parse_dbc_xml_file(path: str) -> TableSchema:
    """Parse a schema description file."""
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise SchemaError(f"{path}: {e}") from e
    return _parse_root(tree.getroot())


def parse_dbc_xml(text: str) -> TableSchema:
    """Parse a schema description from a string."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise SchemaError(str(e)) from e
    return _parse_root(root)


def parse_int(value: str) -> int:
    """Parse a decimal or 0x-prefixed hex value."""
    v = value.strip()
    try:
        if "0x" in v.lower():
            return int(v, 16)
        return int(v, 10)
    except ValueError:
        raise SchemaError(f"Invalid number {value!r}") from None


def _child_text(elem: ET.Element, tag: str, context: str) -> str:
    child = elem.find(tag)
    if child is None or child.text is None or not child.text.strip():
        raise SchemaError(f"{context}: missing <{tag}>")
    return child.text.strip()


def _optional_int(elem: ET.Element, tag: str) -> Optional[int]:
    child = elem.find(tag)
    if child is None or child.text is None:
        return None
    return parse_int(child.text)


def _parse_root(root: ET.Element) -> TableSchema:
    if root.tag != "dbc":
        raise SchemaError(f"Root element must be <dbc>, got <{root.tag}>")

    table_name = _child_text(root, "name", "dbc")

    definers: Dict[str, Definer] = {}
    enums = _parse_definers(root, "enum", table_name, definers)
    flags = _parse_definers(root, "flag", table_name, definers)
    fields = _parse_fields(root, table_name, definers)

    schema = TableSchema(
        name=table_name,
        fields=fields,
        enums=enums,
        flags=flags,
        declared_record_size=_optional_int(root, "record_size"),
        declared_field_count=_optional_int(root, "field_count"),
    )
    schema.validate()
    return schema


def _parse_definers(
    root: ET.Element, tag: str, table_name: str, definers: Dict[str, Definer]
) -> List[Definer]:
    result = []
    for elem in root.findall(tag):
        name = _child_text(elem, "name", f"{table_name} <{tag}>")
        kind = _child_text(elem, "type", f"{table_name} {name}")
        if kind not in INTEGER_KINDS:
            raise SchemaError(f"{table_name} {name}: {tag} type must be an integer, got {kind}")

        options = elem.find("options")
        if options is None:
            raise SchemaError(f"{table_name} {name}: missing <options>")

        enumerators = []
        for option in options.findall("option"):
            option_name = option.get("name")
            value = option.get("value")
            if option_name is None or value is None:
                raise SchemaError(f"{table_name} {name}: <option> needs name and value")
            enumerators.append(Enumerator(option_name, parse_int(value)))

        definer = Definer(name, primitive(kind), enumerators, is_flag=(tag == "flag"))
        if name in definers:
            raise SchemaError(f"{table_name}: {name} defined twice")
        definers[name] = definer
        result.append(definer)
    return result


def _parse_type(
    ty: str,
    key: Optional[ET.Element],
    table_name: str,
    definers: Dict[str, Definer],
    context: str,
) -> FieldType:
    m = _ARRAY_TYPE.match(ty)
    if m:
        size = int(m.group(2))
        if size == 0:
            raise SchemaError(f"{context}: array size must be positive")
        if key is not None and _key_type(key, context) == "primary":
            raise SchemaError(f"{context}: a primary key cannot be an array")
        return FixedArray(_parse_type(m.group(1), key, table_name, definers, context), size)

    ty = ty.strip()
    if ty in INTEGER_KINDS:
        inner = primitive(ty)
        if key is None:
            return inner
        if _key_type(key, context) == "primary":
            return PrimaryKey(table_name, inner)
        return ForeignKey(_child_text(key, "parent", context), inner)

    if key is not None:
        raise SchemaError(f"{context}: keys must be integers, got {ty}")

    if ty in SCALARS:
        return primitive(ty)
    if ty == STRING_REF_NAME:
        return StringRef()
    if ty == STRING_REF_LOC_NAME:
        return LocalizedStringRef()
    if ty == EXTENDED_STRING_REF_LOC_NAME:
        return ExtendedLocalizedStringRef()

    definer = definers.get(ty)
    if definer is not None:
        if definer.is_flag:
            return FlagRef(definer.name, definer.inner)
        return EnumRef(definer.name, definer.inner)

    raise SchemaError(f"{context}: unknown type {ty!r}")


def _key_type(key: ET.Element, context: str) -> str:
    key_type = _child_text(key, "type", f"{context} <key>")
    if key_type not in ("primary", "foreign"):
        raise SchemaError(f"{context}: key type must be primary or foreign, got {key_type}")
    return key_type


def _parse_fields(
    root: ET.Element, table_name: str, definers: Dict[str, Definer]
) -> List[Field]:
    fields = []
    for elem in root.findall("field"):
        raw_name = _child_text(elem, "name", f"{table_name} <field>")
        try:
            name = python_identifier(raw_name)
        except ValueError as e:
            raise SchemaError(f"{table_name}: {e}") from e
        context = f"{table_name}.{name}"
        ty = _child_text(elem, "type", context)
        fields.append(Field(name, _parse_type(ty, elem.find("key"), table_name, definers, context)))
    return fields
