"""Tests for generated table modules: runtime path, constant path and packages."""

import importlib
import io
import os
import sqlite3
import struct
import sys
import tempfile
import types

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from codegen.package import generate_package, render_package
from codegen.printer import print_table_module
from codegen.registry import SchemaRegistry
from codegen.schema import LayoutMismatchError
from codegen.xml_parser import parse_dbc_xml, parse_dbc_xml_file
from dbc.errors import (
    DecodeAbort,
    EncodingError,
    FieldCountMismatch,
    InvalidDiscriminantError,
    InvalidStringOffsetError,
    KeyConversionError,
    RecordSizeMismatch,
    StructuralError,
)
from dbc.header import HEADER_SIZE, MAGIC
from dbc.localized import ExtendedLocalizedString, LocalizedString

_FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


def _load_generated(source: str, name: str):
    """Execute generated source as a module registered under ``name``."""
    module = types.ModuleType(name)
    sys.modules[name] = module
    exec(compile(source, f"<{name}>", "exec"), module.__dict__)
    return module


def _chr_races_module(emit_const_path: bool = True):
    schema = parse_dbc_xml_file(os.path.join(_FIXTURES, "ChrRaces.xml"))
    source = print_table_module(schema, emit_const_path=emit_const_path)
    return _load_generated(source, "generated_chr_races")


def _chr_races_table(m):
    return m.ChrRaces(rows=[
        m.ChrRacesRow(
            id=m.ChrRacesKey(1),
            flags=m.ChrRacesFlags.try_from(0x5),
            faction=1,
            base_language=m.BaseLanguage.HORDE,
            client_prefix="Hu",
            speed_modifier=1.0,
            hair_customization="hair",
            name=LocalizedString(en_gb="Human", fr_fr="Humain", flags=0xFF01E),
            expansion=0,
            playable=True,
            sex_count=2,
            unknown=[1, -2, 3, -4],
            enabled=True,
        ),
        m.ChrRacesRow(
            id=m.ChrRacesKey(2),
            flags=m.ChrRacesFlags(0),
            faction=2,
            base_language=m.BaseLanguage.ALLIANCE,
            client_prefix="Or",
            speed_modifier=0.5,
            hair_customization="",
            name=LocalizedString(en_gb="Orc"),
            expansion=-1,
            playable=False,
            sex_count=2,
            unknown=[0, 0, 0, 0],
            enabled=False,
        ),
    ])


# ---------------------------------------------------------------------------
# Runtime path
# ---------------------------------------------------------------------------


def test_round_trip():
    m = _chr_races_module()
    table = _chr_races_table(m)
    data = table.to_bytes()

    assert data[:4] == MAGIC
    count, fields, size, strings = struct.unpack_from("<IIII", data, 4)
    assert (count, fields, size) == (2, 24, 88), f"Unexpected header {count, fields, size}"
    assert len(data) == HEADER_SIZE + 2 * 88 + strings

    decoded = m.ChrRaces.from_bytes(data)
    assert decoded == table
    assert decoded.to_bytes() == data, "Re-encoding must be byte-identical"
    assert isinstance(decoded.rows[0].unknown, list)
    assert decoded.rows[0].flags.playable() and decoded.rows[0].flags.can_current_form_mount()
    assert not decoded.rows[0].flags.bare_feet()
    print("  PASS: test_round_trip")


def test_lookup_by_primary_key():
    m = _chr_races_module()
    table = _chr_races_table(m)
    assert table.get(2) is table.rows[1]
    assert table.get(m.ChrRacesKey(1)) is table.rows[0]
    assert table.get(3) is None
    assert len(table) == 2
    print("  PASS: test_lookup_by_primary_key")


def test_header_is_checked_before_rows():
    m = _chr_races_module()
    data = bytearray(_chr_races_table(m).to_bytes())
    struct.pack_into("<I", data, 12, 89)

    stream = io.BytesIO(bytes(data))
    try:
        m.ChrRaces.read(stream)
        assert False, "Should have raised RecordSizeMismatch"
    except RecordSizeMismatch as e:
        assert isinstance(e, StructuralError)
        assert e.expected == 88 and e.actual == 89
    assert stream.tell() == HEADER_SIZE, "No row bytes may be consumed"
    print("  PASS: test_header_is_checked_before_rows")


def test_field_count_mismatch():
    m = _chr_races_module()
    data = bytearray(_chr_races_table(m).to_bytes())
    struct.pack_into("<I", data, 8, 25)
    try:
        m.ChrRaces.from_bytes(bytes(data))
        assert False, "Should have raised FieldCountMismatch"
    except FieldCountMismatch as e:
        assert e.expected == 24 and e.actual == 25
    print("  PASS: test_field_count_mismatch")


def test_array_field_layout():
    schema = parse_dbc_xml(
        "<dbc><name>Numbers</name>"
        "<field><name>values</name><type>int32[4]</type></field></dbc>"
    )
    m = _load_generated(print_table_module(schema), "generated_numbers")
    raw = (
        MAGIC
        + struct.pack("<IIII", 1, 4, 16, 1)
        + struct.pack("<4i", 7, -1, 0, 2147483647)
        + b"\x00"
    )
    table = m.Numbers.from_bytes(raw)
    assert table.rows[0].values == [7, -1, 0, 2147483647]
    assert table.to_bytes() == raw

    table.rows[0].values.append(1)
    try:
        table.to_bytes()
        assert False, "Should have raised ValueError for a 5 element array"
    except ValueError:
        pass
    print("  PASS: test_array_field_layout")


def test_encode_decode_is_idempotent():
    m = _chr_races_module()
    first = _chr_races_table(m).to_bytes()
    second = m.ChrRaces.from_bytes(first).to_bytes()
    third = m.ChrRaces.from_bytes(second).to_bytes()
    assert first == second == third
    print("  PASS: test_encode_decode_is_idempotent")


def test_localized_string_round_trip():
    schema = parse_dbc_xml(
        "<dbc><name>Titles</name>"
        "<field><name>title</name><type>string_ref_loc</type></field></dbc>"
    )
    m = _load_generated(print_table_module(schema), "generated_titles")
    value = LocalizedString(
        en_gb="Private", ko_kr="\uc774\ub4f1\ubcd1", fr_fr="Soldat", de_de="Gefreiter",
        en_cn="Private CN", en_tw="Private TW", es_es="Soldado", es_mx="Soldado raso",
        flags=0xFF01FE,
    )
    first = m.Titles(rows=[m.TitlesRow(title=value)]).to_bytes()
    decoded = m.Titles.from_bytes(first)
    assert decoded.rows[0].title.strings() == value.strings()
    assert decoded.rows[0].title.flags == 0xFF01FE

    second = decoded.to_bytes()
    assert second == first
    assert m.Titles.from_bytes(second).to_bytes() == second
    assert m.ConstTitles.from_embedded(first).to_owned() == decoded
    print("  PASS: test_localized_string_round_trip")


_SPELLS_XML = """
<dbc>
    <name>Spells</name>
    <enum>
        <name>School</name>
        <type>int8</type>
        <options>
            <option name="Physical" value="0"/>
            <option name="Holy" value="1"/>
            <option name="Fire" value="2"/>
        </options>
    </enum>
    <flag>
        <name>SpellFlags</name>
        <type>int32</type>
        <options>
            <option name="Low" value="0x1"/>
            <option name="Top" value="0x80000000"/>
        </options>
    </flag>
    <field><name>id</name><type>uint32</type><key><type>primary</type></key></field>
    <field><name>title</name><type>extended_string_ref_loc</type></field>
    <field><name>icons</name><type>string_ref[2]</type></field>
    <field><name>ranks</name><type>string_ref_loc[2]</type></field>
    <field><name>schools</name><type>School[3]</type></field>
    <field><name>flags</name><type>SpellFlags[2]</type></field>
    <field><name>coords</name><type>float[3]</type></field>
    <field><name>toggles</name><type>bool[2]</type></field>
    <field>
        <name>parent</name>
        <type>uint32</type>
        <key><type>foreign</type><parent>Spells</parent></key>
    </field>
</dbc>
"""


def _spells_table(m):
    return m.Spells(rows=[
        m.SpellsRow(
            id=m.SpellsKey(133),
            title=ExtendedLocalizedString(
                en_gb="Fireball", ru_ru="Огненный шар",
                unknown_15="ball", flags=0x1E,
            ),
            icons=["Spell_Fire_FlameBolt", "ball"],
            ranks=[LocalizedString(en_gb="Rank 1"), LocalizedString(en_gb="Rank 2", flags=3)],
            schools=[m.School.FIRE, m.School.PHYSICAL, m.School.HOLY],
            flags=[
                m.SpellFlags.try_from(m.SpellFlags.FLAGS["top"]),
                m.SpellFlags.try_from(0x80000001),
            ],
            coords=[0.5, -1.25, 3.0],
            toggles=[True, False],
            parent=m.SpellsKey(0),
        ),
        m.SpellsRow(
            id=m.SpellsKey(134),
            title=ExtendedLocalizedString(),
            icons=["", "Spell_Fire_FlameBolt"],
            ranks=[LocalizedString(), LocalizedString(en_gb="Rank 1")],
            schools=[m.School.PHYSICAL] * 3,
            flags=[m.SpellFlags(0), m.SpellFlags.try_from(0x1)],
            coords=[0.0, 0.0, 0.0],
            toggles=[False, True],
            parent=m.SpellsKey(133),
        ),
    ])


def test_composite_kinds_round_trip():
    m = _load_generated(print_table_module(parse_dbc_xml(_SPELLS_XML)), "generated_spells")
    table = _spells_table(m)
    data = table.to_bytes()

    _, fields, size, _ = struct.unpack_from("<IIII", data, 4)
    assert (fields, size) == (49, 181), f"Unexpected layout {fields, size}"

    decoded = m.Spells.from_bytes(data)
    assert decoded == table
    assert decoded.to_bytes() == data
    assert decoded.rows[1].parent == m.SpellsKey(133)

    const = m.ConstSpells.from_embedded(data)
    assert const.to_owned() == decoded
    row = const.rows[0]
    assert isinstance(row.icons, tuple) and bytes(row.icons[0]) == b"Spell_Fire_FlameBolt"
    assert bytes(row.title.unknown_15) == b"ball"
    assert bytes(row.ranks[1].en_gb) == b"Rank 2" and row.ranks[1].flags == 3
    assert row.schools == (m.School.FIRE, m.School.PHYSICAL, m.School.HOLY)
    assert row.toggles == (True, False)
    print("  PASS: test_composite_kinds_round_trip")


def test_signed_flag_top_bit_round_trip():
    m = _load_generated(print_table_module(parse_dbc_xml(_SPELLS_XML)), "generated_spells")
    top = m.SpellFlags.try_from(m.SpellFlags.FLAGS["top"])
    assert top.as_int() == -2147483648
    assert top.top() and not top.low()

    data = _spells_table(m).to_bytes()
    decoded = m.Spells.from_bytes(data)
    assert decoded.rows[0].flags[0] == top
    assert decoded.rows[0].flags[1].names() == ["low", "top"]
    assert m.ConstSpells.from_embedded(data).rows[0].flags[0] == top
    print("  PASS: test_signed_flag_top_bit_round_trip")


def test_invalid_discriminants():
    m = _chr_races_module()
    good = _chr_races_table(m).to_bytes()

    # Row 0 base_language is at row offset 12
    data = bytearray(good)
    struct.pack_into("<i", data, HEADER_SIZE + 12, 3)
    try:
        m.ChrRaces.from_bytes(bytes(data))
        assert False, "Should have raised InvalidDiscriminantError"
    except InvalidDiscriminantError as e:
        assert e.name == "BaseLanguage" and e.value == 3

    # Row 0 flags at row offset 4; 0x8 is not a declared bit
    data = bytearray(good)
    struct.pack_into("<I", data, HEADER_SIZE + 4, 0x8)
    try:
        m.ChrRaces.from_bytes(bytes(data))
        assert False, "Should have raised InvalidDiscriminantError"
    except InvalidDiscriminantError as e:
        assert e.name == "ChrRacesFlags"

    try:
        m.ConstChrRaces.from_embedded(bytes(data))
        assert False, "Should have aborted"
    except DecodeAbort:
        pass
    print("  PASS: test_invalid_discriminants")


def test_invalid_utf8():
    m = _chr_races_module()
    data = bytearray(_chr_races_table(m).to_bytes())
    string_block = HEADER_SIZE + 2 * 88
    at = data.index(b"Hu\x00", string_block)
    data[at] = 0xFF

    try:
        m.ChrRaces.from_bytes(bytes(data))
        assert False, "Should have raised EncodingError"
    except EncodingError as e:
        assert e.offset == at - string_block
    try:
        m.ConstChrRaces.from_embedded(bytes(data))
        assert False, "Should have aborted"
    except DecodeAbort:
        pass
    print("  PASS: test_invalid_utf8")


def test_strings_must_end_inside_string_block():
    m = _chr_races_module()
    data = bytearray(_chr_races_table(m).to_bytes())
    # Shrink the declared block by one byte; the last NUL becomes trailing data
    string_block_size = struct.unpack_from("<I", data, 16)[0]
    struct.pack_into("<I", data, 16, string_block_size - 1)

    try:
        m.ChrRaces.from_bytes(bytes(data))
        assert False, "Should have raised InvalidStringOffsetError"
    except InvalidStringOffsetError:
        pass
    try:
        m.ConstChrRaces.from_embedded(bytes(data))
        assert False, "Should have aborted"
    except DecodeAbort:
        pass
    print("  PASS: test_strings_must_end_inside_string_block")


# ---------------------------------------------------------------------------
# Constant path
# ---------------------------------------------------------------------------


def test_const_path_matches_runtime():
    m = _chr_races_module()
    data = _chr_races_table(m).to_bytes()

    const = m.ConstChrRaces.from_embedded(data)
    assert len(const) == 2
    row = const.rows[0]
    assert isinstance(row.client_prefix, memoryview)
    assert row.client_prefix.obj is data, "Strings must borrow the embedded buffer"
    assert bytes(row.name.en_gb) == b"Human"
    assert row.unknown == (1, -2, 3, -4)
    assert row.id == m.ChrRacesKey(1)

    owned = const.to_owned()
    assert isinstance(owned, m.ChrRaces)
    assert owned == m.ChrRaces.from_bytes(data)
    assert const == m.ConstChrRaces.from_embedded(data)
    print("  PASS: test_const_path_matches_runtime")


def test_const_default_row():
    m = _chr_races_module()
    row = m.ConstChrRacesRow.default()
    assert row.id == m.ChrRacesKey(0)
    assert row.base_language is m.BaseLanguage.HORDE
    assert row.flags == m.ChrRacesFlags(0)
    assert bytes(row.client_prefix) == b""
    assert row.unknown == (0, 0, 0, 0)
    assert row.enabled is False
    print("  PASS: test_const_default_row")


def test_decode_abort_is_not_an_exception():
    m = _chr_races_module()
    data = bytearray(_chr_races_table(m).to_bytes())
    struct.pack_into("<I", data, 12, 89)
    try:
        try:
            m.ConstChrRaces.from_embedded(bytes(data))
        except Exception:
            assert False, "DecodeAbort must not be caught by except Exception"
    except DecodeAbort:
        pass

    truncated = _chr_races_table(m).to_bytes()[:HEADER_SIZE + 50]
    try:
        m.ConstChrRaces.from_embedded(truncated)
        assert False, "Should have aborted on truncated input"
    except DecodeAbort:
        pass
    print("  PASS: test_decode_abort_is_not_an_exception")


# ---------------------------------------------------------------------------
# Generator output
# ---------------------------------------------------------------------------


def test_generator_is_deterministic():
    schema = parse_dbc_xml_file(os.path.join(_FIXTURES, "ChrRaces.xml"))
    first = print_table_module(schema)
    second = print_table_module(schema)
    assert first == second
    assert "# id: primary_key (ChrRaces) uint32" in first
    assert "# unknown: int32[4]" in first
    assert "# name: string_ref_loc" in first
    assert "class ConstChrRaces(ConstDbcTable):" in first

    runtime_only = print_table_module(schema, emit_const_path=False)
    assert "ConstChrRaces" not in runtime_only
    assert "DecodeAbort" not in runtime_only
    print("  PASS: test_generator_is_deterministic")


def test_generator_rejects_layout_mismatch():
    schema = parse_dbc_xml(
        "<dbc><name>Broken</name><record_size>12</record_size>"
        "<field><name>id</name><type>uint32</type></field></dbc>"
    )
    try:
        print_table_module(schema)
        assert False, "Should have raised LayoutMismatchError"
    except LayoutMismatchError as e:
        assert e.table == "Broken"
        assert e.declared == 12 and e.computed == 4
    print("  PASS: test_generator_rejects_layout_mismatch")


def test_generated_package():
    registry = SchemaRegistry.from_directory(_FIXTURES)
    files = render_package(registry, emit_sqlite_converter=True)
    assert list(files) == [
        "__init__.py", "chr_races.py", "faction_template.py", "sqlite_converter.py",
    ]
    assert "from . import faction_template" in files["chr_races.py"]

    package_name = "generated_tables_pkg"
    with tempfile.TemporaryDirectory() as tmpdir:
        generate_package(registry, tmpdir, package_name, emit_sqlite_converter=True)
        sys.path.insert(0, tmpdir)
        try:
            pkg = importlib.import_module(package_name)
            chr_races = importlib.import_module(f"{package_name}.chr_races")
            converter = importlib.import_module(f"{package_name}.sqlite_converter")
            _check_package(pkg, chr_races, converter, tmpdir)
        finally:
            sys.path.remove(tmpdir)
            for name in list(sys.modules):
                if name == package_name or name.startswith(package_name + "."):
                    del sys.modules[name]
    print("  PASS: test_generated_package")


def _check_package(pkg, chr_races, converter, tmpdir):
    assert pkg.ALL_TABLES == (pkg.ChrRaces, pkg.FactionTemplate)

    templates = pkg.FactionTemplate(rows=[
        pkg.FactionTemplateRow(
            id=pkg.FactionTemplateKey(5),
            faction=1,
            enemies=[1, 2, 3, 4],
            parent=pkg.FactionTemplateKey(5),
        ),
    ])
    decoded = pkg.FactionTemplate.from_bytes(templates.to_bytes())
    assert decoded == templates
    assert isinstance(decoded.rows[0].parent, pkg.FactionTemplateKey)
    assert decoded.rows[0].enemies == [1, 2, 3, 4]
    assert pkg.FactionTemplate.RECORD_SIZE == 24

    races = pkg.ChrRaces(rows=[
        pkg.ChrRacesRow(
            id=pkg.ChrRacesKey(1),
            flags=chr_races.ChrRacesFlags(0x1),
            faction=pkg.FactionTemplateKey(5),
            base_language=chr_races.BaseLanguage.HORDE,
            client_prefix="Hu",
            speed_modifier=1.0,
            hair_customization="",
            name=LocalizedString(en_gb="Human"),
            expansion=0,
            playable=True,
            sex_count=2,
            unknown=[1, -2, 3, -4],
            enabled=True,
        ),
    ])
    data = races.to_bytes()
    decoded = pkg.ChrRaces.from_bytes(data)
    assert decoded.rows[0].faction == pkg.FactionTemplateKey(5)
    assert pkg.ConstChrRaces.from_embedded(data).to_owned() == decoded

    # A uint32 foreign key that does not fit the uint16 target key
    wide = bytearray(data)
    struct.pack_into("<I", wide, HEADER_SIZE + 8, 70000)
    try:
        pkg.ChrRaces.from_bytes(bytes(wide))
        assert False, "Should have raised KeyConversionError"
    except KeyConversionError as e:
        assert e.value == 70000
    try:
        pkg.ConstChrRaces.from_embedded(bytes(wide))
        assert False, "Should have aborted"
    except DecodeAbort:
        pass

    db_path = os.path.join(tmpdir, "tables.db")
    converter.write_to_sqlite("ChrRaces.dbc", data, db_path)
    conn = sqlite3.connect(db_path)
    try:
        result = conn.execute(
            'SELECT id, faction, name_en_gb, name_flags, unknown_1, playable FROM "ChrRaces"'
        ).fetchall()
    finally:
        conn.close()
    assert result == [(1, 5, "Human", 0, -2, 1)], f"Unexpected rows {result}"

    try:
        converter.write_to_sqlite("Nope.dbc", data, db_path)
        assert False, "Should have raised FilenameNotFoundError"
    except converter.FilenameNotFoundError as e:
        assert e.name == "Nope.dbc"


if __name__ == "__main__":
    test_round_trip()
    test_lookup_by_primary_key()
    test_header_is_checked_before_rows()
    test_field_count_mismatch()
    test_array_field_layout()
    test_encode_decode_is_idempotent()
    test_localized_string_round_trip()
    test_composite_kinds_round_trip()
    test_signed_flag_top_bit_round_trip()
    test_invalid_discriminants()
    test_invalid_utf8()
    test_strings_must_end_inside_string_block()
    test_const_path_matches_runtime()
    test_const_default_row()
    test_decode_abort_is_not_an_exception()
    test_generator_is_deterministic()
    test_generator_rejects_layout_mismatch()
    test_generated_package()
