import pytest

from reflector.attributes.catalog import build_attribute_registry
from reflector.errors import AttributeValueError, ScanError
from reflector.parsing.attributes import (
    convert_word,
    parse_attribute_list,
    parse_native_attributes,
    read_attribute_object,
)
from reflector.parsing.scanners import Cursor


def test_reads_permissive_object_literal():
    bag = read_attribute_object(
        'Getter = false, DisplayName: "Hit \\"Points\\"", Flags = Game::Color, Required, '
        "Tags = [a, 2, 0x10], Default = { Script = false, Ratio = 0.5 }"
    )
    assert bag == {
        "Getter": False,
        "DisplayName": 'Hit "Points"',
        "Flags": "Game::Color",
        "Required": True,
        "Tags": ["a", 2, 16],
        "Default": {"Script": False, "Ratio": 0.5},
    }


def test_empty_list_is_empty_bag():
    assert read_attribute_object("  ") == {}


def test_convert_word():
    assert convert_word("null") is None
    assert convert_word("-12") == -12
    assert convert_word("1e3") == "1e3"
    assert convert_word("2.5") == 2.5
    assert convert_word("Red") == "Red"


def test_malformed_lists_raise_scan_errors():
    with pytest.raises(ScanError, match="Invalid attribute list"):
        read_attribute_object('Name = "unterminated')
    with pytest.raises(ScanError, match="Invalid attribute list"):
        read_attribute_object("Tags = [a b]")
    with pytest.raises(ScanError, match="Invalid attribute list"):
        read_attribute_object("A = 1 B = 2")


def test_parse_attribute_list_consumes_parentheses_and_rejects_system_attributes():
    registry = build_attribute_registry()
    cursor = Cursor("(Getter = false) int mValue;")
    assert parse_attribute_list(cursor, registry) == {"Getter": False}
    assert cursor.text == " int mValue;"

    with pytest.raises(AttributeValueError, match="not user-settable: 'Deprecated'"):
        parse_attribute_list(Cursor("(Deprecated = true)"), registry)


def test_native_attributes_map_to_system_names():
    registry = build_attribute_registry()
    cursor = Cursor('[[nodiscard, deprecated("use Other")]] [[noreturn]] void Fail();')
    assert parse_native_attributes(cursor, registry) == {
        "NoDiscard": True,
        "Deprecated": "use Other",
        "NoReturn": True,
    }
    assert cursor.text.strip() == "void Fail();"


def test_native_attributes_pass_unknown_names_through():
    registry = build_attribute_registry()
    bag = parse_native_attributes(Cursor("[[gnu::hot, maybe_unused]] int x;"), registry)
    assert bag == {"gnu::hot": True, "maybe_unused": True}
