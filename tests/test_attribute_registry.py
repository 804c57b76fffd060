from pathlib import Path

import pytest

from reflector.attributes import catalog
from reflector.attributes.catalog import ALL_ATTRIBUTES, build_attribute_registry
from reflector.attributes.registry import AttributeRegistry, bool_attribute
from reflector.errors import AttributeValueError
from reflector.models.declarations import (
    Class,
    DeclarationKind,
    Enumeration,
    Field,
    FileMirror,
    Method,
)
from reflector.models.graph import DeclarationGraph


def make_field(**attributes) -> Field:
    mirror = FileMirror(path=Path("Thing.h"))
    return Field(name="mValue", attributes=attributes, declaration_line=12, file=mirror)


def test_catalog_names_are_unique_and_registered():
    registry = build_attribute_registry()
    assert len(registry) == len(ALL_ATTRIBUTES)
    assert registry.get("Edit") is catalog.EDITOR
    assert registry.get("Interface") is catalog.ABSTRACT
    assert "Flags" in registry
    with pytest.raises(ValueError, match="No attribute registered"):
        registry.get("Bogus")


def test_duplicate_registration_is_rejected():
    registry = AttributeRegistry([catalog.GETTER])
    with pytest.raises(ValueError, match="registered twice"):
        registry.register(bool_attribute("Getter", "again", [DeclarationKind.FIELD]))


def test_lookup_returns_value_or_default():
    registry = build_attribute_registry()
    item = make_field(Getter=False)
    assert registry.lookup(catalog.GETTER, item) is False
    assert registry.lookup(catalog.SETTER, item) is True
    assert registry.lookup(catalog.ON_CHANGE, item, "") == ""


def test_lookup_accepts_alternate_names():
    registry = build_attribute_registry()
    assert registry.lookup(catalog.EDITOR, make_field(Edit=False)) is False


def test_lookup_rejects_wrong_type_with_location():
    registry = build_attribute_registry()
    with pytest.raises(AttributeValueError) as excinfo:
        registry.lookup(catalog.GETTER, make_field(Getter="yes"))
    error = excinfo.value
    assert error.message == "Invalid attribute 'Getter': must be a boolean"
    assert error.line == 12
    assert error.path == Path("Thing.h")


def test_target_check_names_applicable_kinds():
    registry = build_attribute_registry()
    method = Method(name="Run", attributes={"Singleton": True})
    with pytest.raises(AttributeValueError, match="only applies on the following entities: Class"):
        registry.validate_bag(method)


def test_unknown_attributes_pass_through():
    registry = build_attribute_registry()
    registry.validate_bag(make_field(Tooltip="Shown in editor", Range=[0, 10]))


def test_flags_validation_is_deferred_until_lookup():
    graph = DeclarationGraph()
    registry = build_attribute_registry(graph)
    item = make_field(Flags="Color")

    registry.validate_bag(item, defer=(catalog.FLAGS, catalog.FLAG_GETTERS))
    with pytest.raises(AttributeValueError, match="'Color' is not a reflected enum"):
        registry.lookup(catalog.FLAGS, item)

    mirror = FileMirror(path=Path("Color.h"))
    mirror.enums.append(Enumeration(name="Color", namespace="Game", file=mirror))
    graph.add_file(mirror)
    assert registry.lookup(catalog.FLAGS, item) == "Color"
    assert registry.lookup(catalog.FLAGS, make_field(Flags="Game::Color")) == "Game::Color"


def test_deferred_entries_still_check_targets():
    registry = build_attribute_registry()
    klass = Class(name="Thing", attributes={"Flags": "Color"})
    with pytest.raises(AttributeValueError, match="only applies on the following entities: Field"):
        registry.validate_bag(klass, defer=(catalog.FLAGS,))


def test_identifier_and_namespace_validators():
    registry = build_attribute_registry()
    with pytest.raises(AttributeValueError, match="valid C\\+\\+ identifier"):
        registry.validate_bag(Method(name="Run", attributes={"UniqueName": "run-fast"}))
    with pytest.raises(AttributeValueError, match="valid namespace name"):
        registry.validate_bag(Class(name="Thing", attributes={"Namespace": "Game::3d"}))
    with pytest.raises(AttributeValueError, match="cannot be empty"):
        registry.validate_bag(Class(name="Thing", attributes={"DisplayName": ""}))


def test_default_bags_are_copied():
    registry = build_attribute_registry()
    klass = Class(name="Thing")
    first = registry.lookup(catalog.DEFAULT_FIELD_ATTRIBUTES, klass)
    first["Script"] = False
    assert registry.lookup(catalog.DEFAULT_FIELD_ATTRIBUTES, klass) == {}


def test_by_category_groups_entries():
    grouped = build_attribute_registry().by_category()
    assert catalog.FLAGS in grouped[catalog.FLAGS_CATEGORY]
    assert all(not entry.user_settable for entry in grouped[catalog.NATIVE_CATEGORY])
