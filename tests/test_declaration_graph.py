from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from reflector.models.declarations import (
    Class,
    Enumeration,
    Enumerator,
    Field,
    FieldFlags,
    FileMirror,
    Method,
    MethodFlags,
    compute_uid,
    flag_names,
    split_parameters,
)
from reflector.models.graph import DeclarationGraph


def make_file(name: str, *classes: Class) -> FileMirror:
    mirror = FileMirror(path=Path(name))
    for klass in classes:
        klass.file = mirror
        mirror.classes.append(klass)
    return mirror


def test_full_names_and_types():
    klass = Class(name="Unit", namespace="Game::World")
    assert klass.full_type() == "Game::World::Unit"
    assert klass.full_name() == "Game.World.Unit"
    assert klass.full_name("::") == "Game::World::Unit"

    item = Field(name="mCount", parent=klass)
    assert item.full_name() == "Game.World.Unit.mCount"

    method = Method(name="Update", parent=klass, uid=0xABC)
    assert method.full_name() == "Game.World.Unit.Update_0000000000000abc"


def test_uid_is_stable_and_distinct_per_line():
    assert compute_uid(Path("a/B.h"), 10) == compute_uid("a/B.h", 10)
    assert compute_uid("a/B.h", 10) != compute_uid("a/B.h", 11)
    assert compute_uid("a/B.h", 10) != compute_uid("a/C.h", 10)


def test_enum_classification():
    henum = Enumeration(name="Color")
    henum.enumerators = [Enumerator(name=name, value=value) for name, value in (("A", 0), ("B", 1), ("C", 2))]
    assert henum.is_trivial() and henum.is_consecutive()

    henum.enumerators = [Enumerator(name=name, value=value) for name, value in (("A", 1), ("B", 2))]
    assert henum.is_consecutive() and not henum.is_trivial()

    henum.enumerators = [Enumerator(name=name, value=value) for name, value in (("A", 0), ("B", 4))]
    assert not henum.is_consecutive()


def test_split_parameters():
    params = split_parameters("std::map<int, float> const& values, int count = foo(1, 2), bool")
    assert [(p.type, p.name, p.initializer) for p in params] == [
        ("std::map<int, float> const&", "values", ""),
        ("int", "count", "foo(1, 2)"),
        ("bool", "", ""),
    ]
    assert split_parameters("void") == []
    assert split_parameters("  ") == []


def test_flag_names_are_camel_case():
    assert flag_names(FieldFlags.NO_GETTER | FieldFlags.DECLARED_PRIVATE) == ["NoGetter", "DeclaredPrivate"]
    assert flag_names(MethodFlags(0)) == []


def test_lookups_resolve_qualified_and_ambiguous_names():
    graph = DeclarationGraph()
    base = Class(name="Object", namespace="Core")
    unit = Class(name="Unit", namespace="Game", base_class="Core::Object")
    hero = Class(name="Hero", namespace="Game", base_class="Unit")
    graph.add_file(make_file("Core.h", base))
    graph.add_file(make_file("Game.h", unit, hero))

    assert graph.find_class("::Core::Object") is base
    assert graph.find_class("Unit") is unit
    assert graph.ancestors(hero) == [unit, base]
    assert graph.find_declaration("Game.Hero") is hero

    graph.add_file(make_file("Other.h", Class(name="Unit", namespace="Other")))
    assert graph.find_class("Unit") is None
    assert len(graph.find_classes("Unit")) == 2
    assert graph.find_class("Game::Unit") is unit


def test_ancestors_stop_on_cycles():
    graph = DeclarationGraph()
    a = Class(name="A", base_class="B")
    b = Class(name="B", base_class="A")
    graph.add_file(make_file("Cycle.h", a, b))
    assert graph.ancestors(a) == [b]


def test_concurrent_appends_keep_every_file():
    graph = DeclarationGraph()
    mirrors = [make_file(f"File{index}.h", Class(name=f"C{index}")) for index in range(50)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(graph.add_file, mirrors))
    assert len(graph.files) == 50
    assert sum(1 for _ in graph.classes()) == 50
    assert graph.declaration_count() == 50


def test_field_render_reproduces_declaration():
    braced = Field(name="mHistory", type="std::vector<int>", initializing_expression="{ 1, 2 }")
    braced.flags |= FieldFlags.BRACE_INITIALIZED
    assert braced.render() == "std::vector<int> mHistory{ 1, 2 };"

    counted = Field(name="sCount", type="int", initializing_expression="3", flags=FieldFlags.STATIC)
    assert counted.render() == "static int sCount = 3;"

    assert Field(name="mName", type="std::string", flags=FieldFlags.MUTABLE).render() == "mutable std::string mName;"


def test_method_signature():
    klass = Class(name="Unit", namespace="Game")
    method = Method(name="Score", parent=klass, return_type="int", flags=MethodFlags.CONST | MethodFlags.NOEXCEPT)
    method.set_parameters("int bonus, float scale = 1.0f")
    assert method.signature() == "int (Game::Unit::*)(int,float) const noexcept"
    assert method.has_default_arguments

    static = Method(name="Make", parent=klass, return_type="Unit", flags=MethodFlags.STATIC)
    static.set_parameters("void")
    assert static.signature() == "Unit (*)()"
    assert static.parameters == []
