import json
from pathlib import Path

from reflector.serialization import declaration_to_dict, graph_to_dict, write_database


def load_fixture(name: str) -> str:
    fixture_path = Path(__file__).parent / "fixtures" / "cpp" / name
    return fixture_path.read_text()


def test_graph_dict_describes_classes_and_enums(parse, derive, context):
    parse(load_fixture("Unit.h"), "Game/Unit.h")
    assert derive() == []

    data = graph_to_dict(context.graph)
    assert data["Version"] == 1
    assert [entry["SourceFilePath"] for entry in data["Files"]] == ["Game/Unit.h"]

    entry = data["Files"][0]
    unit = entry["Classes"]["Game.Unit"]
    assert unit["Kind"] == "Class"
    assert unit["FullType"] == "Game::Unit"
    assert unit["BaseClass"] == "Reflectable"
    assert unit["BodyLine"] == 20
    assert unit["Attributes"] == {"Namespace": "Game"}
    assert "HasProxy" in unit["Flags"]
    assert len(unit["UID"]) == 16

    count = unit["Fields"]["mCount"]
    assert count["Type"] == "int"
    assert count["InitializingExpression"] == "0"
    assert count["CleanName"] == "Count"
    assert count["Comments"] == ["How many of these are stacked"]
    assert count["Access"] == "Public"
    assert set(count["AssociatedArtificialMethods"]) == {"Getter", "Setter"}

    getter = next(method for method in unit["Methods"] if method["Name"] == "GetCount")
    assert getter["ReturnType"] == "int const&"
    assert getter["Signature"] == "int const& (Game::Unit::*)() const noexcept"
    assert getter["SourceDeclaration"] == "Game.Unit.mCount"
    assert {"Const", "Noexcept", "Artificial", "HasBody", "NoDiscard"} <= set(getter["Flags"])

    properties = {prop["Name"]: prop for prop in unit["Properties"]}
    assert properties["Health"]["Type"] == "int"
    assert properties["History"]["SourceField"] == "Game.Unit.mHistory"
    assert properties["History"]["Setter"] is None

    assert [flag["Enumerator"] for flag in unit["DeclaredFlags"]] == [
        "Game.Color.Red",
        "Game.Color.Green",
        "Game.Color.Blue",
    ]

    color = entry["Enums"]["Game.Color"]
    assert color["Trivial"] is True
    assert color["Consecutive"] is True
    assert {name: value["Value"] for name, value in color["Enumerators"].items()} == {
        "Red": 0,
        "Green": 1,
        "Blue": 2,
    }


def test_enum_dict_reports_values_and_comments(parse):
    mirror = parse(load_fixture("Settings.h"), "Settings.h")
    difficulty = declaration_to_dict(mirror.enums[0])
    assert difficulty["BaseType"] == "uint8_t"
    assert difficulty["Flags"] == ["List"]
    assert difficulty["Trivial"] is False
    assert difficulty["Enumerators"]["Normal"]["Comments"] == ["The default one"]
    assert difficulty["Enumerators"]["Insane"]["Value"] == -2

    window = declaration_to_dict(mirror.enums[1])
    assert window["Enumerators"]["Visible"]["Opposite"] == "Hidden"


def test_write_database_round_trips_through_json(parse, derive, context, tmp_path):
    parse(load_fixture("Settings.h"), "Settings.h")
    assert derive() == []

    target = write_database(context.graph, tmp_path / "out" / "reflection.json")
    assert target.exists()
    assert json.loads(target.read_text()) == graph_to_dict(context.graph)


def test_empty_files_are_left_out(parse, context):
    parse("// nothing reflected here\nint x = 1;\n", "Empty.h")
    assert graph_to_dict(context.graph)["Files"] == []
