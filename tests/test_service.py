from pathlib import Path

from reflector.config import Settings
from reflector.errors import ErrorKind
from reflector.service import ReflectionService

FIXTURES = Path(__file__).parent / "fixtures" / "cpp"


def write_header(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    return path


GOOD = "RClass()\nstruct Good\n{\n\tRBody();\n\tRField()\n\tint mValue;\n};\n"
BAD = "RClass()\nstruct Bad\n{\n\tRBody();\n\tRField()\n\tint mValue\n};\n"


def test_run_over_fixture_directory():
    service = ReflectionService(Settings())
    result = service.run([FIXTURES])

    assert result.ok, [d.format() for d in result.diagnostics]
    assert sorted(path.name for path in result.files) == ["Settings.h", "Unit.h"]
    assert len(result.parsed) == 2
    assert result.warnings == []
    classes = {klass.name for klass in service.context.graph.classes()}
    assert classes == {"GameSettings", "Unit"}


def test_discover_respects_recursion_and_extensions(tmp_path):
    write_header(tmp_path / "A.h", GOOD)
    write_header(tmp_path / "notes.txt", "nothing")
    write_header(tmp_path / "nested" / "B.hpp", GOOD.replace("Good", "Nested"))

    flat = ReflectionService(Settings()).discover([tmp_path])
    assert [path.name for path in flat] == ["A.h"]

    deep = ReflectionService(Settings(recursive=True)).discover([tmp_path])
    assert sorted(path.name for path in deep) == ["A.h", "B.hpp"]


def test_discover_deduplicates(tmp_path):
    header = write_header(tmp_path / "A.h", GOOD)
    found = ReflectionService(Settings()).discover([header, tmp_path, header])
    assert found == [header]


def test_failure_in_one_file_does_not_hide_others(tmp_path):
    write_header(tmp_path / "Good.h", GOOD)
    write_header(tmp_path / "Bad.h", BAD)
    service = ReflectionService(Settings())
    result = service.run([tmp_path])

    assert not result.ok
    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.path == tmp_path / "Bad.h"
    assert error.line == 6
    assert error.kind is ErrorKind.LEXICAL
    assert [mirror.path.name for mirror in result.parsed] == ["Good.h"]
    # no derivation after a parse failure
    good = next(service.context.graph.classes())
    assert good.methods == []


def test_cross_reference_errors_are_reported(tmp_path):
    write_header(
        tmp_path / "Flags.h",
        "RClass()\nstruct Holder\n{\n\tRBody();\n\tRField(Flags = \"Nowhere\")\n\tint mFlags;\n};\n",
    )
    result = ReflectionService(Settings()).run([tmp_path])
    assert len(result.errors) == 1
    assert result.errors[0].kind is ErrorKind.ATTRIBUTE
    assert "'Nowhere' is not a reflected enum" in result.errors[0].message


def test_missing_path_is_an_error(tmp_path):
    result = ReflectionService(Settings()).run([tmp_path / "Nope.h"])
    assert result.files == []
    assert len(result.errors) == 1
    assert result.errors[0].message == "File or directory does not exist"


def test_settings_files_are_used_by_default(tmp_path):
    header = write_header(tmp_path / "Good.h", GOOD)
    result = ReflectionService(Settings(files=[header])).run()
    assert result.ok
    assert result.files == [header]
