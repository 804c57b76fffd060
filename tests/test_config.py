from pathlib import Path

import pytest

from reflector.config import Settings, load_settings
from reflector.errors import ConfigError


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    assert settings.files == []
    assert settings.extensions_to_scan == [".h", ".hpp"]
    assert settings.recursive is False
    assert settings.names.getter_prefix == "Get"
    assert settings.class_marker == "RClass"
    assert settings.body_marker == "RBody"


def test_yaml_config_is_loaded(tmp_path):
    config = tmp_path / "reflector.yaml"
    config.write_text(
        "files:\n"
        "  - include\n"
        "  - /abs/Other.h\n"
        "extensions_to_scan: [hh, .hpp]\n"
        "recursive: true\n"
        "annotation_prefix: Meta\n"
        "body_annotation_name: META_BODY\n"
        "names:\n"
        "  getter_prefix: Fetch\n"
        "default_field_attributes:\n"
        "  Script: false\n"
    )
    settings = load_settings(config)

    assert settings.files == [tmp_path.resolve() / "include", Path("/abs/Other.h")]
    assert settings.extensions_to_scan == [".hh", ".hpp"]
    assert settings.recursive is True
    assert settings.names.getter_prefix == "Fetch"
    assert settings.names.setter_prefix == "Set"
    assert settings.field_marker == "MetaField"
    assert settings.body_marker == "META_BODY"
    assert settings.default_field_attributes == {"Script": False}


def test_config_in_working_directory_is_picked_up(tmp_path, monkeypatch):
    (tmp_path / "reflector.yaml").write_text("recursive: true\n")
    monkeypatch.chdir(tmp_path)
    assert load_settings().recursive is True


def test_single_file_entry_is_accepted():
    settings = Settings(files="Thing.h")
    assert settings.files == [Path("Thing.h")]


@pytest.mark.parametrize(
    "content, message",
    [
        ("files: [\n", "Failed to parse config"),
        ("- just\n- a list\n", "top level must be a mapping"),
        ("recursive: sometimes\n", "recursive"),
        ("extensions_to_scan: []\n", "extensions_to_scan cannot be empty"),
    ],
)
def test_invalid_config_raises(tmp_path, content, message):
    config = tmp_path / "reflector.yaml"
    config.write_text(content)
    with pytest.raises(ConfigError) as excinfo:
        load_settings(config)
    assert message in excinfo.value.message
    assert excinfo.value.path == config


def test_missing_explicit_config_raises(tmp_path):
    with pytest.raises(ConfigError, match="Config file not found"):
        load_settings(tmp_path / "missing.yaml")
