"""Configuration for Reflector.

Settings are read from a YAML file (``reflector.yaml`` in the working
directory by default) and validated with pydantic. Everything has a default,
so running without a config file scans the given paths with the stock
marker names:
- files: headers or directories to scan
- extensions_to_scan / recursive: how directories are searched
- names: prefixes used for synthesized accessor names
- default_*_attributes: attribute bags applied to every member of a kind
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

DEFAULT_CONFIG_NAME = "reflector.yaml"


class NameOptions(BaseModel):
    """Prefixes and names used for synthesized methods."""

    getter_prefix: str = "Get"
    setter_prefix: str = "Set"
    is_prefix: str = "Is"
    is_not_prefix: str = "IsNot"
    set_not_prefix: str = "SetNot"
    unset_prefix: str = "Unset"
    toggle_prefix: str = "Toggle"
    proxy_method_prefix: str = "_proxy_"
    singleton_instance_getter_name: str = "SingletonInstance"


class Settings(BaseModel):
    """Reflector settings."""

    files: List[Path] = Field(
        default_factory=list,
        description="Files or directories to scan for reflectable entities",
    )
    extensions_to_scan: List[str] = Field(
        default_factory=lambda: [".h", ".hpp"],
        description="Extensions of files to scan when a directory is given",
    )
    recursive: bool = Field(False, description="Recursively search the provided directories")
    quiet: bool = Field(False, description="Do not print the summary of scanned files")
    verbose: bool = Field(False, description="Print additional information")
    workers: Optional[int] = Field(None, description="Worker threads for parsing; None picks a default")
    database_path: Optional[Path] = Field(
        None, description="Where to write the JSON reflection database, if anywhere"
    )

    default_namespace: str = Field("", description="The default namespace for all reflected types")
    generate_accessors_for_public_fields: bool = Field(
        True, description="Whether to create Set* and Get* methods for public fields"
    )
    generate_properties_for_public_fields: bool = Field(
        False, description="Whether to create property entries for public fields"
    )

    annotation_prefix: str = Field("R", description="Prefix for all annotation markers, e.g. R => RClass")
    enum_annotation_name: Optional[str] = None
    enumerator_annotation_name: Optional[str] = None
    class_annotation_name: Optional[str] = None
    field_annotation_name: Optional[str] = None
    method_annotation_name: Optional[str] = None
    body_annotation_name: Optional[str] = None

    names: NameOptions = Field(default_factory=NameOptions)

    default_class_attributes: Dict[str, Any] = Field(default_factory=dict)
    default_field_attributes: Dict[str, Any] = Field(default_factory=dict)
    default_method_attributes: Dict[str, Any] = Field(default_factory=dict)
    default_enum_attributes: Dict[str, Any] = Field(default_factory=dict)
    default_enumerator_attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("files", mode="before")
    def _coerce_files(cls, value: Any) -> List[Path]:
        if isinstance(value, (str, Path)):
            value = [value]
        return [Path(item).expanduser() for item in value or []]

    @field_validator("database_path", mode="before")
    def _coerce_path(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser().resolve()

    @field_validator("extensions_to_scan")
    def _check_extensions(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("extensions_to_scan cannot be empty")
        return [ext if ext.startswith(".") else f".{ext}" for ext in value]

    # --- marker names ---
    @property
    def enum_marker(self) -> str:
        return self.enum_annotation_name or f"{self.annotation_prefix}Enum"

    @property
    def enumerator_marker(self) -> str:
        return self.enumerator_annotation_name or f"{self.annotation_prefix}Enumerator"

    @property
    def class_marker(self) -> str:
        return self.class_annotation_name or f"{self.annotation_prefix}Class"

    @property
    def field_marker(self) -> str:
        return self.field_annotation_name or f"{self.annotation_prefix}Field"

    @property
    def method_marker(self) -> str:
        return self.method_annotation_name or f"{self.annotation_prefix}Method"

    @property
    def body_marker(self) -> str:
        return self.body_annotation_name or f"{self.annotation_prefix}Body"


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load configuration from YAML if provided, otherwise use defaults.

    Relative `files` entries are resolved against the config file's directory.
    """
    path = config_path or Path.cwd() / DEFAULT_CONFIG_NAME
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}", path=path)
        return Settings()
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError.parse_error(path, str(exc)) from exc
    if not isinstance(data, dict):
        raise ConfigError.parse_error(path, "top level must be a mapping")
    try:
        settings = Settings(**data)
    except ValidationError as exc:
        raise ConfigError.parse_error(path, str(exc)) from exc
    base = path.resolve().parent
    settings.files = [item if item.is_absolute() else base / item for item in settings.files]
    return settings
