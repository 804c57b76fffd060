"""Reflector error types and diagnostics.

Every failure the engine can report carries a kind and a source location so
it can be rendered as a single compiler-style line:

    path(line,col): error: message
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of a reported error."""

    LEXICAL = "lexical"
    ATTRIBUTE = "attribute"
    CROSS_REFERENCE = "cross_reference"
    CONFIG = "config"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


def format_location(path: Optional[Path | str], line: int = 0, column: int = 1) -> str:
    if path is None:
        return "<unknown>"
    if line <= 0:
        return str(path)
    return f"{path}({line},{column})"


class ReflectorError(Exception):
    """Base error with a location for diagnostic output."""

    kind: ErrorKind = ErrorKind.LEXICAL

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path] = None,
        line: int = 0,
        column: int = 1,
        notes: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        self.notes = notes or []

    def at(self, path: Optional[Path], line: int, column: int = 1) -> "ReflectorError":
        """Attach a location unless one was already set closer to the failure."""
        if self.path is None:
            self.path = path
        if self.line <= 0:
            self.line = line
            self.column = column
        return self

    def format(self) -> str:
        text = f"{format_location(self.path, self.line, self.column)}: error: {self.message}"
        for note in self.notes:
            text += f"\n{note}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "path": str(self.path) if self.path else None,
            "line": self.line,
            "column": self.column,
            "notes": list(self.notes),
        }

    def __str__(self) -> str:
        return self.format() if self.path is not None else self.message


class ScanError(ReflectorError):
    """Expected token missing, unbalanced brackets or an invalid identifier."""

    kind = ErrorKind.LEXICAL

    @classmethod
    def expected(cls, what: str, found: str) -> "ScanError":
        found = found.strip()
        if not found:
            return cls(f"Expected `{what}`, found end of line")
        return cls(f"Expected `{what}`, found `{found[:40]}`")


class AttributeValueError(ReflectorError):
    """Wrong attribute value, wrong target, unresolved reference or a system-only attribute."""

    kind = ErrorKind.ATTRIBUTE

    @classmethod
    def unsettable(cls, names: list[str]) -> "AttributeValueError":
        joined = ", ".join(f"'{name}'" for name in names)
        return cls(f"The following attributes are not user-settable: {joined}")


class CrossReferenceError(ReflectorError):
    """Whole-program consistency failure found during derivation."""

    kind = ErrorKind.CROSS_REFERENCE


class ConfigError(ReflectorError):
    """Configuration could not be read or is invalid."""

    kind = ErrorKind.CONFIG

    @classmethod
    def parse_error(cls, path: Path, reason: str) -> "ConfigError":
        return cls(f"Failed to parse config at {path}: {reason}", path=path)


@dataclass(slots=True)
class Diagnostic:
    """A reported error or warning, detached from the exception that produced it."""

    severity: Severity
    message: str
    path: Optional[Path] = None
    line: int = 0
    column: int = 1
    kind: Optional[ErrorKind] = None

    @classmethod
    def from_error(cls, error: ReflectorError) -> "Diagnostic":
        message = error.message
        if error.notes:
            message = "\n".join([message, *error.notes])
        return cls(
            severity=Severity.ERROR,
            message=message,
            path=error.path,
            line=error.line,
            column=error.column,
            kind=error.kind,
        )

    def format(self) -> str:
        location = format_location(self.path, self.line, self.column)
        return f"{location}: {self.severity.value}: {self.message}"
