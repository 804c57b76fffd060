"""Readers for marker attribute lists and native `[[...]]` attributes.

Marker attribute lists use a permissive object-literal syntax:

    RField(Getter = false, DisplayName = "Hit Points", Flags = Color, Tags = [a, b])

Keys are bare identifiers or quoted strings, `=` and `:` both separate a key
from its value, and a key with no value is `true`. Bare words that are not
numbers or `true`/`false`/`null` are read as strings.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from ..attributes.registry import AttributeRegistry
from ..errors import AttributeValueError, ScanError
from .scanners import Cursor

NATIVE_ATTRIBUTE_NAMES = {
    "noreturn": "NoReturn",
    "deprecated": "Deprecated",
    "nodiscard": "NoDiscard",
    "no_unique_address": "NoUniqueAddress",
}

INTEGER_RE = re.compile(r"[+-]?(?:0[xX][0-9a-fA-F]+|[0-9]+)\Z")
FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z")

_WORD_STOPS = ",=:{}[]"
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}


class _ValueReader:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str) -> ScanError:
        return ScanError(f"Invalid attribute list: {message} at `{self.text[self.pos:self.pos + 20]}`")

    def peek(self) -> str:
        return self.text[self.pos:self.pos + 1]

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_whitespace(self) -> None:
        while not self.at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def read_members(self, closer: Optional[str]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        while True:
            self.skip_whitespace()
            if self.at_end():
                if closer is None:
                    return result
                raise self.error(f"expected `{closer}`")
            if closer is not None and self.peek() == closer:
                self.pos += 1
                return result
            key = self.read_key()
            self.skip_whitespace()
            if self.peek() in ("=", ":"):
                self.pos += 1
                result[key] = self.read_value()
            else:
                result[key] = True
            self.skip_whitespace()
            if self.peek() == ",":
                self.pos += 1
            elif not self.at_end() and self.peek() != closer:
                raise self.error("expected `,`")

    def read_array(self) -> List[Any]:
        items: List[Any] = []
        while True:
            self.skip_whitespace()
            if self.at_end():
                raise self.error("expected `]`")
            if self.peek() == "]":
                self.pos += 1
                return items
            items.append(self.read_value())
            self.skip_whitespace()
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "]":
                raise self.error("expected `,` or `]`")

    def read_key(self) -> str:
        if self.peek() in ("\"", "'"):
            return self.read_string()
        start = self.pos
        while not self.at_end() and (self.text[self.pos].isalnum() or self.text[self.pos] == "_"):
            self.pos += 1
        if start == self.pos:
            raise self.error("expected attribute name")
        return self.text[start:self.pos]

    def read_value(self) -> Any:
        self.skip_whitespace()
        ch = self.peek()
        if ch == "{":
            self.pos += 1
            return self.read_members("}")
        if ch == "[":
            self.pos += 1
            return self.read_array()
        if ch in ("\"", "'"):
            return self.read_string()
        word = self.read_word()
        if not word:
            raise self.error("expected value")
        return convert_word(word)

    def read_string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        chars: List[str] = []
        while not self.at_end():
            ch = self.text[self.pos]
            if ch == "\\" and self.pos + 1 < len(self.text):
                escaped = self.text[self.pos + 1]
                chars.append(_ESCAPES.get(escaped, escaped))
                self.pos += 2
                continue
            self.pos += 1
            if ch == quote:
                return "".join(chars)
            chars.append(ch)
        raise self.error("unterminated string")

    def read_word(self) -> str:
        start = self.pos
        while not self.at_end():
            ch = self.text[self.pos]
            if ch == ":" and self.text.startswith("::", self.pos):
                self.pos += 2
                continue
            if ch.isspace() or ch in _WORD_STOPS:
                break
            self.pos += 1
        return self.text[start:self.pos]


def convert_word(word: str) -> Any:
    if word == "true":
        return True
    if word == "false":
        return False
    if word == "null":
        return None
    if INTEGER_RE.match(word):
        base = 16 if word.lstrip("+-")[:2].lower() == "0x" else 10
        return int(word, base)
    if FLOAT_RE.match(word):
        return float(word)
    return word


def read_attribute_object(text: str) -> Dict[str, Any]:
    """Parse the interior of a marker's parentheses into an attribute bag."""
    reader = _ValueReader(text)
    return reader.read_members(None)


def reject_unsettable(bag: Dict[str, Any], registry: AttributeRegistry) -> None:
    unsettable = registry.find_unsettable(bag)
    if unsettable:
        raise AttributeValueError.unsettable(unsettable)


def parse_attribute_list(cursor: Cursor, registry: AttributeRegistry) -> Dict[str, Any]:
    """Consume `( ... )` from `cursor` and return the parsed, user-settable bag."""
    interior = cursor.balanced("(")
    bag = read_attribute_object(interior)
    reject_unsettable(bag, registry)
    return bag


def parse_native_attributes(cursor: Cursor, registry: AttributeRegistry) -> Dict[str, Any]:
    """Consume any number of `[[attr, attr(value)]]` groups from `cursor`."""
    result: Dict[str, Any] = {}
    rejected: List[str] = []
    while cursor.swallow("[["):
        while not cursor.swallow("]]"):
            name = cursor.identifier()
            while cursor.swallow("::"):
                name += "::" + cursor.identifier()
            mapped = NATIVE_ATTRIBUTE_NAMES.get(name)
            if mapped is None and name in registry and not registry.get(name).user_settable:
                rejected.append(name)
            value: Any = True
            if cursor.startswith("("):
                argument = cursor.balanced("(").strip()
                if argument:
                    value = _unquote(argument)
            result[mapped or name] = value
            if not cursor.swallow(","):
                cursor.expect("]]")
                break
    if rejected:
        raise AttributeValueError.unsettable(rejected)
    return result


def _unquote(text: str) -> Any:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("\"", "'"):
        return _ValueReader(text).read_string()
    return convert_word(text)
