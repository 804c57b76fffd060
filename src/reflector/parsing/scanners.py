"""Cursor-based scanners for the restricted C++ declaration dialect."""
from __future__ import annotations

import re
from typing import Optional, Tuple

from ..errors import ScanError

IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

TYPE_QUALIFIERS = ("struct", "class", "enum", "union", "const")
TRAILING_TYPE_TOKENS = ("const", "*", "&")

_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


def is_identifier_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def is_identifier(text: str) -> bool:
    return bool(IDENTIFIER_RE.match(text))


def trim_comments(text: str) -> str:
    """Strip leading whitespace, `/* */` blocks and a trailing `//` comment."""
    while True:
        text = text.lstrip()
        if text.startswith("//"):
            return ""
        if text.startswith("/*"):
            end = text.find("*/", 2)
            text = "" if end == -1 else text[end + 2:]
            continue
        return text


def split_trailing_identifier(text: str) -> Tuple[str, str]:
    """Split `text` into (everything before, trailing identifier run)."""
    text = text.rstrip()
    start = len(text)
    while start > 0 and is_identifier_char(text[start - 1]):
        start -= 1
    return text[:start].strip(), text[start:]


def _skip_literal(text: str, index: int) -> int:
    """Return the index just past the string or char literal starting at `index`."""
    quote = text[index]
    index += 1
    while index < len(text):
        if text[index] == "\\":
            index += 2
            continue
        if text[index] == quote:
            return index + 1
        index += 1
    raise ScanError("Unterminated string literal")


class Cursor:
    """A mutable view over the unconsumed remainder of a line."""

    def __init__(self, text: str) -> None:
        self.text = text

    def __bool__(self) -> bool:
        return bool(self.text.strip())

    def __repr__(self) -> str:
        return f"Cursor({self.text!r})"

    # --- primitives ---
    def trim(self) -> "Cursor":
        self.text = self.text.lstrip()
        return self

    def peek(self) -> str:
        self.trim()
        return self.text[:1]

    def startswith(self, literal: str) -> bool:
        self.trim()
        return self.text.startswith(literal)

    def advance(self, count: int = 1) -> str:
        taken, self.text = self.text[:count], self.text[count:]
        return taken

    def swallow(self, literal: str) -> bool:
        """Consume `literal` if the trimmed remainder starts with it."""
        self.trim()
        if self.text.startswith(literal):
            self.text = self.text[len(literal):]
            return True
        return False

    def swallow_keyword(self, keyword: str) -> bool:
        """Like `swallow`, but only when `keyword` is followed by a word boundary."""
        self.trim()
        if not self.text.startswith(keyword):
            return False
        rest = self.text[len(keyword):]
        if rest and is_identifier_char(rest[0]) and is_identifier_char(keyword[-1]):
            return False
        self.text = rest
        return True

    def expect(self, literal: str) -> None:
        if not self.swallow(literal):
            raise ScanError.expected(literal, self.text)

    # --- scanners ---
    def identifier(self) -> str:
        self.trim()
        end = 0
        while end < len(self.text) and is_identifier_char(self.text[end]):
            end += 1
        if end == 0:
            raise ScanError.expected("identifier", self.text)
        return self.advance(end)

    def type(self) -> str:
        """Consume a type: qualifiers, a balanced token run, then trailing const/*/&."""
        self.trim()
        start = self.text
        while any(self.swallow_keyword(qualifier) for qualifier in TYPE_QUALIFIERS):
            pass
        self.trim()

        depth = {"(": 0, "[": 0, "<": 0}
        index = 0
        text = self.text
        while index < len(text):
            ch = text[index]
            if ch in depth:
                depth[ch] += 1
            elif ch in (")", "]", ">"):
                opener = _CLOSERS[ch]
                if depth[opener] == 0:
                    raise ScanError(f"Unbalanced brackets in type: unexpected `{ch}`")
                depth[opener] -= 1
            elif ch.isspace() and not any(depth.values()):
                break
            index += 1
        if any(depth.values()):
            raise ScanError("Unbalanced brackets in type")
        self.text = text[index:]

        while True:
            self.trim()
            for token in TRAILING_TYPE_TOKENS:
                if self.swallow_keyword(token):
                    break
            else:
                break

        consumed = start[: len(start) - len(self.text)]
        return consumed.strip()

    def expression(self) -> str:
        """Consume an expression up to an unmatched top-level `,`, `)` or `;`."""
        self.trim()
        text = self.text
        depth = {"(": 0, "[": 0, "{": 0, "<": 0}
        index = 0
        while index < len(text):
            ch = text[index]
            top_level = not any(depth.values())
            if top_level and ch in ",);":
                break
            if ch in ("\"", "'"):
                index = _skip_literal(text, index)
                continue
            if ch == "<":
                if text.startswith("<<", index):
                    index += 2
                    continue
                depth["<"] += 1
            elif ch == ">":
                if text.startswith(">>", index) and depth["<"] < 2:
                    index += 2
                    continue
                if depth["<"] > 0:
                    depth["<"] -= 1
            elif ch in ("(", "[", "{"):
                depth[ch] += 1
            elif ch in (")", "]", "}"):
                opener = _CLOSERS[ch]
                if depth[opener] == 0:
                    raise ScanError(f"Unbalanced brackets in expression: unexpected `{ch}`")
                depth[opener] -= 1
            index += 1
        if any(depth.values()):
            raise ScanError("Unbalanced brackets in expression")
        result, self.text = text[:index], text[index:]
        return result.strip()

    def balanced(self, opener: str = "(") -> str:
        """Consume a bracketed group starting at `opener` and return its interior."""
        self.trim()
        closer = _OPENERS[opener]
        if not self.text.startswith(opener):
            raise ScanError.expected(opener, self.text)
        level = 0
        quote: Optional[str] = None
        for index, ch in enumerate(self.text):
            if quote:
                if ch == quote and self.text[index - 1] != "\\":
                    quote = None
                continue
            if ch in ("\"", "'"):
                quote = ch
            elif ch == opener:
                level += 1
            elif ch == closer:
                level -= 1
                if level == 0:
                    inner = self.text[1:index]
                    self.text = self.text[index + 1:]
                    return inner
        raise ScanError(f"Unbalanced brackets: missing `{closer}`")

    def until(self, stops: str) -> str:
        """Consume up to (not including) the first character in `stops`."""
        for index, ch in enumerate(self.text):
            if ch in stops:
                result, self.text = self.text[:index], self.text[index:]
                return result
        result, self.text = self.text, ""
        return result

    def rest(self) -> str:
        result, self.text = self.text, ""
        return result
