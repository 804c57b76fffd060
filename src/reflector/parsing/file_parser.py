from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from ..attributes import catalog
from ..context import ReflectionContext
from ..errors import AttributeValueError, CrossReferenceError, ReflectorError, ScanError
from ..models.declarations import (
    AccessMode,
    Class,
    ClassFlags,
    Declaration,
    Enumeration,
    EnumFlags,
    Enumerator,
    Field,
    FieldFlags,
    FileMirror,
    Method,
    MethodFlags,
    compute_uid,
)
from .attributes import parse_attribute_list, parse_native_attributes, reject_unsettable
from .base import ParserAdapter
from .scanners import Cursor, split_trailing_identifier, trim_comments

logger = structlog.get_logger()

ACCESS_LINES = {
    "public:": AccessMode.PUBLIC,
    "protected:": AccessMode.PROTECTED,
    "private:": AccessMode.PRIVATE,
}

FIELD_KEYWORDS = {
    "mutable": FieldFlags.MUTABLE,
    "static": FieldFlags.STATIC,
    "inline": FieldFlags(0),
}

METHOD_PREFIX_KEYWORDS = {
    "virtual": MethodFlags.VIRTUAL,
    "static": MethodFlags.STATIC,
    "inline": MethodFlags.INLINE,
    "explicit": MethodFlags.EXPLICIT,
    "constexpr": MethodFlags.INLINE,
}

METHOD_SUFFIX_KEYWORDS = {
    "const": MethodFlags.CONST,
    "final": MethodFlags.FINAL,
    "noexcept": MethodFlags.NOEXCEPT,
    "override": MethodFlags(0),
}

BASE_CLASS_KEYWORDS = ("public", "protected", "private", "virtual")

ENUMERATOR_VALUE_RE = re.compile(r"([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)(?![A-Za-z0-9_.])")

DEFERRED_ATTRIBUTES = (catalog.FLAGS, catalog.FLAG_GETTERS)

MEMBER_PREFIX_RE = re.compile(r"m[A-Z]")


@dataclass(slots=True)
class _ParseState:
    mirror: FileMirror
    lines: List[str]
    index: int = 0
    line: int = 0
    access: AccessMode = AccessMode.UNSPECIFIED
    comments: List[str] = field(default_factory=list)
    current_class: Optional[Class] = None

    @property
    def path(self) -> Path:
        return self.mirror.path

    def take_comments(self) -> List[str]:
        comments, self.comments = self.comments, []
        return comments


def _merge_bags(*bags: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for bag in bags:
        result.update(copy.deepcopy(bag))
    return result


def display_name_for_field(name: str) -> str:
    """`mHealth` becomes `Health`; other names are kept."""
    if len(name) > 1 and MEMBER_PREFIX_RE.match(name):
        return name[1:]
    return name


def parse_enumerator_value(sign: str, digits: str) -> int:
    if digits[:2].lower() == "0x":
        value = int(digits, 16)
    elif len(digits) > 1 and digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits, 10)
    return -value if sign == "-" else value


class MarkerParser(ParserAdapter):
    """Parses marker-annotated C++ headers into a FileMirror.

    Only the declaration that follows a marker is interpreted; all other code
    is ignored apart from access specifier lines and `///` comment blocks.
    """

    language = "cpp"
    extensions = (".h", ".hpp", ".hh", ".hxx")

    def __init__(self, context: ReflectionContext) -> None:
        self.context = context
        self.settings = context.settings
        self.attributes = context.attributes
        self._handlers: Dict[str, Callable[[_ParseState, Dict[str, Any], str, List[str], int], None]] = {
            self.settings.class_marker: self._parse_class,
            self.settings.field_marker: self._parse_field,
            self.settings.method_marker: self._parse_method,
            self.settings.body_marker: self._parse_body,
            self.settings.enum_marker: self._parse_enum,
        }

    # --- public API ---
    def parse(self, source: str, path: Path) -> FileMirror:
        mirror = FileMirror(path=path)
        state = _ParseState(mirror=mirror, lines=source.splitlines())
        try:
            self._check_default_bags()
            self._parse_lines(state)
            self._close_class(state)
        except ReflectorError as exc:
            raise exc.at(path, state.line)
        logger.debug(
            "file_parsed",
            path=str(path),
            classes=len(mirror.classes),
            enums=len(mirror.enums),
        )
        return mirror

    # --- line loop ---
    def _parse_lines(self, state: _ParseState) -> None:
        while state.index < len(state.lines):
            stripped = state.lines[state.index].strip()
            state.line = state.index + 1
            matched = self._match_marker(stripped)
            if matched is not None:
                marker, cursor = matched
                marker_line = state.line
                comments = state.take_comments()
                attrs = parse_attribute_list(cursor, self.attributes)
                declaration = "" if marker == self.settings.body_marker else self._declaration_text(state, cursor)
                self._handlers[marker](state, attrs, declaration, comments, marker_line)
            elif stripped.startswith(self.settings.enumerator_marker + "("):
                raise ScanError(f"{self.settings.enumerator_marker}() is only allowed inside a reflected enum")
            elif stripped in ACCESS_LINES:
                state.access = ACCESS_LINES[stripped]
                state.comments.clear()
            elif stripped.startswith("///"):
                state.comments.append(stripped[3:].strip())
            else:
                state.comments.clear()
            state.index += 1

    def _match_marker(self, stripped: str) -> Optional[Tuple[str, Cursor]]:
        for marker in self._handlers:
            if not stripped.startswith(marker):
                continue
            cursor = Cursor(stripped[len(marker):])
            if cursor.startswith("("):
                return marker, cursor
        return None

    def _declaration_text(self, state: _ParseState, cursor: Cursor) -> str:
        """The declaration following a marker: the rest of its line, else the next line."""
        cursor.swallow(";")
        rest = trim_comments(cursor.rest())
        if rest:
            return rest
        if state.index + 1 >= len(state.lines):
            raise ScanError("Expected a declaration after the marker, found end of file")
        state.index += 1
        state.line = state.index + 1
        return state.lines[state.index].strip()

    def _check_default_bags(self) -> None:
        settings = self.settings
        for bag in (
            settings.default_class_attributes,
            settings.default_field_attributes,
            settings.default_method_attributes,
            settings.default_enum_attributes,
            settings.default_enumerator_attributes,
        ):
            reject_unsettable(bag, self.attributes)

    def _new_uid(self, state: _ParseState, line: int) -> int:
        return compute_uid(state.path, line)

    def _validate(self, decl: Declaration) -> None:
        self.attributes.validate_bag(decl, defer=DEFERRED_ATTRIBUTES)

    def _require_class(self, state: _ParseState, marker: str) -> Class:
        klass = state.current_class
        if klass is None:
            raise ScanError(f"{marker}() found outside of a reflected class")
        if not klass.body_line:
            raise ScanError(
                f"{marker}() found before the {self.settings.body_marker}() marker of class '{klass.name}'"
            )
        return klass

    def _close_class(self, state: _ParseState) -> None:
        klass = state.current_class
        state.current_class = None
        if klass is not None and not klass.body_line:
            raise ScanError(
                f"Class '{klass.name}' is missing its {self.settings.body_marker}() marker",
                path=state.path,
                line=klass.declaration_line,
            )

    # --- markers ---
    def _parse_body(
        self, state: _ParseState, attrs: Dict[str, Any], declaration: str, comments: List[str], line: int
    ) -> None:
        klass = state.current_class
        if klass is None:
            raise ScanError(f"{self.settings.body_marker}() found outside of a reflected class")
        if klass.body_line:
            raise ScanError(
                f"Class '{klass.name}' already has a {self.settings.body_marker}() marker at line {klass.body_line}"
            )
        klass.body_line = line
        state.access = AccessMode.PUBLIC

    def _parse_class(
        self, state: _ParseState, attrs: Dict[str, Any], declaration: str, comments: List[str], line: int
    ) -> None:
        self._close_class(state)
        registry = self.attributes
        klass = Class(file=state.mirror, declaration_line=line, comments=comments)
        klass.attributes = _merge_bags(self.settings.default_class_attributes, attrs)

        cursor = Cursor(declaration)
        is_struct = cursor.swallow_keyword("struct")
        if not is_struct and not cursor.swallow_keyword("class"):
            raise ScanError.expected("class` or `struct", cursor.text)
        klass.attributes.update(parse_native_attributes(cursor, registry))
        klass.name = cursor.identifier()
        cursor.swallow_keyword("final")
        if cursor.swallow(":"):
            klass.base_class = self._parse_base_list(cursor.until("{"))
        cursor.swallow("{")
        self._validate(klass)

        if is_struct:
            klass.flags |= ClassFlags.STRUCT | ClassFlags.DECLARED_STRUCT
        if (
            is_struct
            or registry.lookup(catalog.ABSTRACT, klass)
            or registry.lookup(catalog.SINGLETON, klass)
        ):
            klass.flags |= ClassFlags.NO_CONSTRUCTORS
        if registry.lookup(catalog.SERIALIZE, klass) is False:
            klass.flags |= ClassFlags.NOT_SERIALIZABLE
        if registry.lookup(catalog.EDITOR, klass) is False:
            klass.flags |= ClassFlags.NOT_EDITABLE
        if registry.lookup(catalog.SCRIPT, klass) is False:
            klass.flags |= ClassFlags.NOT_SCRIPTABLE

        if ClassFlags.NO_CONSTRUCTORS not in klass.flags and not klass.base_class:
            raise CrossReferenceError(
                f"Class '{klass.name}' must derive from a reflectable class "
                "(or be declared as a struct, or marked Abstract or Singleton)"
            )

        klass.namespace = registry.lookup(catalog.NAMESPACE, klass, self.settings.default_namespace)
        klass.guid = registry.lookup(catalog.GUID, klass)
        klass.display_name = registry.lookup(catalog.DISPLAY_NAME, klass, klass.name)
        klass.default_field_attributes = registry.lookup(catalog.DEFAULT_FIELD_ATTRIBUTES, klass)
        klass.default_method_attributes = registry.lookup(catalog.DEFAULT_METHOD_ATTRIBUTES, klass)
        reject_unsettable(klass.default_field_attributes, registry)
        reject_unsettable(klass.default_method_attributes, registry)
        klass.uid = self._new_uid(state, line)

        state.mirror.classes.append(klass)
        state.current_class = klass
        state.access = AccessMode.PUBLIC if is_struct else AccessMode.PRIVATE

    def _parse_base_list(self, text: str) -> str:
        pieces = _split_top_level(text)
        bases = []
        for piece in pieces:
            cursor = Cursor(piece)
            while any(cursor.swallow_keyword(keyword) for keyword in BASE_CLASS_KEYWORDS):
                pass
            try:
                base = cursor.type()
            except ScanError as exc:
                raise ScanError(f"Mismatched class parents: {exc.message}") from exc
            if not base or cursor:
                raise ScanError(f"Invalid base class specifier `{piece.strip()}`")
            bases.append(base)
        if not bases:
            raise ScanError("Expected a base class after `:`")
        return bases[0]

    def _parse_field(
        self, state: _ParseState, attrs: Dict[str, Any], declaration: str, comments: List[str], line: int
    ) -> None:
        registry = self.attributes
        klass = self._require_class(state, self.settings.field_marker)
        item = Field(parent=klass, file=state.mirror, declaration_line=line, comments=comments, access=state.access)
        if state.access not in (AccessMode.PUBLIC, AccessMode.UNSPECIFIED):
            item.flags |= FieldFlags.DECLARED_PRIVATE
            item.force_document = False
        item.attributes = _merge_bags(self.settings.default_field_attributes, klass.default_field_attributes, attrs)

        cursor = Cursor(declaration)
        native = parse_native_attributes(cursor, registry)
        matched = True
        while matched:
            matched = False
            for keyword, flag in FIELD_KEYWORDS.items():
                if cursor.swallow_keyword(keyword):
                    item.flags |= flag
                    matched = True

        declarator, initializer, braced = self._split_field_declaration(cursor.rest())
        type_text, name = split_trailing_identifier(declarator)
        if not name:
            raise ScanError.expected("field name", declarator)
        if not type_text:
            raise ScanError(f"Expected a type before field name `{name}`")
        item.type = type_text
        item.name = name
        item.initializing_expression = initializer
        if braced:
            item.flags |= FieldFlags.BRACE_INITIALIZED
        item.attributes.update(native)
        self._validate(item)

        item.display_name = display_name_for_field(name)
        item.clean_name = item.display_name
        item.display_name = registry.lookup(catalog.DISPLAY_NAME, item, item.display_name)
        item.load_name = registry.lookup(catalog.LOAD_NAME, item, name)
        item.save_name = registry.lookup(catalog.SAVE_NAME, item, name)

        self._apply_field_flags(klass, item)
        item.uid = self._new_uid(state, line)
        klass.fields.append(item)

    def _split_field_declaration(self, text: str) -> Tuple[str, str, bool]:
        """Return (declarator, initializer, brace-initialized) for `Type Name [= expr | {expr}];`."""
        depth = 0
        for index, ch in enumerate(text):
            if ch in "(<[":
                depth += 1
            elif ch in ")>]":
                depth = max(depth - 1, 0)
            elif depth == 0 and ch in "={;":
                declarator = text[:index]
                if ch == ";":
                    return declarator, "", False
                cursor = Cursor(text[index + 1:] if ch == "=" else text[index:])
                initializer = cursor.expression()
                if not initializer:
                    raise ScanError.expected("initializer", cursor.text)
                cursor.expect(";")
                return declarator, initializer, ch == "{"
        raise ScanError.expected(";", "")

    def _apply_field_flags(self, klass: Class, item: Field) -> None:
        """Force capability flags off from attributes and defaults, then back on from explicit `true`s."""
        registry = self.attributes
        is_public = item.access in (AccessMode.PUBLIC, AccessMode.UNSPECIFIED)
        public_accessors = self.settings.generate_accessors_for_public_fields

        if (
            registry.lookup(catalog.GETTER, item, True) is False
            or (not is_public and registry.lookup(catalog.PRIVATE_GETTERS, klass) is False)
            or (is_public and not public_accessors)
        ):
            item.flags |= FieldFlags.NO_GETTER
        if (
            registry.lookup(catalog.SETTER, item, True) is False
            or (not is_public and registry.lookup(catalog.PRIVATE_SETTERS, klass) is False)
            or (is_public and not public_accessors)
        ):
            item.flags |= FieldFlags.NO_SETTER
        if registry.lookup(catalog.EDITOR, item, True) is False:
            item.flags |= FieldFlags.NO_EDIT
        if registry.lookup(catalog.SCRIPT, item, True) is False:
            item.flags |= FieldFlags.NO_SCRIPT
        if registry.lookup(catalog.SAVE, item, True) is False:
            item.flags |= FieldFlags.NO_SAVE
        if registry.lookup(catalog.LOAD, item, True) is False:
            item.flags |= FieldFlags.NO_LOAD

        if registry.lookup(catalog.SERIALIZE, item, True) is False:
            item.flags |= FieldFlags.NO_SAVE | FieldFlags.NO_LOAD
        if registry.lookup(catalog.PRIVATE, item, False):
            item.flags |= FieldFlags.NO_EDIT | FieldFlags.NO_SETTER | FieldFlags.NO_GETTER
        if registry.lookup(catalog.TRANSIENT, item, False):
            item.flags |= FieldFlags.NO_SETTER | FieldFlags.NO_SAVE | FieldFlags.NO_LOAD
        if registry.lookup(catalog.SCRIPT_PRIVATE, item, False):
            item.flags |= FieldFlags.NO_SETTER | FieldFlags.NO_GETTER

        if registry.lookup(catalog.GETTER, item, False) is True:
            item.flags &= ~FieldFlags.NO_GETTER
        if registry.lookup(catalog.SETTER, item, False) is True:
            item.flags &= ~FieldFlags.NO_SETTER
        if registry.lookup(catalog.EDITOR, item, False) is True:
            item.flags &= ~FieldFlags.NO_EDIT
        if registry.lookup(catalog.SAVE, item, False) is True:
            item.flags &= ~FieldFlags.NO_SAVE
        if registry.lookup(catalog.LOAD, item, False) is True:
            item.flags &= ~FieldFlags.NO_LOAD

        if registry.lookup(catalog.REQUIRED, item):
            item.flags |= FieldFlags.REQUIRED
        if registry.lookup(catalog.NO_UNIQUE_ADDRESS, item):
            item.flags |= FieldFlags.NO_UNIQUE_ADDRESS

    def _parse_method(
        self, state: _ParseState, attrs: Dict[str, Any], declaration: str, comments: List[str], line: int
    ) -> None:
        registry = self.attributes
        klass = self._require_class(state, self.settings.method_marker)
        method = Method(parent=klass, file=state.mirror, declaration_line=line, comments=comments, access=state.access)
        method.attributes = _merge_bags(self.settings.default_method_attributes, klass.default_method_attributes, attrs)

        cursor = Cursor(declaration)
        native = parse_native_attributes(cursor, registry)
        matched = True
        while matched:
            matched = False
            for keyword, flag in METHOD_PREFIX_KEYWORDS.items():
                if cursor.swallow_keyword(keyword):
                    method.flags |= flag
                    matched = True
            if cursor.startswith("[["):
                native.update(parse_native_attributes(cursor, registry))
                matched = True

        if cursor.startswith("~"):
            raise ScanError("Reflecting destructors is not supported")
        method.return_type = cursor.type()
        if method.return_type == "operator":
            raise ScanError("Reflecting operator overloads is not supported")
        method.name = cursor.identifier()
        if method.name == "operator":
            raise ScanError("Reflecting operator overloads is not supported")
        native.update(parse_native_attributes(cursor, registry))
        if not cursor.startswith("("):
            raise ScanError(f"Misformed method declaration: expected `(` after `{method.name}`")
        method.set_parameters(cursor.balanced("("))

        self._parse_method_suffix(cursor, method)
        if cursor.swallow("->"):
            trailing = cursor.until("{;=").strip()
            for keyword in ("override", "final"):
                if trailing.endswith(" " + keyword):
                    if keyword == "final":
                        method.flags |= MethodFlags.FINAL
                    trailing = trailing[: -len(keyword)].rstrip()
            if method.return_type == "auto":
                method.return_type = trailing
            self._parse_method_suffix(cursor, method)
        if cursor.swallow("="):
            if cursor.swallow_keyword("0"):
                method.flags |= MethodFlags.ABSTRACT
            self._parse_method_suffix(cursor, method)

        method.attributes.update(native)
        self._validate(method)

        method.unique_name = registry.lookup(catalog.UNIQUE_NAME, method)
        method.display_name = registry.lookup(catalog.DISPLAY_NAME, method, method.name)
        if registry.lookup(catalog.NO_RETURN, method):
            method.flags |= MethodFlags.NO_RETURN
        if registry.lookup(catalog.NO_DISCARD, method) not in (None, False):
            method.flags |= MethodFlags.NO_DISCARD
        if registry.lookup(catalog.SCRIPT, method, True) is False:
            method.flags |= MethodFlags.NO_SCRIPT
        method.uid = self._new_uid(state, line)

        self._register_property_accessors(klass, method)
        klass.methods.append(method)

    def _parse_method_suffix(self, cursor: Cursor, method: Method) -> None:
        matched = True
        while matched:
            matched = False
            for keyword, flag in METHOD_SUFFIX_KEYWORDS.items():
                if cursor.swallow_keyword(keyword):
                    method.flags |= flag
                    matched = True
                    if keyword == "noexcept" and cursor.startswith("("):
                        cursor.balanced("(")
            for qualifier in ("&&", "&"):
                if cursor.swallow(qualifier):
                    matched = True
                    break

    def _register_property_accessors(self, klass: Class, method: Method) -> None:
        registry = self.attributes
        getter_for = registry.lookup(catalog.GETTER_FOR, method)
        if not getter_for and registry.lookup(catalog.PROPERTY, method) is True:
            getter_for = method.name
        if getter_for:
            prop = klass.ensure_property(getter_for)
            if prop.getter is not None:
                raise CrossReferenceError(
                    f"Getter for property '{getter_for}' already declared at line {prop.getter.declaration_line}"
                )
            prop.getter = method

        setter_for = registry.lookup(catalog.SETTER_FOR, method)
        if setter_for:
            if not method.parameters:
                raise AttributeValueError(f"Setter for property '{setter_for}' must have at least 1 argument")
            prop = klass.ensure_property(setter_for)
            if prop.setter is not None:
                raise CrossReferenceError(
                    f"Setter for property '{setter_for}' already declared at line {prop.setter.declaration_line}"
                )
            prop.setter = method

    def _parse_enum(
        self, state: _ParseState, attrs: Dict[str, Any], declaration: str, comments: List[str], line: int
    ) -> None:
        registry = self.attributes
        henum = Enumeration(file=state.mirror, declaration_line=line, comments=comments)
        henum.attributes = _merge_bags(self.settings.default_enum_attributes, attrs)

        cursor = Cursor(declaration)
        cursor.expect("enum")
        if not cursor.swallow_keyword("class"):
            cursor.swallow_keyword("struct")
        henum.attributes.update(parse_native_attributes(cursor, registry))
        henum.name = cursor.identifier()
        if cursor.swallow(":"):
            henum.base_type = cursor.until("{").strip()
        if not cursor.swallow("{"):
            if state.index + 1 >= len(state.lines):
                raise ScanError.expected("{", "")
            state.index += 1
            state.line = state.index + 1
            cursor = Cursor(state.lines[state.index])
            cursor.expect("{")
        if trim_comments(cursor.rest()):
            raise ScanError(f"Enumerators of enum '{henum.name}' must start on the line after `{{`")
        self._validate(henum)

        henum.display_name = registry.lookup(catalog.DISPLAY_NAME, henum, henum.name)
        henum.namespace = registry.lookup(catalog.NAMESPACE, henum, self.settings.default_namespace)
        henum.guid = registry.lookup(catalog.GUID, henum)
        henum.default_enumerator_attributes = registry.lookup(catalog.DEFAULT_ENUMERATOR_ATTRIBUTES, henum)
        reject_unsettable(henum.default_enumerator_attributes, registry)
        if registry.lookup(catalog.LIST, henum):
            henum.flags |= EnumFlags.LIST
        if registry.lookup(catalog.ALIAS_ENUM, henum):
            henum.flags |= EnumFlags.ALIAS
        henum.uid = self._new_uid(state, line)

        self._parse_enumerators(state, henum)
        state.mirror.enums.append(henum)

    def _parse_enumerators(self, state: _ParseState, henum: Enumeration) -> None:
        registry = self.attributes
        marker = self.settings.enumerator_marker
        pending: Dict[str, Any] = {}
        comments: List[str] = []
        next_value = 0
        while True:
            state.index += 1
            if state.index >= len(state.lines):
                raise ScanError(f"Unterminated enum '{henum.name}': expected `}};`")
            state.line = state.index + 1
            text = state.lines[state.index].strip()
            if text.startswith("}"):
                closing = text[1:].lstrip()
                if closing.startswith(";") and not trim_comments(closing[1:]):
                    return
                raise ScanError(f"Expected `}};` to close enum '{henum.name}', found `{text}`")
            if not text:
                continue
            if text.startswith("///"):
                comments.append(text[3:].strip())
                continue
            if text.startswith("//"):
                continue
            if text.startswith(marker + "("):
                marker_cursor = Cursor(text[len(marker):])
                pending = parse_attribute_list(marker_cursor, registry)
                text = marker_cursor.rest().strip()
                if not text or text.startswith("//"):
                    continue

            enumerator = Enumerator(
                parent=henum,
                file=state.mirror,
                declaration_line=state.line,
                comments=comments,
                access=AccessMode.PUBLIC,
            )
            comments = []
            cursor = Cursor(text)
            enumerator.name = cursor.identifier()
            native = parse_native_attributes(cursor, registry)
            has_value = cursor.swallow("=")
            if has_value:
                cursor.trim()
                match = ENUMERATOR_VALUE_RE.match(cursor.text)
                if match is None:
                    raise ScanError(f"Enumerator '{enumerator.name}' must have an integer literal value")
                next_value = parse_enumerator_value(match.group(1), match.group(2))
                cursor.advance(match.end())
            cursor.swallow(",")
            rest = cursor.text.strip()
            if rest.startswith("///"):
                enumerator.comments.append(rest[3:].strip())
            elif rest and not rest.startswith("//"):
                if has_value:
                    raise ScanError(f"Enumerator '{enumerator.name}' must have an integer literal value")
                raise ScanError("Enumerators must be the only thing on their line")

            enumerator.value = next_value
            next_value += 1
            enumerator.attributes = _merge_bags(
                self.settings.default_enumerator_attributes,
                henum.default_enumerator_attributes,
                pending,
                native,
            )
            pending = {}
            self._validate(enumerator)
            enumerator.display_name = registry.lookup(catalog.DISPLAY_NAME, enumerator, enumerator.name)
            enumerator.opposite = registry.lookup(catalog.OPPOSITE, enumerator, "")
            enumerator.uid = self._new_uid(state, state.line)
            henum.enumerators.append(enumerator)


def _split_top_level(text: str) -> List[str]:
    pieces: List[str] = []
    depth = 0
    start = 0
    for index, ch in enumerate(text):
        if ch in "(<[":
            depth += 1
        elif ch in ")>]":
            depth -= 1
        elif ch == "," and depth == 0:
            pieces.append(text[start:index])
            start = index + 1
    pieces.append(text[start:])
    return [piece for piece in pieces if piece.strip()]
