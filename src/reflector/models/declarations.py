from __future__ import annotations

import enum
import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union


class DeclarationKind(str, enum.Enum):
    FIELD = "Field"
    METHOD = "Method"
    PROPERTY = "Property"
    CLASS = "Class"
    ENUM = "Enum"
    ENUMERATOR = "Enumerator"


class AccessMode(str, enum.Enum):
    UNSPECIFIED = "Unspecified"
    PUBLIC = "Public"
    PROTECTED = "Protected"
    PRIVATE = "Private"


class EntityFlags(enum.Flag):
    DEPRECATED = enum.auto()
    UNIMPLEMENTED = enum.auto()


class FieldFlags(enum.Flag):
    NO_GETTER = enum.auto()
    NO_SETTER = enum.auto()
    NO_EDIT = enum.auto()
    NO_SCRIPT = enum.auto()
    NO_SAVE = enum.auto()
    NO_LOAD = enum.auto()
    REQUIRED = enum.auto()
    STATIC = enum.auto()
    MUTABLE = enum.auto()
    DECLARED_PRIVATE = enum.auto()
    BRACE_INITIALIZED = enum.auto()
    NO_UNIQUE_ADDRESS = enum.auto()


class MethodFlags(enum.Flag):
    INLINE = enum.auto()
    VIRTUAL = enum.auto()
    STATIC = enum.auto()
    CONST = enum.auto()
    NOEXCEPT = enum.auto()
    FINAL = enum.auto()
    EXPLICIT = enum.auto()
    ARTIFICIAL = enum.auto()
    HAS_BODY = enum.auto()
    NO_CALLABLE = enum.auto()
    ABSTRACT = enum.auto()
    NO_DISCARD = enum.auto()
    NO_RETURN = enum.auto()
    NO_SCRIPT = enum.auto()
    PROXY = enum.auto()
    FOR_FLAG = enum.auto()


class PropertyFlags(enum.Flag):
    FROM_FIELD = enum.auto()
    NO_EDIT = enum.auto()
    NO_SCRIPT = enum.auto()


class ClassFlags(enum.Flag):
    STRUCT = enum.auto()
    DECLARED_STRUCT = enum.auto()
    NO_CONSTRUCTORS = enum.auto()
    HAS_PROXY = enum.auto()
    NOT_SERIALIZABLE = enum.auto()
    NOT_EDITABLE = enum.auto()
    NOT_SCRIPTABLE = enum.auto()


class EnumFlags(enum.Flag):
    LIST = enum.auto()
    ALIAS = enum.auto()


AnyFlags = Union[EntityFlags, FieldFlags, MethodFlags, PropertyFlags, ClassFlags, EnumFlags]


def flag_names(flags: AnyFlags) -> List[str]:
    """Return the CamelCase names of every member set in `flags`, in declaration order."""
    names = []
    for member in type(flags):
        if member in flags and member.name:
            names.append("".join(part.capitalize() for part in member.name.split("_")))
    return names


def compute_uid(path: Path | str, line: int, *extra: str) -> int:
    raw = ":".join([Path(path).as_posix(), str(line), *extra])
    return int(hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16], 16)


@dataclass(slots=True)
class DocNote:
    header: str
    contents: str
    show_in_member_list: bool = False
    icon: str = ""


@dataclass(slots=True, eq=False)
class Declaration:
    name: str = ""
    display_name: str = ""
    comments: List[str] = field(default_factory=list)
    doc_notes: List[DocNote] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    declaration_line: int = 0
    access: AccessMode = AccessMode.UNSPECIFIED
    uid: int = 0
    file: Optional["FileMirror"] = field(default=None, repr=False)
    entity_flags: EntityFlags = EntityFlags(0)
    deprecation: Optional[str] = None
    force_document: Optional[bool] = None
    document_members: bool = True
    associated_artificial_methods: Dict[str, "Method"] = field(default_factory=dict, repr=False)

    kind: ClassVar[DeclarationKind]

    @property
    def source_path(self) -> Optional[Path]:
        return self.file.path if self.file else None

    def full_name(self, sep: str = ".") -> str:
        return self.name

    def add_doc_note(self, header: str, contents: str) -> DocNote:
        note = DocNote(header, contents)
        self.doc_notes.append(note)
        return note

    def add_warning_doc_note(self, header: str, contents: str) -> DocNote:
        note = DocNote(header, contents, show_in_member_list=True, icon="warning")
        self.doc_notes.append(note)
        return note


@dataclass(slots=True, eq=False)
class TypeDeclaration(Declaration):
    namespace: str = ""
    guid: Optional[str] = None

    def full_type(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}::{self.name}"

    def full_name(self, sep: str = ".") -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace.replace('::', sep)}{sep}{self.name}"


@dataclass(slots=True)
class MethodParameter:
    name: str
    type: str
    initializer: str = ""


def split_parameters(text: str) -> List[MethodParameter]:
    """Split a raw parameter list into (type, name, initializer) triples."""
    text = text.strip()
    if not text or text == "void":
        return []
    pieces: List[str] = []
    depth = 0
    start = 0
    for index, ch in enumerate(text):
        if ch in "([<{":
            depth += 1
        elif ch in ")]>}":
            depth -= 1
        elif ch == "," and depth == 0:
            pieces.append(text[start:index])
            start = index + 1
    pieces.append(text[start:])

    result = []
    for piece in pieces:
        declarator, initializer = _split_initializer(piece)
        declarator = declarator.strip()
        cut = len(declarator)
        while cut > 0 and (declarator[cut - 1].isalnum() or declarator[cut - 1] == "_"):
            cut -= 1
        type_text, name = declarator[:cut].strip(), declarator[cut:]
        if not type_text:
            type_text, name = name, ""
        result.append(MethodParameter(name=name, type=type_text, initializer=initializer.strip()))
    return result


def _split_initializer(piece: str) -> tuple[str, str]:
    depth = 0
    for index, ch in enumerate(piece):
        if ch in "([<{":
            depth += 1
        elif ch in ")]>}":
            depth -= 1
        elif ch == "=" and depth == 0:
            return piece[:index], piece[index + 1:]
    return piece, ""


@dataclass(slots=True, eq=False)
class Field(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.FIELD

    parent: Optional["Class"] = field(default=None, repr=False)
    type: str = ""
    initializing_expression: str = ""
    flags: FieldFlags = FieldFlags(0)
    clean_name: str = ""
    load_name: str = ""
    save_name: str = ""

    def full_name(self, sep: str = ".") -> str:
        return f"{self.parent.full_name(sep)}{sep}{self.name}" if self.parent else self.name

    def render(self) -> str:
        """Re-render the declaration as it would appear in source."""
        prefix = ""
        if FieldFlags.STATIC in self.flags:
            prefix += "static "
        if FieldFlags.MUTABLE in self.flags:
            prefix += "mutable "
        text = f"{prefix}{self.type} {self.name}"
        if self.initializing_expression:
            if FieldFlags.BRACE_INITIALIZED in self.flags:
                text += self.initializing_expression
            else:
                text += f" = {self.initializing_expression}"
        return text + ";"


@dataclass(slots=True, eq=False)
class Method(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.METHOD

    parent: Optional["Class"] = field(default=None, repr=False)
    return_type: str = ""
    raw_parameters: str = ""
    parameters: List[MethodParameter] = field(default_factory=list)
    flags: MethodFlags = MethodFlags(0)
    unique_name: Optional[str] = None
    source_declaration: Optional[Declaration] = field(default=None, repr=False)
    artificial_body: str = ""

    def set_parameters(self, text: str) -> None:
        self.raw_parameters = text.strip()
        self.parameters = split_parameters(self.raw_parameters)

    @property
    def dispatch_name(self) -> str:
        return self.unique_name or self.name

    @property
    def has_default_arguments(self) -> bool:
        return any(param.initializer for param in self.parameters)

    @property
    def actual_declaration_line(self) -> int:
        if self.declaration_line or self.source_declaration is None:
            return self.declaration_line
        return self.source_declaration.declaration_line

    def generated_unique_name(self) -> str:
        return f"{self.name}_{self.uid:016x}"

    def full_name(self, sep: str = ".") -> str:
        if self.parent is None:
            return self.generated_unique_name()
        return f"{self.parent.full_name(sep)}{sep}{self.generated_unique_name()}"

    def signature(self) -> str:
        types = ",".join(param.type for param in self.parameters)
        if MethodFlags.STATIC in self.flags or self.parent is None:
            base = f"{self.return_type} (*)({types})"
        else:
            base = f"{self.return_type} ({self.parent.full_type()}::*)({types})"
        if MethodFlags.CONST in self.flags:
            base += " const"
        if MethodFlags.NOEXCEPT in self.flags:
            base += " noexcept"
        return base


@dataclass(slots=True, eq=False)
class Property(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.PROPERTY

    parent: Optional["Class"] = field(default=None, repr=False)
    type: str = ""
    getter: Optional[Method] = field(default=None, repr=False)
    setter: Optional[Method] = field(default=None, repr=False)
    source_field: Optional[Field] = field(default=None, repr=False)
    flags: PropertyFlags = PropertyFlags(0)

    def full_name(self, sep: str = ".") -> str:
        return f"{self.parent.full_name(sep)}{sep}{self.name}" if self.parent else self.name


@dataclass(slots=True)
class ClassDeclaredFlag:
    name: str
    source_field: Field
    represents: "Enumerator"
    generated_methods: List[Method] = field(default_factory=list)


@dataclass(slots=True, eq=False)
class Class(TypeDeclaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.CLASS

    base_class: str = ""
    fields: List[Field] = field(default_factory=list)
    methods: List[Method] = field(default_factory=list)
    properties: Dict[str, Property] = field(default_factory=dict)
    flags: ClassFlags = ClassFlags(0)
    default_field_attributes: Dict[str, Any] = field(default_factory=dict)
    default_method_attributes: Dict[str, Any] = field(default_factory=dict)
    body_line: int = 0
    additional_body_lines: List[str] = field(default_factory=list)
    declared_flags: List[ClassDeclaredFlag] = field(default_factory=list)
    methods_by_name: Dict[str, List[Method]] = field(default_factory=dict, repr=False)

    def ensure_property(self, name: str) -> Property:
        prop = self.properties.get(name)
        if prop is None:
            prop = Property(name=name, display_name=name, parent=self, file=self.file)
            prop.uid = compute_uid(self.file.path if self.file else "", self.declaration_line, "property", name)
            self.properties[name] = prop
        return prop

    def artificial_methods(self) -> List[Method]:
        return [method for method in self.methods if MethodFlags.ARTIFICIAL in method.flags]


@dataclass(slots=True, eq=False)
class Enumerator(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.ENUMERATOR

    parent: Optional["Enumeration"] = field(default=None, repr=False)
    value: int = 0
    opposite: str = ""

    def full_name(self, sep: str = ".") -> str:
        return f"{self.parent.full_name(sep)}{sep}{self.name}" if self.parent else self.name


@dataclass(slots=True, eq=False)
class Enumeration(TypeDeclaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.ENUM

    base_type: str = ""
    enumerators: List[Enumerator] = field(default_factory=list)
    default_enumerator_attributes: Dict[str, Any] = field(default_factory=dict)
    flags: EnumFlags = EnumFlags(0)

    def is_consecutive(self) -> bool:
        values = [enumerator.value for enumerator in self.enumerators]
        return all(b == a + 1 for a, b in zip(values, values[1:]))

    def is_trivial(self) -> bool:
        return bool(self.enumerators) and self.enumerators[0].value == 0 and self.is_consecutive()


@dataclass(slots=True, eq=False)
class FileMirror:
    """All reflected declarations found in one source file."""

    path: Path
    classes: List[Class] = field(default_factory=list)
    enums: List[Enumeration] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.classes and not self.enums
