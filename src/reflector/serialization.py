"""Structured-value (JSON-compatible) views of declarations and the whole graph."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from .models.declarations import (
    AccessMode,
    Class,
    Declaration,
    DeclarationKind,
    DocNote,
    Enumeration,
    Enumerator,
    Field,
    FileMirror,
    Method,
    MethodParameter,
    Property,
    TypeDeclaration,
    flag_names,
)
from .models.graph import DeclarationGraph

DATABASE_VERSION = 1


def doc_note_to_dict(note: DocNote) -> Dict[str, Any]:
    result: Dict[str, Any] = {"Header": note.header, "Contents": note.contents}
    if note.show_in_member_list:
        result["ShowInMemberList"] = True
    if note.icon:
        result["Icon"] = note.icon
    return result


def parameter_to_dict(param: MethodParameter) -> Dict[str, Any]:
    result = {"Name": param.name, "Type": param.type}
    if param.initializer:
        result["Initializer"] = param.initializer
    return result


def _set_flags(result: Dict[str, Any], flags: Any, key: str = "Flags") -> None:
    names = flag_names(flags)
    if names:
        result[key] = names


def declaration_to_dict(decl: Declaration) -> Dict[str, Any]:
    """Serialize one declaration (and, for types, everything it owns)."""
    result: Dict[str, Any] = {"Name": decl.name, "Kind": decl.kind.value}
    if decl.declaration_line:
        result["DeclarationLine"] = decl.declaration_line
    if decl.uid:
        result["UID"] = f"{decl.uid:016x}"
    if decl.comments:
        result["Comments"] = list(decl.comments)
    if decl.attributes:
        result["Attributes"] = decl.attributes
    result["FullName"] = decl.full_name(".")
    if decl.display_name and decl.display_name != decl.name:
        result["DisplayName"] = decl.display_name
    if decl.access is not AccessMode.UNSPECIFIED:
        result["Access"] = decl.access.value
    if not decl.document_members:
        result["DocumentMembers"] = False
    if decl.doc_notes:
        result["DocNotes"] = [doc_note_to_dict(note) for note in decl.doc_notes]
    _set_flags(result, decl.entity_flags, "EntityFlags")
    if decl.deprecation:
        result["Deprecation"] = decl.deprecation
    if decl.associated_artificial_methods:
        result["AssociatedArtificialMethods"] = {
            kind: method.full_name(".") for kind, method in decl.associated_artificial_methods.items()
        }

    match decl.kind:
        case DeclarationKind.FIELD:
            result.update(_field_fields(decl))
        case DeclarationKind.METHOD:
            result.update(_method_fields(decl))
        case DeclarationKind.PROPERTY:
            result.update(_property_fields(decl))
        case DeclarationKind.CLASS:
            result.update(_type_fields(decl))
            result.update(_class_fields(decl))
        case DeclarationKind.ENUM:
            result.update(_type_fields(decl))
            result.update(_enum_fields(decl))
        case DeclarationKind.ENUMERATOR:
            result.update(_enumerator_fields(decl))
    return result


def _type_fields(decl: TypeDeclaration) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    if decl.namespace:
        result["Namespace"] = decl.namespace
    if decl.guid:
        result["GUID"] = decl.guid
    result["FullType"] = decl.full_type()
    return result


def _field_fields(item: Field) -> Dict[str, Any]:
    result: Dict[str, Any] = {"Type": item.type}
    if item.initializing_expression:
        result["InitializingExpression"] = item.initializing_expression
    if item.clean_name != item.name:
        result["CleanName"] = item.clean_name
    if item.load_name != item.name:
        result["LoadName"] = item.load_name
    if item.save_name != item.name:
        result["SaveName"] = item.save_name
    _set_flags(result, item.flags)
    return result


def _method_fields(method: Method) -> Dict[str, Any]:
    result: Dict[str, Any] = {"ReturnType": method.return_type, "Signature": method.signature()}
    if method.parameters:
        result["Parameters"] = [parameter_to_dict(param) for param in method.parameters]
    if method.artificial_body:
        result["ArtificialBody"] = method.artificial_body
    if method.source_declaration is not None:
        result["SourceDeclaration"] = method.source_declaration.full_name(".")
    if method.unique_name:
        result["UniqueName"] = method.unique_name
    _set_flags(result, method.flags)
    return result


def _property_fields(prop: Property) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "Type": prop.type,
        "Getter": prop.getter.full_name(".") if prop.getter else None,
        "Setter": prop.setter.full_name(".") if prop.setter else None,
    }
    if prop.source_field is not None:
        result["SourceField"] = prop.source_field.full_name(".")
    _set_flags(result, prop.flags)
    return result


def _class_fields(klass: Class) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    if klass.base_class:
        result["BaseClass"] = klass.base_class
    _set_flags(result, klass.flags)
    if klass.fields:
        result["Fields"] = {item.name: declaration_to_dict(item) for item in klass.fields}
    if klass.methods:
        result["Methods"] = [declaration_to_dict(method) for method in klass.methods]
    if klass.properties:
        result["Properties"] = [declaration_to_dict(prop) for prop in klass.properties.values()]
    if klass.declared_flags:
        result["DeclaredFlags"] = [
            {
                "Name": flag.name,
                "Field": flag.source_field.name,
                "Enumerator": flag.represents.full_name("."),
                "Methods": [method.name for method in flag.generated_methods],
            }
            for flag in klass.declared_flags
        ]
    result["BodyLine"] = klass.body_line
    if klass.additional_body_lines:
        result["AdditionalBodyLines"] = list(klass.additional_body_lines)
    if klass.default_field_attributes:
        result["DefaultFieldAttributes"] = klass.default_field_attributes
    if klass.default_method_attributes:
        result["DefaultMethodAttributes"] = klass.default_method_attributes
    return result


def _enum_fields(henum: Enumeration) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "Enumerators": {enumerator.name: declaration_to_dict(enumerator) for enumerator in henum.enumerators},
    }
    if henum.base_type:
        result["BaseType"] = henum.base_type
    if henum.default_enumerator_attributes:
        result["DefaultEnumeratorAttributes"] = henum.default_enumerator_attributes
    result["Trivial"] = henum.is_trivial()
    result["Consecutive"] = henum.is_consecutive()
    _set_flags(result, henum.flags)
    return result


def _enumerator_fields(enumerator: Enumerator) -> Dict[str, Any]:
    result: Dict[str, Any] = {"Value": enumerator.value}
    if enumerator.opposite:
        result["Opposite"] = enumerator.opposite
    return result


def file_to_dict(mirror: FileMirror) -> Dict[str, Any]:
    return {
        "SourceFilePath": mirror.path.as_posix(),
        "Classes": {klass.full_name(): declaration_to_dict(klass) for klass in mirror.classes},
        "Enums": {henum.full_name(): declaration_to_dict(henum) for henum in mirror.enums},
    }


def graph_to_dict(graph: DeclarationGraph) -> Dict[str, Any]:
    files: List[Dict[str, Any]] = [file_to_dict(mirror) for mirror in graph.files if not mirror.is_empty()]
    return {"Version": DATABASE_VERSION, "Files": files}


def write_database(graph: DeclarationGraph, path: Path) -> Path:
    """Write the whole graph as a JSON database; returns the written path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(graph_to_dict(graph), indent=2, sort_keys=False))
    return path
