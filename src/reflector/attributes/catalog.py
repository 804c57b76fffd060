"""Every attribute recognized in marker attribute lists."""
from __future__ import annotations

from typing import Optional

from ..models.declarations import DeclarationKind as Kind
from .registry import (
    AttributeProperties,
    AttributeRegistry,
    TypeResolver,
    attribute,
    bool_attribute,
    is_bool,
    is_bool_or_string,
    is_identifier_value,
    is_namespace,
    is_object,
    is_reflected_enum,
    is_string,
    string_attribute,
)

ANY = frozenset(Kind)
TYPES = frozenset({Kind.CLASS, Kind.ENUM})
MEMBERS = frozenset({Kind.FIELD, Kind.METHOD})
FIELDS = frozenset({Kind.FIELD})
METHODS = frozenset({Kind.METHOD})
CLASSES = frozenset({Kind.CLASS})
ENUMS = frozenset({Kind.ENUM})
ENUMERATORS = frozenset({Kind.ENUMERATOR})

FLAGS_CATEGORY = "Flags"
ENUMERATIONS_CATEGORY = "Enumerations"
NATIVE_CATEGORY = "C++ Attributes"

DISPLAY_NAME = string_attribute("DisplayName", "The name that is going to be displayed in editors and such", ANY)
SAVE_NAME = string_attribute(
    "SaveName",
    "The name that this field will be saved with; can be used to rename fields without losing already serialized data",
    FIELDS,
)
LOAD_NAME = string_attribute(
    "LoadName",
    "The name that this field will be loaded from; can be used to rename fields without losing already serialized data",
    FIELDS,
)
NAMESPACE = string_attribute(
    "Namespace",
    "Namespaces are not parsed; set this to the full namespace of the following type",
    TYPES,
    validator=is_namespace,
)
GUID = string_attribute("GUID", "A globally-unique ID for this type. Can aid with renaming.", TYPES)

GETTER = bool_attribute("Getter", "Whether or not to create a getter for this field", FIELDS, True)
SETTER = bool_attribute("Setter", "Whether or not to create a setter for this field", FIELDS, True)
EDITOR = bool_attribute("Editor;Edit", "Whether or not this entity should be editable", FIELDS | CLASSES, True)
SCRIPT = bool_attribute(
    "Script;Scriptable", "Whether or not this entity should be accessible via script", MEMBERS | CLASSES, True
)
SAVE = bool_attribute("Save", "Whether or not this field should be saveable", FIELDS, True)
LOAD = bool_attribute("Load", "Whether or not this field should be loadable", FIELDS, True)
DOCUMENT = bool_attribute("Document;Doc", "Whether or not to create a documentation entry for this entity", ANY, True)
DOCUMENT_MEMBERS = bool_attribute(
    "DocumentMembers", "Whether or not to create documentation entries for members of this entity", TYPES, True
)
SERIALIZE = bool_attribute("Serialize", "False means both 'Save' and 'Load' are false", FIELDS | CLASSES, True)
PRIVATE = bool_attribute("Private", "True sets 'Edit', 'Setter', 'Getter' to false", FIELDS, False)
TRANSIENT = bool_attribute("Transient", "True sets 'Setter' and 'Serialize' to false", FIELDS, False)
SCRIPT_PRIVATE = bool_attribute("ScriptPrivate", "True sets 'Setter', 'Getter' to false", FIELDS, False)
REQUIRED = bool_attribute(
    "Required", "The marked field is required to be present when deserializing class", FIELDS, False
)
PRIVATE_GETTERS = bool_attribute("PrivateGetters", "Whether to generate getters for private members", CLASSES, True)
PRIVATE_SETTERS = bool_attribute("PrivateSetters", "Whether to generate setters for private members", CLASSES, False)
ON_CHANGE = string_attribute(
    "OnChange", "Executes the given code when this field changes via setter functions", FIELDS, validator=is_string
)

FLAG_GETTERS = string_attribute(
    "FlagGetters",
    "If set to a reflected enum name, creates public getter functions (IsFlag) for each flag in the enum; "
    "can't be set if the 'Flags' attribute is set",
    FIELDS,
    validator=is_reflected_enum,
    category=FLAGS_CATEGORY,
)
FLAGS = string_attribute(
    "Flags",
    "If set to a reflected enum name, creates public getter and setter functions (IsFlag, SetFlag, UnsetFlag, "
    "ToggleFlag) for each flag in the enum; can't be set if the 'FlagGetters' attribute is set",
    FIELDS,
    validator=is_reflected_enum,
    category=FLAGS_CATEGORY,
)
FLAG_NOTS = bool_attribute(
    "FlagNots",
    "Requires 'Flags' attribute. If set, creates IsNotFlag functions in addition to regular IsFlag "
    "(except for enumerators with Opposite attribute).",
    FIELDS,
    False,
    category=FLAGS_CATEGORY,
)

UNIQUE_NAME = string_attribute(
    "UniqueName",
    "A unique (within this class) name of this method; useful when script-binding overloaded functions "
    "to languages without overloading",
    METHODS,
    validator=is_identifier_value,
)
SCRIPT_NAME = string_attribute(
    "ScriptName", "The name of this class member that will be used in scripts", MEMBERS, validator=is_identifier_value
)
GETTER_FOR = string_attribute(
    "GetterFor",
    "This function is a getter for the named property; useful when you are binding property accessors to scripts",
    METHODS,
)
SETTER_FOR = string_attribute(
    "SetterFor",
    "This function is a setter for the named property; useful when you are binding property accessors to scripts",
    METHODS,
)
PROPERTY = bool_attribute(
    "Property",
    "For methods, if true, is equivalent to `GetterFor = <methodname>`. For fields, if false, will not create "
    "a property for this field if it would otherwise have been.",
    MEMBERS,
)

ABSTRACT = bool_attribute("Abstract;Interface", "This class is abstract (don't create special constructors)", CLASSES, False)
SINGLETON = bool_attribute(
    "Singleton",
    "This class is a singleton. Adds a static function (default name 'SingletonInstance') that returns "
    "the single instance of this record.",
    CLASSES,
    False,
)
DEFAULT_FIELD_ATTRIBUTES = attribute(
    "DefaultFieldAttributes",
    "These attributes will be added as default to every reflected field of this class",
    CLASSES,
    {},
    validator=is_object,
)
DEFAULT_METHOD_ATTRIBUTES = attribute(
    "DefaultMethodAttributes",
    "These attributes will be added as default to every reflected method of this class",
    CLASSES,
    {},
    validator=is_object,
)
DEFAULT_ENUMERATOR_ATTRIBUTES = attribute(
    "DefaultEnumeratorAttributes",
    "These attributes will be added as default to every enumerator of this enum",
    ENUMS,
    {},
    validator=is_object,
)
CREATE_PROXY = bool_attribute("CreateProxy", "Whether or not proxy methods should be built for this class", CLASSES, True)
UNIMPLEMENTED = bool_attribute(
    "Unimplemented",
    "The functionality this entity represents is not implemented; mostly useful for documentation",
    ANY,
    False,
)
UNIQUE_ID = string_attribute(
    "UniqueID",
    "If set, will create a unique ID field with the given name, and a generator function, for this class",
    CLASSES,
    validator=is_identifier_value,
)

LIST = bool_attribute(
    "List;Sequence",
    "Whether or not to generate GetNext() and GetPrev() functions that return the next/prev enumerator "
    "in sequence, wrapping around",
    ENUMS,
    False,
    category=ENUMERATIONS_CATEGORY,
)
OPPOSITE = string_attribute(
    "Opposite",
    "When used in a flag enum, will create a virtual flag with the given name that is the complement of "
    "this one, for the purposes of creating getters and setters",
    ENUMERATORS,
    validator=is_identifier_value,
    category=ENUMERATIONS_CATEGORY,
)
ALIAS_ENUM = bool_attribute(
    "AliasEnum",
    "The marked enum is not meant as a container for enumerators, but as a strong type alias for "
    "another integral type",
    ENUMS,
    False,
    category=ENUMERATIONS_CATEGORY,
)

NO_RETURN = bool_attribute(
    "NoReturn",
    "Do not set this directly. Use [[noreturn]] instead.",
    METHODS,
    False,
    validator=is_bool,
    category=NATIVE_CATEGORY,
    user_settable=False,
)
DEPRECATED = bool_attribute(
    "Deprecated",
    "Do not set this directly. Use [[deprecated]] instead.",
    ANY,
    False,
    validator=is_bool_or_string,
    category=NATIVE_CATEGORY,
    user_settable=False,
)
NO_DISCARD = bool_attribute(
    "NoDiscard",
    "Do not set this directly. Use [[nodiscard]] instead.",
    {Kind.CLASS, Kind.ENUM, Kind.METHOD},
    False,
    validator=is_bool_or_string,
    category=NATIVE_CATEGORY,
    user_settable=False,
)
NO_UNIQUE_ADDRESS = bool_attribute(
    "NoUniqueAddress",
    "Do not set this directly. Use [[no_unique_address]] instead.",
    FIELDS,
    False,
    category=NATIVE_CATEGORY,
    user_settable=False,
)

ALL_ATTRIBUTES: tuple[AttributeProperties, ...] = (
    DISPLAY_NAME,
    SAVE_NAME,
    LOAD_NAME,
    NAMESPACE,
    GUID,
    GETTER,
    SETTER,
    EDITOR,
    SCRIPT,
    SAVE,
    LOAD,
    DOCUMENT,
    DOCUMENT_MEMBERS,
    SERIALIZE,
    PRIVATE,
    TRANSIENT,
    SCRIPT_PRIVATE,
    REQUIRED,
    PRIVATE_GETTERS,
    PRIVATE_SETTERS,
    ON_CHANGE,
    FLAG_GETTERS,
    FLAGS,
    FLAG_NOTS,
    UNIQUE_NAME,
    SCRIPT_NAME,
    GETTER_FOR,
    SETTER_FOR,
    PROPERTY,
    ABSTRACT,
    SINGLETON,
    DEFAULT_FIELD_ATTRIBUTES,
    DEFAULT_METHOD_ATTRIBUTES,
    DEFAULT_ENUMERATOR_ATTRIBUTES,
    CREATE_PROXY,
    UNIMPLEMENTED,
    UNIQUE_ID,
    LIST,
    OPPOSITE,
    ALIAS_ENUM,
    NO_RETURN,
    DEPRECATED,
    NO_DISCARD,
    NO_UNIQUE_ADDRESS,
)


def build_attribute_registry(types: Optional[TypeResolver] = None) -> AttributeRegistry:
    return AttributeRegistry(ALL_ATTRIBUTES, types=types)
