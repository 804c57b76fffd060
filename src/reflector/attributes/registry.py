"""Typed access to the dynamically-typed attribute bags of declarations.

Attribute bags are plain JSON-like dictionaries filled by the parser. All
typed reads go through an `AttributeRegistry`, which knows every recognized
attribute, the declaration kinds it applies to, its default and its validator.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Protocol, Tuple

from ..errors import AttributeValueError
from ..models.declarations import Declaration, DeclarationKind, Enumeration
from ..parsing.scanners import is_identifier


class TypeResolver(Protocol):
    def find_enum(self, name: str) -> Optional[Enumeration]:
        ...


Validator = Callable[[Any, Declaration, Optional[TypeResolver]], Optional[str]]

MISSING: Any = object()

DEFAULT_CATEGORY = "Miscellaneous"


# --- validators ---
# Each returns an error message, or None when the value is acceptable.

def is_string(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    if not isinstance(value, str):
        return "must be a string"
    return None


def is_bool(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    if not isinstance(value, bool):
        return "must be a boolean"
    return None


def is_bool_or_string(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    if not isinstance(value, (bool, str)):
        return "must be a string or boolean"
    return None


def is_object(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    if not isinstance(value, dict):
        return "must be an object"
    return None


def not_empty_string(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    error = is_string(value, decl, types)
    if error:
        return error
    if not value:
        return "cannot be empty"
    return None


def is_identifier_value(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    error = not_empty_string(value, decl, types)
    if error:
        return error
    if not is_identifier(value):
        return f"must be a valid C++ identifier ('{value}' is not)"
    return None


def is_namespace(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    error = not_empty_string(value, decl, types)
    if error:
        return error
    for part in value.split("::"):
        if not is_identifier(part):
            return f"must be a valid namespace name ('{part}' unexpected)"
    return None


def is_reflected_enum(value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
    error = not_empty_string(value, decl, types)
    if error:
        return error
    if types is not None and types.find_enum(value) is not None:
        return None
    return f"must name a reflected enum; '{value}' is not a reflected enum"


@dataclass(frozen=True, slots=True)
class AttributeProperties:
    names: Tuple[str, ...]
    description: str
    targets: FrozenSet[DeclarationKind]
    default: Any = None
    validator: Optional[Validator] = None
    category: str = DEFAULT_CATEGORY
    user_settable: bool = True

    @property
    def name(self) -> str:
        return self.names[0]

    def applies_to(self, decl: Declaration) -> bool:
        return decl.kind in self.targets

    def exists_in(self, bag: Mapping[str, Any]) -> Optional[str]:
        """Return the first accepted name present in `bag`."""
        for name in self.names:
            if name in bag:
                return name
        return None

    def validate(self, value: Any, decl: Declaration, types: Optional[TypeResolver] = None) -> Optional[str]:
        if not self.applies_to(decl):
            kinds = ", ".join(kind.value for kind in DeclarationKind if kind in self.targets)
            return f"`{self.name}` attribute only applies on the following entities: {kinds}"
        if self.validator is not None:
            return self.validator(value, decl, types)
        return None


def attribute(
    names: str,
    description: str,
    targets: Iterable[DeclarationKind],
    default: Any = None,
    *,
    validator: Optional[Validator] = None,
    category: str = DEFAULT_CATEGORY,
    user_settable: bool = True,
) -> AttributeProperties:
    """Build an entry; `names` is a `;`-separated list, the first one canonical."""
    return AttributeProperties(
        names=tuple(names.split(";")),
        description=description,
        targets=frozenset(targets),
        default=default,
        validator=validator,
        category=category,
        user_settable=user_settable,
    )


def string_attribute(
    names: str,
    description: str,
    targets: Iterable[DeclarationKind],
    *,
    validator: Validator = not_empty_string,
    category: str = DEFAULT_CATEGORY,
) -> AttributeProperties:
    return attribute(names, description, targets, None, validator=validator, category=category)


def bool_attribute(
    names: str,
    description: str,
    targets: Iterable[DeclarationKind],
    default: Optional[bool] = None,
    *,
    validator: Validator = is_bool,
    category: str = DEFAULT_CATEGORY,
    user_settable: bool = True,
) -> AttributeProperties:
    return attribute(
        names,
        description,
        targets,
        default,
        validator=validator,
        category=category,
        user_settable=user_settable,
    )


class AttributeRegistry:
    """The catalog of recognized attributes, bound to a type resolver for enum checks."""

    def __init__(
        self,
        entries: Iterable[AttributeProperties] = (),
        types: Optional[TypeResolver] = None,
    ) -> None:
        self._entries: List[AttributeProperties] = []
        self._by_name: Dict[str, AttributeProperties] = {}
        self.types = types
        for entry in entries:
            self.register(entry)

    def register(self, entry: AttributeProperties) -> None:
        for name in entry.names:
            if name in self._by_name:
                raise ValueError(f"Attribute name '{name}' registered twice")
        self._entries.append(entry)
        for name in entry.names:
            self._by_name[name] = entry

    def get(self, name: str) -> AttributeProperties:
        try:
            return self._by_name[name]
        except KeyError as exc:
            raise ValueError(f"No attribute registered for {name}") from exc

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[AttributeProperties]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def by_category(self) -> Dict[str, List[AttributeProperties]]:
        grouped: Dict[str, List[AttributeProperties]] = {}
        for entry in self._entries:
            grouped.setdefault(entry.category, []).append(entry)
        return grouped

    def find_unsettable(self, bag: Mapping[str, Any]) -> List[str]:
        return [
            found
            for entry in self._entries
            if not entry.user_settable and (found := entry.exists_in(bag)) is not None
        ]

    def validate(self, entry: AttributeProperties, value: Any, decl: Declaration) -> Optional[str]:
        return entry.validate(value, decl, self.types)

    def validate_bag(self, decl: Declaration, defer: Iterable[AttributeProperties] = ()) -> None:
        """Validate every recognized attribute in `decl`'s bag.

        Entries in `defer` only get their target check here; their full
        validation happens on lookup, once every file has been parsed.
        """
        deferred = {entry.name for entry in defer}
        for key, value in decl.attributes.items():
            entry = self._by_name.get(key)
            if entry is None or value is None:
                continue
            if entry.name in deferred:
                error = None if entry.applies_to(decl) else entry.validate(value, decl)
            else:
                error = self.validate(entry, value, decl)
            if error:
                raise AttributeValueError(
                    f"Invalid attribute '{entry.name}': {error}",
                    path=decl.source_path,
                    line=decl.declaration_line,
                )

    def lookup(self, entry: AttributeProperties, decl: Declaration, default: Any = MISSING) -> Any:
        """Return the validated value of `entry` on `decl`, or the default.

        Raises AttributeValueError when the stored value fails validation.
        """
        for name in entry.names:
            value = decl.attributes.get(name)
            if value is None:
                continue
            error = self.validate(entry, value, decl)
            if error:
                raise AttributeValueError(
                    f"Invalid attribute '{entry.name}': {error}",
                    path=decl.source_path,
                    line=decl.declaration_line,
                )
            return value
        if default is MISSING:
            return copy.deepcopy(entry.default)
        return default
