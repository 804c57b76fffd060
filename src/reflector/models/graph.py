from __future__ import annotations

import threading
from typing import Iterator, List, Optional

from .declarations import Class, Declaration, Enumeration, FileMirror, TypeDeclaration


class DeclarationGraph:
    """Append-only registry of every parsed file and the name lookups over it.

    Files are appended from parser worker threads, so `add_file` is guarded by a
    lock. Lookups are only meaningful once all parsing has finished.
    """

    def __init__(self) -> None:
        self._files: List[FileMirror] = []
        self._lock = threading.Lock()

    # --- registry ---
    def add_file(self, mirror: FileMirror) -> FileMirror:
        with self._lock:
            self._files.append(mirror)
        return mirror

    @property
    def files(self) -> List[FileMirror]:
        with self._lock:
            return sorted(self._files, key=lambda mirror: mirror.path.as_posix())

    def classes(self) -> Iterator[Class]:
        for mirror in self.files:
            yield from mirror.classes

    def enums(self) -> Iterator[Enumeration]:
        for mirror in self.files:
            yield from mirror.enums

    def declaration_count(self) -> int:
        count = 0
        for klass in self.classes():
            count += 1 + len(klass.fields) + len(klass.methods) + len(klass.properties)
        for henum in self.enums():
            count += 1 + len(henum.enumerators)
        return count

    # --- lookups ---
    def find_enum(self, name: str) -> Optional[Enumeration]:
        for henum in self.enums():
            if henum.name == name or henum.full_type() == name:
                return henum
        return None

    def find_classes(self, name: str) -> List[Class]:
        return [klass for klass in self.classes() if _matches(klass, name)]

    def find_class(self, name: str) -> Optional[Class]:
        """Resolve a possibly-qualified class name; ambiguous names resolve to nothing."""
        name = name.strip()
        if name.startswith("::"):
            name = name[2:]
        if not name:
            return None
        candidates = self.find_classes(name)
        if len(candidates) == 1:
            return candidates[0]
        return None

    def ancestors(self, klass: Class) -> List[Class]:
        """Walk `base_class` names upwards until one fails to resolve."""
        result: List[Class] = []
        seen = {id(klass)}
        current = self.find_class(klass.base_class)
        while current is not None and id(current) not in seen:
            result.append(current)
            seen.add(id(current))
            current = self.find_class(current.base_class)
        return result

    def find_declaration(self, full_name: str) -> Optional[Declaration]:
        """Find a class, enum or member by its dotted full name."""
        for klass in self.classes():
            if klass.full_name() == full_name:
                return klass
            for member in (*klass.fields, *klass.methods, *klass.properties.values()):
                if member.full_name() == full_name:
                    return member
        for henum in self.enums():
            if henum.full_name() == full_name:
                return henum
            for enumerator in henum.enumerators:
                if enumerator.full_name() == full_name:
                    return enumerator
        return None


def _matches(decl: TypeDeclaration, name: str) -> bool:
    return decl.name == name or decl.full_type() == name
