from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Tuple

from ..models.declarations import FileMirror


class ParserAdapter(ABC):
    language: str
    extensions: Tuple[str, ...] = ()

    @abstractmethod
    def parse(self, source: str, path: Path) -> FileMirror:
        """Return the reflected declarations found in the given source."""


class ParserRegistry:
    """Maps file extensions to the adapter that parses them."""

    def __init__(self) -> None:
        self._adapters: List[ParserAdapter] = []
        self._by_extension: Dict[str, ParserAdapter] = {}

    def register(self, adapter: ParserAdapter) -> None:
        self._adapters.append(adapter)
        for extension in adapter.extensions:
            self._by_extension[extension.lower()] = adapter

    def for_path(self, path: Path) -> ParserAdapter:
        """Pick the adapter claiming `path`'s extension; a lone adapter takes everything."""
        adapter = self._by_extension.get(path.suffix.lower())
        if adapter is not None:
            return adapter
        if len(self._adapters) == 1:
            return self._adapters[0]
        raise ValueError(f"No parser registered for {path.suffix or path.name}")
