from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from .attributes.catalog import build_attribute_registry
from .attributes.registry import AttributeRegistry
from .config import Settings
from .errors import Diagnostic, Severity
from .models.declarations import Declaration
from .models.graph import DeclarationGraph

logger = structlog.get_logger()


@dataclass
class ReflectionContext:
    """Everything one run shares: settings, the attribute catalog and the graph."""

    settings: Settings
    graph: DeclarationGraph
    attributes: AttributeRegistry
    warnings: List[Diagnostic] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "ReflectionContext":
        graph = DeclarationGraph()
        return cls(
            settings=settings or Settings(),
            graph=graph,
            attributes=build_attribute_registry(graph),
        )

    def warn(self, decl: Declaration, message: str) -> Diagnostic:
        diagnostic = Diagnostic(
            severity=Severity.WARNING,
            message=message,
            path=decl.source_path,
            line=decl.declaration_line,
        )
        with self._lock:
            self.warnings.append(diagnostic)
        logger.warning("reflection_warning", path=str(decl.source_path), line=decl.declaration_line, message=message)
        return diagnostic
