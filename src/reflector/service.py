from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

import structlog

from .config import Settings
from .context import ReflectionContext
from .derivation import DerivationEngine
from .errors import Diagnostic, ReflectorError, ScanError
from .models.declarations import FileMirror
from .parsing.base import ParserRegistry
from .parsing.file_parser import MarkerParser

logger = structlog.get_logger()


@dataclass(slots=True)
class ParseOutcome:
    path: Path
    mirror: Optional[FileMirror] = None
    error: Optional[Diagnostic] = None


@dataclass(slots=True)
class ReflectionResult:
    files: List[Path] = field(default_factory=list)
    parsed: List[FileMirror] = field(default_factory=list)
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [*self.errors, *self.warnings]


class ReflectionService:
    """Discovers headers, parses them concurrently, then runs derivation once."""

    def __init__(
        self,
        settings: Settings,
        context: ReflectionContext | None = None,
        registry: ParserRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.context = context or ReflectionContext.create(settings)
        self.registry = registry or build_registry(self.context)

    # --- public API ---
    def run(self, paths: Iterable[Path] | None = None) -> ReflectionResult:
        result = ReflectionResult()
        result.files = self.discover(paths if paths is not None else self.settings.files, result)

        with ThreadPoolExecutor(max_workers=self.settings.workers) as pool:
            outcomes = list(pool.map(self.parse_file, result.files))

        for outcome in outcomes:
            if outcome.error is not None:
                result.errors.append(outcome.error)
            elif outcome.mirror is not None:
                result.parsed.append(outcome.mirror)

        if result.errors:
            logger.info("parse_failed", files=len(result.files), errors=len(result.errors))
        else:
            engine = DerivationEngine(self.context)
            result.errors.extend(Diagnostic.from_error(error) for error in engine.run())
        result.warnings = list(self.context.warnings)
        return result

    def parse_file(self, path: Path) -> ParseOutcome:
        """Parse one file; on success its declarations are added to the graph."""
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            error = ScanError(f"Could not read file: {exc.strerror or exc}", path=path)
            return ParseOutcome(path=path, error=Diagnostic.from_error(error))
        try:
            mirror = self.registry.for_path(path).parse(source, path)
        except ReflectorError as exc:
            logger.debug("file_failed", path=str(path), error=exc.message)
            return ParseOutcome(path=path, error=Diagnostic.from_error(exc.at(path, 0)))
        self.context.graph.add_file(mirror)
        return ParseOutcome(path=path, mirror=mirror)

    def discover(self, paths: Iterable[Path], result: ReflectionResult | None = None) -> List[Path]:
        """Expand directories into the files with a configured extension, sorted per directory."""
        found: List[Path] = []
        seen = set()
        extensions = set(self.settings.extensions_to_scan)
        for path in paths:
            path = Path(path)
            if path.is_dir():
                pattern = "**/*" if self.settings.recursive else "*"
                candidates = sorted(
                    child for child in path.glob(pattern) if child.is_file() and child.suffix in extensions
                )
            elif path.is_file():
                candidates = [path]
            else:
                if result is not None:
                    result.errors.append(
                        Diagnostic.from_error(ScanError("File or directory does not exist", path=path))
                    )
                continue
            for candidate in candidates:
                key = candidate.resolve()
                if key not in seen:
                    seen.add(key)
                    found.append(candidate)
        logger.debug("files_discovered", count=len(found))
        return found


def build_registry(context: ReflectionContext) -> ParserRegistry:
    registry = ParserRegistry()
    registry.register(MarkerParser(context))
    return registry
