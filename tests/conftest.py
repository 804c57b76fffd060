"""Shared fixtures for Reflector tests."""
from pathlib import Path
from typing import Callable

import pytest

from reflector.config import Settings
from reflector.context import ReflectionContext
from reflector.derivation import DerivationEngine
from reflector.models.declarations import FileMirror
from reflector.parsing.file_parser import MarkerParser


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def context(settings: Settings) -> ReflectionContext:
    return ReflectionContext.create(settings)


@pytest.fixture
def parser(context: ReflectionContext) -> MarkerParser:
    return MarkerParser(context)


@pytest.fixture
def parse(context: ReflectionContext, parser: MarkerParser) -> Callable[..., FileMirror]:
    """Parse source text and register the result in the graph, like the service does."""

    def _parse(source: str, name: str = "Test.h") -> FileMirror:
        mirror = parser.parse(source, Path(name))
        context.graph.add_file(mirror)
        return mirror

    return _parse


@pytest.fixture
def derive(context: ReflectionContext) -> Callable[[], list]:
    def _derive() -> list:
        return DerivationEngine(context).run()

    return _derive
