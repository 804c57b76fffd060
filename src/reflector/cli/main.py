"""Reflector CLI: scan annotated C++ headers and report the reflection graph."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..attributes.catalog import build_attribute_registry
from ..config import Settings, load_settings
from ..errors import ConfigError
from ..logging import configure_logging
from ..serialization import write_database
from ..service import ReflectionResult, ReflectionService

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(add_completion=False, no_args_is_help=True)


def _resolve_settings(
    config_path: Optional[Path],
    recursive: Optional[bool],
    quiet: Optional[bool],
    verbose: Optional[bool],
) -> Settings:
    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        err_console.print(exc.format(), markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(1)
    if recursive is not None:
        settings.recursive = recursive
    if quiet is not None:
        settings.quiet = quiet
    if verbose is not None:
        settings.verbose = verbose
    configure_logging(level="DEBUG" if settings.verbose else "WARNING")
    return settings


def _run(settings: Settings, paths: List[Path]) -> tuple[ReflectionService, ReflectionResult]:
    service = ReflectionService(settings)
    result = service.run(paths or settings.files)
    for diagnostic in result.diagnostics:
        err_console.print(diagnostic.format(), markup=False, highlight=False, soft_wrap=True)
    return service, result


def _print_summary(service: ReflectionService, result: ReflectionResult) -> None:
    table = Table(title="Reflected files")
    table.add_column("File", style="cyan")
    table.add_column("Classes", justify="right")
    table.add_column("Enums", justify="right")
    table.add_column("Fields", justify="right")
    table.add_column("Methods", justify="right")
    table.add_column("Artificial", justify="right")

    for mirror in service.context.graph.files:
        if mirror.is_empty():
            continue
        table.add_row(
            str(mirror.path),
            str(len(mirror.classes)),
            str(len(mirror.enums)),
            str(sum(len(klass.fields) for klass in mirror.classes)),
            str(sum(len(klass.methods) for klass in mirror.classes)),
            str(sum(len(klass.artificial_methods()) for klass in mirror.classes)),
        )
    console.print(table)
    console.print(
        f"Scanned {len(result.files)} file(s): "
        f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )


@app.command()
def scan(
    paths: List[Path] = typer.Argument(None, help="Header files or directories to scan"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to reflector.yaml"),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive", "-r", help="Search directories recursively"),
    quiet: Optional[bool] = typer.Option(None, "--quiet/--no-quiet", "-q", help="Only print diagnostics"),
    verbose: Optional[bool] = typer.Option(None, "--verbose/--no-verbose", "-v", help="Print debug logs"),
):
    """Parse and derive the reflection graph, printing diagnostics."""
    settings = _resolve_settings(config, recursive, quiet, verbose)
    service, result = _run(settings, paths or [])
    if not settings.quiet:
        _print_summary(service, result)
    if not result.ok:
        raise typer.Exit(1)


@app.command()
def dump(
    paths: List[Path] = typer.Argument(None, help="Header files or directories to scan"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the JSON database"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to reflector.yaml"),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive", "-r", help="Search directories recursively"),
    quiet: Optional[bool] = typer.Option(None, "--quiet/--no-quiet", "-q", help="Only print diagnostics"),
):
    """Scan like `scan`, then write the reflection database as JSON."""
    settings = _resolve_settings(config, recursive, quiet, None)
    target = output or settings.database_path
    if target is None:
        err_console.print("[red]No output path:[/red] pass --output or set database_path in the config")
        raise typer.Exit(1)
    service, result = _run(settings, paths or [])
    if not result.ok:
        raise typer.Exit(1)
    written = write_database(service.context.graph, Path(target))
    if not settings.quiet:
        _print_summary(service, result)
        console.print(f"[green]Wrote[/green] {written}", soft_wrap=True)


@app.command()
def attributes(
    category: Optional[str] = typer.Option(None, "--category", help="Only list attributes in this category"),
):
    """List every attribute recognized in marker attribute lists."""
    registry = build_attribute_registry()
    grouped = registry.by_category()
    if category is not None and category not in grouped:
        console.print(f"[yellow]No attributes in category '{category}'[/yellow]")
        raise typer.Exit(1)

    for name, entries in grouped.items():
        if category is not None and name != category:
            continue
        table = Table(title=name)
        table.add_column("Name", style="cyan")
        table.add_column("Applies To")
        table.add_column("Default")
        table.add_column("Description")
        for entry in entries:
            label = " / ".join(entry.names)
            if not entry.user_settable:
                label += " [dim](native only)[/dim]"
            table.add_row(
                label,
                ", ".join(sorted(kind.value for kind in entry.targets)),
                "" if entry.default is None else repr(entry.default),
                entry.description,
            )
        console.print(table)


if __name__ == "__main__":
    app()
