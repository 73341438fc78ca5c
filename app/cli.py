from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from adapters.filesystem.json_utils import write_json_atomic
from adapters.filesystem.schema_repository import FileSystemSchemaRepository
from app.config import AppSettings, load_settings
from app.diagram_wiring import build_layout_repository, build_session
from domain.diagram import NODE_ANNOTATION, NODE_CONTAINER, NODE_GROUP_FRAME, Diagram
from domain.models import Point, SchemaGraph
from domain.services.flatten_schema import flatten_schema, table_navigation
from domain.services.position_reconciliation import layout_key

app = typer.Typer(no_args_is_help=True)
console = Console()


def _setup(config_path: Path | None, verbose: bool) -> AppSettings:
    settings = load_settings(config_path)
    level = logging.DEBUG if verbose else settings.diagram.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return settings


def _load_schema(schema_path: Path) -> SchemaGraph:
    if not schema_path.exists():
        console.print(f"[red]File not found:[/] {schema_path}")
        raise typer.Exit(code=1)
    try:
        return FileSystemSchemaRepository().load(schema_path)
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid schema:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _summary(diagram: Diagram) -> str:
    tables = len(diagram.nodes_of_kind(NODE_CONTAINER))
    notes = len(diagram.nodes_of_kind(NODE_ANNOTATION))
    frames = len(diagram.nodes_of_kind(NODE_GROUP_FRAME))
    return (
        f"{tables} tables, {len(diagram.edges)} relationships, "
        f"{frames} groups, {notes} notes"
    )


@app.command("render")
def render(
    schema_path: Path = typer.Argument(..., help="Schema JSON exported by the parser."),
    output: Optional[Path] = typer.Option(None, help="Where to write the diagram JSON."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    settings = _setup(config, verbose)
    schema = _load_schema(schema_path)
    diagram = build_session(settings, schema_path).rebuild(schema)
    target = output or schema_path.with_suffix(".diagram.json")
    write_json_atomic(target, diagram.to_dict())
    console.print(f"[green]Wrote[/] {target} ({_summary(diagram)})")


@app.command("move-node")
def move_node(
    schema_path: Path = typer.Argument(..., help="Schema JSON exported by the parser."),
    node_id: str = typer.Argument(..., help="Table, note or group frame id."),
    x: float = typer.Option(..., help="New x coordinate."),
    y: float = typer.Option(..., help="New y coordinate."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    settings = _setup(config, verbose)
    session = build_session(settings, schema_path)
    session.rebuild(_load_schema(schema_path))
    if session.diagram.node(node_id) is None:
        console.print(f"[red]Unknown node:[/] {node_id}")
        raise typer.Exit(code=1)
    session.node_moved(node_id, Point(x, y))
    console.print(f"[green]Moved[/] {node_id} to ({x}, {y})")


@app.command("move-group")
def move_group(
    schema_path: Path = typer.Argument(..., help="Schema JSON exported by the parser."),
    group_id: str = typer.Argument(..., help="Group name or frame id."),
    dx: float = typer.Option(0.0, help="Horizontal offset."),
    dy: float = typer.Option(0.0, help="Vertical offset."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    settings = _setup(config, verbose)
    session = build_session(settings, schema_path)
    session.rebuild(_load_schema(schema_path))
    if session.diagram.group(group_id) is None:
        console.print(f"[red]Unknown group:[/] {group_id}")
        raise typer.Exit(code=1)
    session.group_moved(group_id, dx, dy)
    console.print(f"[green]Moved group[/] {group_id} by ({dx}, {dy})")


@app.command("clear-layout")
def clear_layout(
    schema_path: Path = typer.Argument(..., help="Schema file whose saved layout to drop."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    settings = _setup(config, verbose)
    key = layout_key(schema_path)
    build_layout_repository(settings).clear_layout(key)
    console.print(f"[green]Cleared layout[/] {key}")


@app.command("tables")
def tables(
    schema_path: Path = typer.Argument(..., help="Schema JSON exported by the parser."),
) -> None:
    flat_schema = flatten_schema(_load_schema(schema_path))
    listing = Table("Table", "Columns")
    columns = {table.qualified_name: len(table.table.columns) for table in flat_schema.tables}
    for entry in table_navigation(flat_schema):
        if entry.kind == "header":
            listing.add_row(f"[bold]{entry.label}[/]", "")
        else:
            listing.add_row(entry.label, str(columns.get(entry.value, 0)))
    console.print(listing)


@app.command("validate")
def validate(
    schema_path: Path = typer.Argument(..., help="Schema JSON exported by the parser."),
) -> None:
    schema = _load_schema(schema_path)
    flat_schema = flatten_schema(schema)
    console.print(
        f"[green]Valid schema:[/] {schema_path} "
        f"({len(flat_schema.tables)} tables, {len(flat_schema.relationships)} relationships)"
    )


if __name__ == "__main__":
    app()
