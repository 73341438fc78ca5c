from __future__ import annotations

from pathlib import PurePath

from adapters.filesystem.layout_repository import FileSystemLayoutRepository
from adapters.layout.layered import LayeredLayoutEngine
from app.config import AppSettings
from domain.diagram import Diagram, EventCallbacks
from domain.models import SchemaGraph
from domain.services.build_diagram import SavedPositions, SchemaToDiagramConverter
from domain.services.diagram_session import DiagramSession
from domain.services.geometry import GeometryEstimator
from domain.services.position_reconciliation import layout_key


def build_converter(settings: AppSettings | None = None) -> SchemaToDiagramConverter:
    diagram = (settings or AppSettings()).diagram
    return SchemaToDiagramConverter(
        LayeredLayoutEngine(diagram.layout.to_layout_config()),
        GeometryEstimator(diagram.geometry.to_geometry_config()),
        fallback_offset=diagram.layout.fallback_offset,
    )


def build_layout_repository(settings: AppSettings) -> FileSystemLayoutRepository:
    return FileSystemLayoutRepository(settings.diagram.layout_store_path)


def build_session(settings: AppSettings, source_path: str | PurePath) -> DiagramSession:
    return DiagramSession(
        build_converter(settings),
        build_layout_repository(settings),
        layout_key(source_path),
    )


def build_diagram(
    schema: SchemaGraph,
    saved_positions: SavedPositions | None = None,
    callbacks: EventCallbacks | None = None,
    settings: AppSettings | None = None,
) -> Diagram:
    return build_converter(settings).convert(schema, saved_positions, callbacks)
