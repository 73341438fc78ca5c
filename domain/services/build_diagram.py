from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from domain.diagram import (
    NODE_ANNOTATION,
    NODE_CONTAINER,
    NODE_ROW,
    Diagram,
    DiagramEdge,
    DiagramNode,
    EdgeData,
    EventCallbacks,
)
from domain.flattened import (
    ColumnHandle,
    FlatNote,
    FlatSchema,
    FlatTable,
    NormalizedRelationship,
)
from domain.models import Geometry, Point, SchemaGraph
from domain.ports.layout import LayoutEdge, LayoutEngine, LayoutNode
from domain.services.column_handles import HandleMap, analyze_column_handles
from domain.services.flatten_schema import flatten_schema, resolve_enum
from domain.services.geometry import GeometryEstimator, column_icon
from domain.services.group_bounds import compute_group_frames
from domain.services.normalize_relationships import (
    normalize_relationships,
    pair_columns,
    relationship_description,
)
from domain.services.position_reconciliation import (
    coerce_positions,
    current_node_ids,
    prune_obsolete,
)

logger = logging.getLogger(__name__)

SavedPositions = Mapping[str, Geometry | Mapping[str, Any]]

FALLBACK_OFFSET = 40.0


class SchemaToDiagramConverter:
    def __init__(
        self,
        layout_engine: LayoutEngine,
        geometry: GeometryEstimator | None = None,
        fallback_offset: float = FALLBACK_OFFSET,
    ) -> None:
        self.layout_engine = layout_engine
        self.geometry = geometry or GeometryEstimator()
        self.fallback_offset = fallback_offset

    def convert(
        self,
        schema: SchemaGraph,
        saved_positions: SavedPositions | None = None,
        callbacks: EventCallbacks | None = None,
    ) -> Diagram:
        return self.convert_flat(flatten_schema(schema), saved_positions, callbacks)

    def convert_flat(
        self,
        flat_schema: FlatSchema,
        saved_positions: SavedPositions | None = None,
        callbacks: EventCallbacks | None = None,
    ) -> Diagram:
        callbacks = callbacks or EventCallbacks()
        saved = prune_obsolete(coerce_positions(saved_positions), current_node_ids(flat_schema))
        relationships = normalize_relationships(
            flat_schema.relationships, flat_schema.table_ids()
        )
        handles = analyze_column_handles(relationships)

        containers = [
            self._container_node(table, flat_schema, handles, callbacks)
            for table in flat_schema.tables
        ]
        annotations = [
            self._annotation_node(note, saved.get(note.node_id), callbacks)
            for note in flat_schema.notes
        ]
        positions = self._resolve_positions([*containers, *annotations], relationships, saved)
        containers = [node.moved_to(positions[node.id]) for node in containers]
        annotations = [node.moved_to(positions[node.id]) for node in annotations]

        padding = self.geometry.config.group_padding
        nodes: list[DiagramNode] = list(
            compute_group_frames(flat_schema.groups, containers, padding)
        )
        for table, container in zip(flat_schema.tables, containers):
            table_handles = handles.get(table.qualified_name, {})
            nodes.append(container)
            nodes.extend(
                self._row_nodes(table, container, flat_schema, table_handles, callbacks)
            )
        nodes.extend(annotations)

        edges = self._build_edges(relationships, flat_schema)
        return Diagram(nodes=tuple(nodes), edges=tuple(edges), groups=flat_schema.groups)

    def _container_node(
        self,
        table: FlatTable,
        flat_schema: FlatSchema,
        handles: HandleMap,
        callbacks: EventCallbacks,
    ) -> DiagramNode:
        table_handles = handles.get(table.qualified_name, {})
        return DiagramNode(
            id=table.qualified_name,
            kind=NODE_CONTAINER,
            position=Point(0.0, 0.0),
            size=self.geometry.table_size(table, table_handles),
            data={
                "table": table.table,
                "qualified_name": table.qualified_name,
                "namespace": table.namespace,
                "title": table.qualified_name,
                "show_namespace": flat_schema.multi_namespace,
                "column_count": len(table.table.columns),
                "has_note": bool(table.table.note),
                "header_color": table.table.header_color,
                "handles": dict(table_handles),
                "on_table_note_click": callbacks.on_table_note_click,
            },
        )

    def _row_nodes(
        self,
        table: FlatTable,
        container: DiagramNode,
        flat_schema: FlatSchema,
        handles: Mapping[str, ColumnHandle],
        callbacks: EventCallbacks,
    ) -> list[DiagramNode]:
        rows: list[DiagramNode] = []
        row_size = self.geometry.row_size(container.size.width)
        for index, column in enumerate(table.table.columns):
            handle = handles.get(column.name, ColumnHandle())
            enum = resolve_enum(
                flat_schema, table.namespace, column.type_name, column.type.schema_name
            )
            rows.append(
                DiagramNode(
                    id=f"{container.id}.{column.name}",
                    kind=NODE_ROW,
                    position=self.geometry.row_offset(table, index),
                    size=row_size,
                    parent_id=container.id,
                    draggable=False,
                    extent="parent",
                    data={
                        "column": column,
                        "container_id": container.id,
                        "index": index,
                        "icon": column_icon(column),
                        "type_name": column.type_name,
                        "constraints": column.constraints(),
                        "default": column.default.value if column.default else None,
                        "exposes_outgoing": handle.exposes_outgoing,
                        "exposes_incoming": handle.exposes_incoming,
                        "cardinality": handle.cardinality,
                        "is_connected": handle.is_connected,
                        "enum": enum,
                        "on_column_click": callbacks.on_column_click,
                    },
                )
            )
        return rows

    def _annotation_node(
        self, note: FlatNote, saved: Geometry | None, callbacks: EventCallbacks
    ) -> DiagramNode:
        return DiagramNode(
            id=note.node_id,
            kind=NODE_ANNOTATION,
            position=Point(0.0, 0.0),
            size=self.geometry.note_size(note, saved),
            data={
                "note": note.note,
                "qualified_name": note.qualified_name,
                "on_note_click": callbacks.on_note_click,
            },
        )

    def _resolve_positions(
        self,
        nodes: Sequence[DiagramNode],
        relationships: Sequence[NormalizedRelationship],
        saved: Mapping[str, Geometry],
    ) -> dict[str, Point]:
        positions: dict[str, Point] = {}
        floating: list[LayoutNode] = []
        for node in nodes:
            pinned = saved.get(node.id)
            if pinned is not None:
                positions[node.id] = pinned.point
            else:
                floating.append(LayoutNode(node_id=node.id, size=node.size))
        if not floating:
            return positions

        floating_ids = {item.node_id for item in floating}
        edges: list[LayoutEdge] = []
        for item in relationships:
            edge = LayoutEdge(source=item.source_table, target=item.target_table)
            if edge.source not in floating_ids or edge.target not in floating_ids:
                continue
            if edge.source == edge.target or edge in edges:
                continue
            edges.append(edge)

        try:
            placed = self.layout_engine.place(floating, edges)
        except Exception:  # noqa: BLE001
            logger.exception("Automatic layout failed; using fallback positions.")
            placed = {}

        for index, item in enumerate(floating):
            point = placed.get(item.node_id)
            if point is None:
                logger.warning("Layout did not place %s; using fallback position.", item.node_id)
                offset = index * self.fallback_offset
                point = Point(offset, offset)
            positions[item.node_id] = point
        return positions

    def _build_edges(
        self, relationships: Sequence[NormalizedRelationship], flat_schema: FlatSchema
    ) -> list[DiagramEdge]:
        tables = flat_schema.table_by_id()
        edges: list[DiagramEdge] = []
        for item in relationships:
            source_table = tables[item.source_table].table
            target_table = tables[item.target_table].table
            pairs = pair_columns(item.source_columns, item.target_columns)
            for pair_index, (source_column, target_column) in enumerate(pairs):
                if source_table.column(source_column) is not None:
                    source, source_handle = f"{item.source_table}.{source_column}", "source"
                else:
                    source, source_handle = item.source_table, "table-source"
                if target_table.column(target_column) is not None:
                    target, target_handle = f"{item.target_table}.{target_column}", "target"
                else:
                    target, target_handle = item.target_table, "table-target"
                edges.append(
                    DiagramEdge(
                        id=f"{source}->{target}#{item.index}.{pair_index}",
                        source=source,
                        target=target,
                        source_handle=source_handle,
                        target_handle=target_handle,
                        data=EdgeData(
                            source_table=item.source_table,
                            source_column=source_column,
                            target_table=item.target_table,
                            target_column=target_column,
                            source_relation=item.source_relation,
                            target_relation=item.target_relation,
                            label=item.label,
                            description=relationship_description(
                                item, source_column, target_column
                            ),
                            relationship_name=item.relationship.name,
                            on_delete=item.relationship.on_delete,
                            on_update=item.relationship.on_update,
                        ),
                    )
                )
        return edges


def build_diagram(
    schema: SchemaGraph,
    saved_positions: SavedPositions | None,
    callbacks: EventCallbacks | None,
    layout_engine: LayoutEngine,
    geometry: GeometryEstimator | None = None,
) -> Diagram:
    converter = SchemaToDiagramConverter(layout_engine, geometry)
    return converter.convert(schema, saved_positions, callbacks)
