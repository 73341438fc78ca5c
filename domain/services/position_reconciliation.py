from __future__ import annotations

import dataclasses
import logging
import posixpath
from collections.abc import Callable, Iterable, Mapping
from pathlib import PurePath
from typing import Any

from domain.diagram import (
    NODE_ANNOTATION,
    NODE_CONTAINER,
    NODE_GROUP_FRAME,
    POSITIONED_KINDS,
    Diagram,
    DiagramNode,
)
from domain.flattened import FlatSchema
from domain.models import Geometry, Point, Size
from domain.ports.positions import LayoutRepository, PositionMap, PositionStore
from domain.services.geometry import GeometryEstimator
from domain.services.group_bounds import DEFAULT_GROUP_PADDING, refresh_group_frames

logger = logging.getLogger(__name__)


def layout_key(path: str | PurePath) -> str:
    return posixpath.normpath(str(path).replace("\\", "/"))


def coerce_geometry(value: Geometry | Mapping[str, Any]) -> Geometry:
    if isinstance(value, Geometry):
        return value
    return Geometry.from_mapping(value)


def coerce_positions(raw: Mapping[str, Geometry | Mapping[str, Any]] | None) -> PositionMap:
    if not raw:
        return {}
    return {str(node_id): coerce_geometry(value) for node_id, value in raw.items()}


def current_node_ids(flat_schema: FlatSchema) -> set[str]:
    ids = {table.qualified_name for table in flat_schema.tables}
    ids.update(note.node_id for note in flat_schema.notes)
    return ids


def prune_obsolete(
    positions: Mapping[str, Geometry], current_ids: Iterable[str]
) -> PositionMap:
    keep = set(current_ids)
    pruned = {node_id: geometry for node_id, geometry in positions.items() if node_id in keep}
    dropped = len(positions) - len(pruned)
    if dropped:
        logger.debug("Pruned %s obsolete position(s).", dropped)
    return pruned


def extract_positions(nodes: Iterable[DiagramNode]) -> PositionMap:
    return {
        node.id: Geometry(node.position.x, node.position.y)
        for node in nodes
        if node.kind in POSITIONED_KINDS
    }


class LayoutPositionStore(PositionStore):
    """Position store bound to one layout key of a repository."""

    def __init__(self, repository: LayoutRepository, key: str) -> None:
        self._repository = repository
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def get(self, node_id: str) -> Geometry | None:
        return self._repository.load_layout(self._key).get(node_id)

    def set(self, node_id: str, geometry: Geometry) -> None:
        self._repository.update_layout(
            self._key, lambda positions: {**positions, node_id: geometry}
        )

    def update(self, node_id: str, change: Callable[[Geometry | None], Geometry]) -> Geometry:
        updated = self._repository.update_layout(
            self._key,
            lambda positions: {**positions, node_id: change(positions.get(node_id))},
        )
        return updated[node_id]

    def snapshot(self) -> PositionMap:
        return self._repository.load_layout(self._key)

    def replace(self, positions: Mapping[str, Geometry]) -> None:
        self._repository.save_layout(self._key, positions)


def move_group(
    diagram: Diagram,
    group_id: str,
    dx: float,
    dy: float,
    store: PositionStore,
    padding: float = DEFAULT_GROUP_PADDING,
) -> Diagram:
    group = diagram.group(group_id)
    if group is None:
        logger.warning("Ignoring move of unknown group %s.", group_id)
        return diagram

    moved: dict[str, Point] = {}
    for member_id in group.member_ids:
        node = diagram.node(member_id)
        if node is None:
            continue
        origin = Geometry(node.position.x, node.position.y)

        def shift(current: Geometry | None, origin: Geometry = origin) -> Geometry:
            return (current or origin).translated(dx, dy)

        moved[member_id] = store.update(member_id, shift).point

    nodes = tuple(
        node.moved_to(moved[node.id]) if node.id in moved else node for node in diagram.nodes
    )
    return refresh_group_frames(dataclasses.replace(diagram, nodes=nodes), padding)


def apply_node_moved(
    diagram: Diagram,
    node_id: str,
    position: Point,
    store: PositionStore,
    padding: float = DEFAULT_GROUP_PADDING,
) -> Diagram:
    node = diagram.node(node_id)
    if node is None:
        logger.warning("Ignoring move of unknown node %s.", node_id)
        return diagram
    if node.kind == NODE_GROUP_FRAME:
        dx = position.x - node.position.x
        dy = position.y - node.position.y
        return move_group(diagram, node_id, dx, dy, store, padding)
    if node.kind not in POSITIONED_KINDS:
        logger.debug("Ignoring move of non-draggable node %s.", node_id)
        return diagram

    def place(current: Geometry | None) -> Geometry:
        if current is None:
            return Geometry(position.x, position.y)
        return dataclasses.replace(current, x=position.x, y=position.y)

    stored = store.update(node_id, place)
    nodes = tuple(
        item.moved_to(stored.point) if item.id == node_id else item for item in diagram.nodes
    )
    moved = dataclasses.replace(diagram, nodes=nodes)
    if node.kind == NODE_CONTAINER:
        return refresh_group_frames(moved, padding)
    return moved


def apply_node_resized(
    diagram: Diagram,
    node_id: str,
    size: Size,
    store: PositionStore,
    geometry: GeometryEstimator | None = None,
) -> Diagram:
    node = diagram.node(node_id)
    if node is None or node.kind != NODE_ANNOTATION:
        logger.warning("Only annotations can be resized, got %s.", node_id)
        return diagram
    size = (geometry or GeometryEstimator()).clamp_note_size(node.data["note"], size)

    def resize(current: Geometry | None) -> Geometry:
        base = current or Geometry(node.position.x, node.position.y)
        return dataclasses.replace(base, width=size.width, height=size.height)

    store.update(node_id, resize)
    nodes = tuple(
        dataclasses.replace(item, size=size) if item.id == node_id else item
        for item in diagram.nodes
    )
    return dataclasses.replace(diagram, nodes=nodes)
