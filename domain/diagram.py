from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from domain.flattened import FlatGroup
from domain.models import Point, Size

NODE_CONTAINER = "container"
NODE_ROW = "row"
NODE_ANNOTATION = "annotation"
NODE_GROUP_FRAME = "group-frame"

POSITIONED_KINDS = frozenset({NODE_CONTAINER, NODE_ANNOTATION})


@dataclass(frozen=True)
class EventCallbacks:
    on_column_click: Callable[..., Any] | None = None
    on_table_note_click: Callable[..., Any] | None = None
    on_note_click: Callable[..., Any] | None = None


@dataclass(frozen=True)
class DiagramNode:
    id: str
    kind: str
    position: Point
    size: Size
    parent_id: str | None = None
    draggable: bool = True
    extent: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    def moved_to(self, position: Point) -> DiagramNode:
        return dataclasses.replace(self, position=position)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "position": {"x": self.position.x, "y": self.position.y},
            "size": {"width": self.size.width, "height": self.size.height},
            "draggable": self.draggable,
            "data": _jsonable(self.data),
        }
        if self.parent_id is not None:
            payload["parentId"] = self.parent_id
        if self.extent is not None:
            payload["extent"] = self.extent
        return payload


@dataclass(frozen=True)
class EdgeData:
    source_table: str
    source_column: str
    target_table: str
    target_column: str
    source_relation: str
    target_relation: str
    label: str
    description: str
    relationship_name: str | None = None
    on_delete: str | None = None
    on_update: str | None = None


@dataclass(frozen=True)
class DiagramEdge:
    id: str
    source: str
    target: str
    source_handle: str | None
    target_handle: str | None
    data: EdgeData

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
            "label": self.data.label,
            "data": dataclasses.asdict(self.data),
        }


@dataclass(frozen=True)
class Diagram:
    nodes: tuple[DiagramNode, ...] = ()
    edges: tuple[DiagramEdge, ...] = ()
    groups: tuple[FlatGroup, ...] = ()

    def node(self, node_id: str) -> DiagramNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_of_kind(self, kind: str) -> list[DiagramNode]:
        return [node for node in self.nodes if node.kind == kind]

    def group(self, group_id: str) -> FlatGroup | None:
        for group in self.groups:
            if group_id in {group.qualified_name, group.frame_id}:
                return group
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "groups": [
                {
                    "id": group.frame_id,
                    "name": group.qualified_name,
                    "members": list(group.member_ids),
                }
                for group in self.groups
            ],
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _jsonable(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {
            str(key): _jsonable(item) for key, item in value.items() if not callable(item)
        }
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value
