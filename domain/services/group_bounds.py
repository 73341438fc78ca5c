from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence

from domain.diagram import NODE_CONTAINER, NODE_GROUP_FRAME, Diagram, DiagramNode
from domain.flattened import FlatGroup
from domain.models import Point, Size

DEFAULT_GROUP_PADDING = 20.0


def group_frame(group: FlatGroup, members: Sequence[DiagramNode], padding: float) -> DiagramNode:
    min_x = min(node.position.x for node in members)
    min_y = min(node.position.y for node in members)
    max_x = max(node.position.x + node.size.width for node in members)
    max_y = max(node.position.y + node.size.height for node in members)
    return DiagramNode(
        id=group.frame_id,
        kind=NODE_GROUP_FRAME,
        position=Point(min_x - padding, min_y - padding),
        size=Size(max_x - min_x + padding * 2, max_y - min_y + padding * 2),
        data={
            "group": group.group,
            "qualified_name": group.qualified_name,
            "member_ids": [node.id for node in members],
        },
    )


def compute_group_frames(
    groups: Iterable[FlatGroup],
    nodes: Iterable[DiagramNode],
    padding: float = DEFAULT_GROUP_PADDING,
) -> list[DiagramNode]:
    containers = {node.id: node for node in nodes if node.kind == NODE_CONTAINER}
    frames: list[DiagramNode] = []
    for group in groups:
        members = [containers[member] for member in group.member_ids if member in containers]
        if not members:
            continue
        frames.append(group_frame(group, members, padding))
    return frames


def refresh_group_frames(diagram: Diagram, padding: float = DEFAULT_GROUP_PADDING) -> Diagram:
    others = [node for node in diagram.nodes if node.kind != NODE_GROUP_FRAME]
    frames = compute_group_frames(diagram.groups, others, padding)
    return dataclasses.replace(diagram, nodes=(*frames, *others))
