from __future__ import annotations

from itertools import permutations

import pytest

from domain.diagram import NODE_CONTAINER, NODE_GROUP_FRAME, Diagram, DiagramNode
from domain.flattened import FlatGroup
from domain.models import Point, Size, TableGroup
from domain.services.group_bounds import compute_group_frames, refresh_group_frames


def _group(members: tuple[str, ...]) -> FlatGroup:
    return FlatGroup(
        qualified_name="content",
        namespace="public",
        group=TableGroup(name="content"),
        member_ids=members,
    )


def _container(node_id: str, x: float, y: float, width: float = 200, height: float = 100) -> DiagramNode:
    return DiagramNode(
        id=node_id, kind=NODE_CONTAINER, position=Point(x, y), size=Size(width, height)
    )


def test_frame_encloses_members_with_padding() -> None:
    nodes = [_container("posts", 0, 0), _container("comments", 300, 150, height=60)]

    (frame,) = compute_group_frames([_group(("posts", "comments"))], nodes, padding=20)

    assert frame.id == "group::content"
    assert frame.kind == NODE_GROUP_FRAME
    assert frame.position == Point(-20, -20)
    assert frame.size == Size(540, 250)
    assert frame.data["member_ids"] == ["posts", "comments"]


@pytest.mark.parametrize(
    "placement",
    list(permutations([(0.0, 0.0), (-250.0, 400.0), (600.0, -80.0)])),
)
def test_frame_contains_every_member(placement: tuple[tuple[float, float], ...]) -> None:
    names = ("a", "b", "c")
    nodes = [_container(name, x, y) for name, (x, y) in zip(names, placement)]

    (frame,) = compute_group_frames([_group(names)], nodes, padding=20)

    for node in nodes:
        assert frame.position.x <= node.position.x - 20
        assert frame.position.y <= node.position.y - 20
        assert frame.position.x + frame.size.width >= node.position.x + node.size.width + 20
        assert frame.position.y + frame.size.height >= node.position.y + node.size.height + 20


def test_group_without_placed_members_has_no_frame() -> None:
    assert compute_group_frames([_group(("ghost",))], [_container("posts", 0, 0)]) == []
    assert compute_group_frames([_group(())], [_container("posts", 0, 0)]) == []


def test_refresh_replaces_stale_frames_and_keeps_them_first() -> None:
    group = _group(("posts",))
    stale = DiagramNode(
        id=group.frame_id, kind=NODE_GROUP_FRAME, position=Point(0, 0), size=Size(1, 1)
    )
    diagram = Diagram(nodes=(stale, _container("posts", 100, 100)), groups=(group,))

    refreshed = refresh_group_frames(diagram, padding=10)

    assert [node.id for node in refreshed.nodes] == ["group::content", "posts"]
    assert refreshed.nodes[0].position == Point(90, 90)
    assert refreshed.nodes[0].size == Size(220, 120)
