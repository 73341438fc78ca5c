from __future__ import annotations

from adapters.layout.layered import LayeredLayoutEngine, LayoutConfig
from domain.models import Point, Size
from domain.ports.layout import LayoutEdge, LayoutNode


def _nodes(*ids: str, width: float = 200, height: float = 100) -> list[LayoutNode]:
    return [LayoutNode(node_id=node_id, size=Size(width, height)) for node_id in ids]


def _edges(*pairs: tuple[str, str]) -> list[LayoutEdge]:
    return [LayoutEdge(source=source, target=target) for source, target in pairs]


def test_empty_input_places_nothing() -> None:
    assert LayeredLayoutEngine().place([], []) == {}


def test_chain_is_stacked_top_to_bottom() -> None:
    positions = LayeredLayoutEngine().place(
        _nodes("a", "b", "c"), _edges(("a", "b"), ("b", "c"))
    )

    assert positions == {"a": Point(0, 0), "b": Point(0, 200), "c": Point(0, 400)}


def test_rank_is_longest_path_from_roots() -> None:
    positions = LayeredLayoutEngine().place(
        _nodes("a", "b", "c"), _edges(("a", "b"), ("b", "c"), ("a", "c"))
    )

    assert positions["a"].y < positions["b"].y < positions["c"].y


def test_narrow_ranks_are_centred_on_the_widest() -> None:
    positions = LayeredLayoutEngine(LayoutConfig(node_sep=50)).place(
        _nodes("root", "left", "right"), _edges(("root", "left"), ("root", "right"))
    )

    assert positions["left"] == Point(0, 200)
    assert positions["right"] == Point(250, 200)
    assert positions["root"] == Point(125, 0)


def test_barycenter_ordering_removes_crossing() -> None:
    positions = LayeredLayoutEngine().place(
        _nodes("a", "b", "c", "d"), _edges(("a", "d"), ("b", "c"))
    )

    assert positions["a"].x < positions["b"].x
    assert positions["d"].x < positions["c"].x


def test_cycles_are_broken_deterministically() -> None:
    engine = LayeredLayoutEngine()
    nodes = _nodes("a", "b", "c")
    edges = _edges(("a", "b"), ("b", "c"), ("c", "a"))

    first = engine.place(nodes, edges)
    second = engine.place(nodes, edges)

    assert first == second
    assert set(first) == {"a", "b", "c"}
    assert first["a"].y < first["b"].y < first["c"].y


def test_isolated_nodes_wrap_below_connected_nodes() -> None:
    engine = LayeredLayoutEngine(LayoutConfig(max_cols=2))
    positions = engine.place(
        _nodes("a", "b", "x", "y", "z"), _edges(("a", "b"))
    )

    assert positions["x"].y == positions["y"].y
    assert positions["x"].y > positions["b"].y
    assert positions["z"].y > positions["x"].y
    assert positions["x"].x < positions["y"].x


def test_unknown_and_self_edges_are_ignored() -> None:
    positions = LayeredLayoutEngine().place(
        _nodes("a", "b"), _edges(("a", "a"), ("a", "ghost"), ("a", "b"))
    )

    assert set(positions) == {"a", "b"}
    assert positions["a"].y < positions["b"].y


def test_taller_nodes_are_vertically_centred_in_rank() -> None:
    nodes = [
        LayoutNode("root", Size(200, 100)),
        LayoutNode("tall", Size(200, 300)),
        LayoutNode("short", Size(200, 100)),
    ]
    positions = LayeredLayoutEngine().place(
        nodes, _edges(("root", "tall"), ("root", "short"))
    )

    assert positions["tall"].y == 200
    assert positions["short"].y == 300
