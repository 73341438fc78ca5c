from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from itertools import combinations

from domain.models import Point, Size
from domain.ports.layout import LayoutEdge, LayoutEngine, LayoutNode


@dataclass(frozen=True)
class LayoutConfig:
    node_sep: float = 50.0
    rank_sep: float = 100.0
    order_passes: int = 4
    max_cols: int = 4


class LayeredLayoutEngine(LayoutEngine):
    """Top-to-bottom layered layout.

    Connected nodes are ranked by longest path from the roots, ordered inside each
    rank with barycenter sweeps and stacked rank by rank. Nodes without edges are
    wrapped into rows of ``max_cols`` below the layered part.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def place(
        self, nodes: Sequence[LayoutNode], edges: Sequence[LayoutEdge]
    ) -> dict[str, Point]:
        order_index: dict[str, int] = {}
        sizes: dict[str, Size] = {}
        for node in nodes:
            if node.node_id in order_index:
                continue
            order_index[node.node_id] = len(order_index)
            sizes[node.node_id] = node.size
        if not order_index:
            return {}

        children, parents = self._adjacency(order_index, edges)
        connected = [
            node_id for node_id in order_index if children[node_id] or parents[node_id]
        ]
        connected_ids = set(connected)
        isolated = [node_id for node_id in order_index if node_id not in connected_ids]

        ranks = self._assign_ranks(connected, order_index, children)
        layers = self._order_layers(ranks, order_index, children, parents)
        cols = max(self.config.max_cols, 1)
        for start in range(0, len(isolated), cols):
            layers.append(isolated[start : start + cols])
        return self._assign_coordinates(layers, sizes)

    def _adjacency(
        self, order_index: Mapping[str, int], edges: Sequence[LayoutEdge]
    ) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
        children: dict[str, list[str]] = {node_id: [] for node_id in order_index}
        parents: dict[str, list[str]] = {node_id: [] for node_id in order_index}
        for edge in edges:
            if edge.source not in order_index or edge.target not in order_index:
                continue
            if edge.source == edge.target:
                continue
            if edge.target in children[edge.source]:
                continue
            children[edge.source].append(edge.target)
            parents[edge.target].append(edge.source)
        for targets in children.values():
            targets.sort(key=order_index.__getitem__)
        for sources in parents.values():
            sources.sort(key=order_index.__getitem__)
        return children, parents

    def _assign_ranks(
        self,
        connected: Sequence[str],
        order_index: Mapping[str, int],
        children: Mapping[str, list[str]],
    ) -> dict[str, int]:
        remaining = set(connected)
        indegree: dict[str, int] = {node_id: 0 for node_id in connected}
        for node_id in connected:
            for child in children[node_id]:
                indegree[child] += 1

        ranks: dict[str, int] = {}

        def sort_key(node_id: str) -> tuple[int, int]:
            return (ranks.get(node_id, 0), order_index[node_id])

        queue = sorted((n for n in connected if indegree[n] == 0), key=sort_key)
        while remaining:
            if not queue:
                # Every remaining node sits on a cycle; release the earliest declared one.
                queue = [min(remaining, key=order_index.__getitem__)]
            node_id = queue.pop(0)
            if node_id not in remaining:
                continue
            remaining.discard(node_id)
            level = ranks.setdefault(node_id, 0)
            for child in children[node_id]:
                if child not in remaining:
                    continue
                ranks[child] = max(ranks.get(child, 0), level + 1)
                indegree[child] -= 1
                if indegree[child] == 0:
                    queue.append(child)
                    queue.sort(key=sort_key)
        return ranks

    def _order_layers(
        self,
        ranks: Mapping[str, int],
        order_index: Mapping[str, int],
        children: Mapping[str, list[str]],
        parents: Mapping[str, list[str]],
    ) -> list[list[str]]:
        if not ranks:
            return []
        max_rank = max(ranks.values())
        layers: list[list[str]] = [[] for _ in range(max_rank + 1)]
        for node_id in sorted(ranks, key=order_index.__getitem__):
            layers[ranks[node_id]].append(node_id)

        best = [list(layer) for layer in layers]
        best_crossings = self._count_crossings(best, children)
        for _ in range(self.config.order_passes):
            if best_crossings == 0:
                break
            for rank in range(1, len(layers)):
                layers[rank] = self._barycenter_sort(layers[rank], layers[rank - 1], parents)
            for rank in range(len(layers) - 2, -1, -1):
                layers[rank] = self._barycenter_sort(layers[rank], layers[rank + 1], children)
            crossings = self._count_crossings(layers, children)
            if crossings < best_crossings:
                best = [list(layer) for layer in layers]
                best_crossings = crossings
        return best

    def _barycenter_sort(
        self,
        layer: list[str],
        reference: list[str],
        neighbors: Mapping[str, list[str]],
    ) -> list[str]:
        reference_pos = {node_id: idx for idx, node_id in enumerate(reference)}

        def barycenter(item: tuple[int, str]) -> tuple[float, int]:
            idx, node_id = item
            anchors = [reference_pos[n] for n in neighbors[node_id] if n in reference_pos]
            if not anchors:
                return (float(idx), idx)
            return (sum(anchors) / len(anchors), idx)

        return [node_id for _, node_id in sorted(enumerate(layer), key=barycenter)]

    def _count_crossings(
        self, layers: Sequence[Sequence[str]], children: Mapping[str, list[str]]
    ) -> int:
        total = 0
        for upper, lower in zip(layers, layers[1:]):
            lower_pos = {node_id: idx for idx, node_id in enumerate(lower)}
            segments = [
                (upper_idx, lower_pos[child])
                for upper_idx, node_id in enumerate(upper)
                for child in children[node_id]
                if child in lower_pos
            ]
            for (u1, v1), (u2, v2) in combinations(segments, 2):
                if (u1 - u2) * (v1 - v2) < 0:
                    total += 1
        return total

    def _assign_coordinates(
        self, layers: Sequence[Sequence[str]], sizes: Mapping[str, Size]
    ) -> dict[str, Point]:
        sep = self.config.node_sep
        layer_widths = [
            sum(sizes[node_id].width for node_id in layer) + sep * max(len(layer) - 1, 0)
            for layer in layers
        ]
        total_width = max(layer_widths, default=0.0)

        positions: dict[str, Point] = {}
        y = 0.0
        for layer, layer_width in zip(layers, layer_widths):
            if not layer:
                continue
            layer_height = max(sizes[node_id].height for node_id in layer)
            x = (total_width - layer_width) / 2
            for node_id in layer:
                size = sizes[node_id]
                positions[node_id] = Point(x, y + (layer_height - size.height) / 2)
                x += size.width + sep
            y += layer_height + self.config.rank_sep
        return positions
