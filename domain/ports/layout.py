from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from domain.models import Point, Size


@dataclass(frozen=True)
class LayoutNode:
    node_id: str
    size: Size


@dataclass(frozen=True)
class LayoutEdge:
    source: str
    target: str


class LayoutEngine(Protocol):
    def place(
        self, nodes: Sequence[LayoutNode], edges: Sequence[LayoutEdge]
    ) -> Mapping[str, Point]:
        ...
