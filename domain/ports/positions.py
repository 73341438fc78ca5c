from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol

from domain.models import Geometry

PositionMap = dict[str, Geometry]


class LayoutRepository(Protocol):
    def load_layout(self, key: str) -> PositionMap: ...

    def save_layout(self, key: str, positions: Mapping[str, Geometry]) -> None: ...

    def update_layout(
        self, key: str, change: Callable[[PositionMap], Mapping[str, Geometry]]
    ) -> PositionMap: ...

    def clear_layout(self, key: str) -> None: ...


class PositionStore(Protocol):
    def get(self, node_id: str) -> Geometry | None: ...

    def set(self, node_id: str, geometry: Geometry) -> None: ...

    def update(
        self, node_id: str, change: Callable[[Geometry | None], Geometry]
    ) -> Geometry: ...

    def snapshot(self) -> PositionMap: ...

    def replace(self, positions: Mapping[str, Geometry]) -> None: ...
