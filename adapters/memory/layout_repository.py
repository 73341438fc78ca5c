from __future__ import annotations

import threading
from collections.abc import Callable, Mapping

from domain.models import Geometry
from domain.ports.positions import LayoutRepository, PositionMap
from domain.services.position_reconciliation import coerce_positions


class InMemoryLayoutRepository(LayoutRepository):
    def __init__(self, layouts: Mapping[str, Mapping[str, object]] | None = None) -> None:
        self._lock = threading.RLock()
        self._layouts: dict[str, PositionMap] = {
            key: coerce_positions(positions) for key, positions in (layouts or {}).items()
        }

    def load_layout(self, key: str) -> PositionMap:
        with self._lock:
            return dict(self._layouts.get(key, {}))

    def save_layout(self, key: str, positions: Mapping[str, Geometry]) -> None:
        with self._lock:
            self._layouts[key] = dict(positions)

    def update_layout(
        self, key: str, change: Callable[[PositionMap], Mapping[str, Geometry]]
    ) -> PositionMap:
        with self._lock:
            updated = dict(change(dict(self._layouts.get(key, {}))))
            self._layouts[key] = updated
            return dict(updated)

    def clear_layout(self, key: str) -> None:
        with self._lock:
            self._layouts.pop(key, None)
