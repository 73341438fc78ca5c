from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import orjson
from filelock import FileLock

from adapters.filesystem.json_utils import load_json, write_json_atomic
from domain.models import Geometry
from domain.ports.positions import LayoutRepository, PositionMap
from domain.services.position_reconciliation import coerce_positions

logger = logging.getLogger(__name__)


class FileSystemLayoutRepository(LayoutRepository):
    """All saved layouts in one JSON document: ``{key: {positions, timestamp}}``."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = FileLock(str(path.with_suffix(f"{path.suffix}.lock")))

    def load_layout(self, key: str) -> PositionMap:
        entry = self._read_layouts().get(key)
        if not isinstance(entry, dict):
            return {}
        positions = entry.get("positions")
        return coerce_positions(positions if isinstance(positions, dict) else None)

    def save_layout(self, key: str, positions: Mapping[str, Geometry]) -> None:
        with self._lock:
            layouts = self._read_layouts()
            layouts[key] = self._entry(positions)
            write_json_atomic(self.path, layouts)

    def update_layout(
        self, key: str, change: Callable[[PositionMap], Mapping[str, Geometry]]
    ) -> PositionMap:
        with self._lock:
            updated = dict(change(self.load_layout(key)))
            layouts = self._read_layouts()
            layouts[key] = self._entry(updated)
            write_json_atomic(self.path, layouts)
        return updated

    def clear_layout(self, key: str) -> None:
        with self._lock:
            layouts = self._read_layouts()
            if layouts.pop(key, None) is not None:
                write_json_atomic(self.path, layouts)

    def keys(self) -> list[str]:
        return sorted(self._read_layouts())

    def _read_layouts(self) -> dict[str, Any]:
        try:
            return load_json(self.path)
        except orjson.JSONDecodeError:
            logger.warning("Layout store %s is not valid JSON; starting empty.", self.path)
            return {}

    def _entry(self, positions: Mapping[str, Geometry]) -> dict[str, Any]:
        return {
            "positions": {node_id: geometry.to_dict() for node_id, geometry in positions.items()},
            "timestamp": datetime.now(UTC).isoformat(),
        }
