from __future__ import annotations

import logging

from domain.diagram import Diagram, EventCallbacks
from domain.models import Point, SchemaGraph, Size
from domain.ports.positions import LayoutRepository
from domain.services.build_diagram import SchemaToDiagramConverter
from domain.services.flatten_schema import flatten_schema
from domain.services.position_reconciliation import (
    LayoutPositionStore,
    apply_node_moved,
    apply_node_resized,
    current_node_ids,
    move_group,
    prune_obsolete,
)

logger = logging.getLogger(__name__)


class DiagramSession:
    """Keeps one schema source's diagram in sync with its saved layout."""

    def __init__(
        self,
        converter: SchemaToDiagramConverter,
        repository: LayoutRepository,
        key: str,
    ) -> None:
        self._converter = converter
        self._repository = repository
        self._store = LayoutPositionStore(repository, key)
        self._diagram: Diagram | None = None

    @property
    def key(self) -> str:
        return self._store.key

    @property
    def diagram(self) -> Diagram:
        if self._diagram is None:
            msg = "Diagram has not been built yet"
            raise RuntimeError(msg)
        return self._diagram

    def rebuild(self, schema: SchemaGraph, callbacks: EventCallbacks | None = None) -> Diagram:
        flat_schema = flatten_schema(schema)
        current_ids = current_node_ids(flat_schema)
        pruned = self._repository.update_layout(
            self.key, lambda positions: prune_obsolete(positions, current_ids)
        )
        self._diagram = self._converter.convert_flat(flat_schema, pruned, callbacks)
        logger.debug(
            "Rebuilt diagram %s: %s nodes, %s edges.",
            self.key,
            len(self._diagram.nodes),
            len(self._diagram.edges),
        )
        return self._diagram

    def node_moved(self, node_id: str, position: Point) -> Diagram:
        self._diagram = apply_node_moved(
            self.diagram, node_id, position, self._store, self._padding
        )
        return self._diagram

    def group_moved(self, group_id: str, dx: float, dy: float) -> Diagram:
        self._diagram = move_group(self.diagram, group_id, dx, dy, self._store, self._padding)
        return self._diagram

    def note_resized(self, node_id: str, size: Size) -> Diagram:
        self._diagram = apply_node_resized(
            self.diagram, node_id, size, self._store, self._converter.geometry
        )
        return self._diagram

    def reset_layout(self, schema: SchemaGraph, callbacks: EventCallbacks | None = None) -> Diagram:
        self._repository.clear_layout(self.key)
        return self.rebuild(schema, callbacks)

    @property
    def _padding(self) -> float:
        return self._converter.geometry.config.group_padding
