from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import reduce

from domain.flattened import ColumnHandle, NormalizedRelationship

HandleMap = Mapping[str, Mapping[str, ColumnHandle]]


def _mark(
    handles: HandleMap,
    table: str,
    column: str,
    *,
    outgoing: bool,
    cardinality: str,
) -> HandleMap:
    table_handles = handles.get(table, {})
    current = table_handles.get(column, ColumnHandle())
    updated = ColumnHandle(
        exposes_outgoing=current.exposes_outgoing or outgoing,
        exposes_incoming=current.exposes_incoming or not outgoing,
        cardinality=current.cardinality or cardinality,
    )
    return {**handles, table: {**table_handles, column: updated}}


def _apply_relationship(handles: HandleMap, item: NormalizedRelationship) -> HandleMap:
    for column in item.source_columns:
        handles = _mark(
            handles, item.source_table, column, outgoing=True, cardinality=item.source_relation
        )
    for column in item.target_columns:
        handles = _mark(
            handles, item.target_table, column, outgoing=False, cardinality=item.target_relation
        )
    return handles


def analyze_column_handles(relationships: Iterable[NormalizedRelationship]) -> HandleMap:
    return reduce(_apply_relationship, relationships, {})
