from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from domain.flattened import FlatEndpoint, FlatRelationship, NormalizedRelationship
from domain.models import RELATION_MANY, RELATION_ONE

logger = logging.getLogger(__name__)


def orient_endpoints(
    first: FlatEndpoint, second: FlatEndpoint
) -> tuple[FlatEndpoint, FlatEndpoint]:
    """Return (source, target): the "many" side references the "one" side.

    One-to-one, many-to-many and unknown markers keep declaration order with the
    second endpoint as the source.
    """
    if first.relation == RELATION_MANY and second.relation == RELATION_ONE:
        return first, second
    return second, first


def pair_columns(
    source_columns: Sequence[str], target_columns: Sequence[str]
) -> list[tuple[str, str]]:
    if not source_columns or not target_columns:
        return []
    count = max(len(source_columns), len(target_columns))
    pairs: list[tuple[str, str]] = []
    for idx in range(count):
        source = source_columns[idx] if idx < len(source_columns) else source_columns[0]
        target = target_columns[idx] if idx < len(target_columns) else target_columns[0]
        pairs.append((source, target))
    return pairs


def normalize_relationship(relationship: FlatRelationship) -> NormalizedRelationship:
    source, target = orient_endpoints(*relationship.endpoints)
    return NormalizedRelationship(
        index=relationship.index,
        source_table=source.table,
        source_columns=source.columns,
        source_relation=source.relation,
        target_table=target.table,
        target_columns=target.columns,
        target_relation=target.relation,
        relationship=relationship.relationship,
    )


def normalize_relationships(
    relationships: Iterable[FlatRelationship], known_tables: set[str]
) -> list[NormalizedRelationship]:
    normalized: list[NormalizedRelationship] = []
    for relationship in relationships:
        item = normalize_relationship(relationship)
        missing = [
            table for table in (item.source_table, item.target_table) if table not in known_tables
        ]
        if missing:
            logger.warning(
                "Skipping relationship #%s: unknown table(s) %s.",
                item.index,
                ", ".join(missing),
            )
            continue
        if not item.source_columns or not item.target_columns:
            logger.warning("Skipping relationship #%s: no columns on one side.", item.index)
            continue
        if len(item.source_columns) != len(item.target_columns):
            logger.warning(
                "Relationship #%s pairs %s source column(s) with %s target column(s).",
                item.index,
                len(item.source_columns),
                len(item.target_columns),
            )
        normalized.append(item)
    return normalized


def relationship_description(item: NormalizedRelationship, source_column: str, target_column: str) -> str:
    symbol = _direction_symbol(item.source_relation, item.target_relation)
    return f"{item.source_table}.{source_column} {symbol} {item.target_table}.{target_column}"


def _direction_symbol(source_relation: str, target_relation: str) -> str:
    if source_relation == RELATION_ONE and target_relation == RELATION_MANY:
        return "<"
    if source_relation == RELATION_MANY and target_relation == RELATION_ONE:
        return ">"
    if source_relation == RELATION_MANY and target_relation == RELATION_MANY:
        return "<>"
    return "-"
