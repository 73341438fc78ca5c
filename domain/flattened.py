from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from domain.models import Enumeration, Relationship, StickyNote, Table, TableGroup


@dataclass(frozen=True)
class FlatTable:
    qualified_name: str
    namespace: str
    table: Table


@dataclass(frozen=True)
class FlatEndpoint:
    table: str
    columns: tuple[str, ...]
    relation: str


@dataclass(frozen=True)
class FlatRelationship:
    index: int
    endpoints: tuple[FlatEndpoint, FlatEndpoint]
    relationship: Relationship


@dataclass(frozen=True)
class FlatGroup:
    qualified_name: str
    namespace: str
    group: TableGroup
    member_ids: tuple[str, ...]

    @property
    def frame_id(self) -> str:
        return f"group::{self.qualified_name}"


@dataclass(frozen=True)
class FlatNote:
    qualified_name: str
    namespace: str
    note: StickyNote

    @property
    def node_id(self) -> str:
        return f"note::{self.qualified_name}"


@dataclass(frozen=True)
class FlatSchema:
    tables: tuple[FlatTable, ...] = ()
    relationships: tuple[FlatRelationship, ...] = ()
    groups: tuple[FlatGroup, ...] = ()
    notes: tuple[FlatNote, ...] = ()
    enums: Mapping[str, Enumeration] = field(default_factory=dict)
    multi_namespace: bool = False

    def table_ids(self) -> set[str]:
        return {table.qualified_name for table in self.tables}

    def table_by_id(self) -> dict[str, FlatTable]:
        return {table.qualified_name: table for table in self.tables}


@dataclass(frozen=True)
class NormalizedRelationship:
    index: int
    source_table: str
    source_columns: tuple[str, ...]
    source_relation: str
    target_table: str
    target_columns: tuple[str, ...]
    target_relation: str
    relationship: Relationship

    @property
    def label(self) -> str:
        return f"{self.source_relation}:{self.target_relation}"


@dataclass(frozen=True)
class ColumnHandle:
    exposes_outgoing: bool = False
    exposes_incoming: bool = False
    cardinality: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.exposes_outgoing or self.exposes_incoming
