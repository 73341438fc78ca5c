from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from domain.flattened import FlatEndpoint, FlatGroup, FlatNote, FlatRelationship, FlatSchema, FlatTable
from domain.models import DEFAULT_NAMESPACE, Enumeration, SchemaGraph

logger = logging.getLogger(__name__)


class TableNameResolver:
    """Maps (namespace, table) references onto qualified names.

    References without a namespace prefer the default namespace, then the first
    namespace that declares the table.
    """

    def __init__(self, declared: Sequence[tuple[str, str]], namespaces: Sequence[str]) -> None:
        self._namespaces = list(dict.fromkeys(namespaces))
        self._multi_namespace = len(self._namespaces) > 1
        self._declared = set(declared)
        self._first_namespace: dict[str, str] = {}
        for namespace, name in declared:
            self._first_namespace.setdefault(name, namespace)

    @property
    def multi_namespace(self) -> bool:
        return self._multi_namespace

    def qualify(self, namespace: str, name: str) -> str:
        if not self._multi_namespace and namespace in self._namespaces:
            return name
        return f"{namespace}.{name}"

    def resolve(self, table_name: str, schema_name: str | None = None) -> str:
        if schema_name:
            namespace = schema_name
        elif (DEFAULT_NAMESPACE, table_name) in self._declared:
            namespace = DEFAULT_NAMESPACE
        else:
            namespace = self._first_namespace.get(table_name) or (
                self._namespaces[0] if self._namespaces else DEFAULT_NAMESPACE
            )
        return self.qualify(namespace, table_name)


def flatten_schema(schema: SchemaGraph) -> FlatSchema:
    namespaces = [namespace.name for namespace in schema.namespaces]
    declared = [
        (namespace.name, table.name)
        for namespace in schema.namespaces
        for table in namespace.tables
    ]
    resolver = TableNameResolver(declared, namespaces)

    tables: list[FlatTable] = []
    seen_tables: set[str] = set()
    for namespace in schema.namespaces:
        for table in namespace.tables:
            qualified_name = resolver.qualify(namespace.name, table.name)
            if qualified_name in seen_tables:
                logger.warning("Duplicate table %s ignored.", qualified_name)
                continue
            seen_tables.add(qualified_name)
            tables.append(
                FlatTable(qualified_name=qualified_name, namespace=namespace.name, table=table)
            )

    relationships: list[FlatRelationship] = []
    for namespace in schema.namespaces:
        for relationship in namespace.relationships:
            first, second = relationship.endpoints
            endpoints = tuple(
                FlatEndpoint(
                    table=resolver.resolve(endpoint.table_name, endpoint.schema_name),
                    columns=tuple(endpoint.field_names),
                    relation=endpoint.relation,
                )
                for endpoint in (first, second)
            )
            relationships.append(
                FlatRelationship(
                    index=len(relationships),
                    endpoints=(endpoints[0], endpoints[1]),
                    relationship=relationship,
                )
            )

    groups: list[FlatGroup] = []
    for namespace in schema.namespaces:
        for group in namespace.groups:
            qualified_name = resolver.qualify(namespace.name, group.name)
            members: list[str] = []
            for member in group.tables:
                member_id = resolver.resolve(member.table_name, member.schema_name)
                if member_id not in seen_tables:
                    logger.warning(
                        "Group %s references unknown table %s.", qualified_name, member_id
                    )
                    continue
                if member_id not in members:
                    members.append(member_id)
            groups.append(
                FlatGroup(
                    qualified_name=qualified_name,
                    namespace=namespace.name,
                    group=group,
                    member_ids=tuple(members),
                )
            )

    notes = [
        FlatNote(
            qualified_name=resolver.qualify(namespace.name, note.name),
            namespace=namespace.name,
            note=note,
        )
        for namespace in schema.namespaces
        for note in namespace.notes
    ]

    enums: dict[str, Enumeration] = {}
    for namespace in schema.namespaces:
        for enum in namespace.enums:
            enums.setdefault(resolver.qualify(namespace.name, enum.name), enum)

    return FlatSchema(
        tables=tuple(tables),
        relationships=tuple(relationships),
        groups=tuple(groups),
        notes=tuple(notes),
        enums=enums,
        multi_namespace=resolver.multi_namespace,
    )


def resolve_enum(
    flat_schema: FlatSchema, namespace: str, type_name: str, type_schema: str | None = None
) -> Enumeration | None:
    candidates = [f"{type_schema or namespace}.{type_name}", type_name]
    if not flat_schema.multi_namespace:
        candidates.reverse()
    for candidate in candidates:
        enum = flat_schema.enums.get(candidate)
        if enum is not None:
            return enum
    return None


@dataclass(frozen=True)
class NavigationEntry:
    kind: str  # "header" or "table"
    label: str
    value: str
    namespace: str


def table_navigation(flat_schema: FlatSchema) -> list[NavigationEntry]:
    entries: list[NavigationEntry] = []
    current_namespace: str | None = None
    for table in flat_schema.tables:
        if flat_schema.multi_namespace and table.namespace != current_namespace:
            current_namespace = table.namespace
            entries.append(
                NavigationEntry(
                    kind="header",
                    label=table.namespace,
                    value=f"schema-{table.namespace}",
                    namespace=table.namespace,
                )
            )
        entries.append(
            NavigationEntry(
                kind="table",
                label=table.qualified_name,
                value=table.qualified_name,
                namespace=table.namespace,
            )
        )
    return entries
