from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

RELATION_ONE = "1"
RELATION_MANY = "*"
DEFAULT_NAMESPACE = "public"

_RELATION_ALIASES = {
    "1": RELATION_ONE,
    "one": RELATION_ONE,
    "*": RELATION_MANY,
    "many": RELATION_MANY,
    "n": RELATION_MANY,
    "m": RELATION_MANY,
}


def normalize_relation(value: object) -> str:
    raw = str(value or "").strip()
    return _RELATION_ALIASES.get(raw.lower(), raw)


def _note_text(value: object) -> object:
    # DBML exports notes either as plain strings or as {"value": ...} objects.
    if isinstance(value, dict):
        return value.get("value")
    return value


class SchemaModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ColumnType(SchemaModel):
    type_name: str = Field(default="unknown", validation_alias=AliasChoices("type_name", "typeName"))
    schema_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("schema_name", "schemaName")
    )


class ColumnDefault(SchemaModel):
    value: Union[str, int, float, bool, None] = None
    type: Optional[str] = None


class Column(SchemaModel):
    name: str = Field(..., min_length=1)
    type: ColumnType = Field(default_factory=ColumnType)
    pk: bool = False
    unique: bool = False
    not_null: bool = Field(default=False, validation_alias=AliasChoices("not_null", "notNull"))
    increment: bool = False
    default: Optional[ColumnDefault] = Field(
        default=None, validation_alias=AliasChoices("default", "dbdefault")
    )
    note: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, value: object) -> object:
        if isinstance(value, str):
            return {"type_name": value}
        return value

    @field_validator("default", mode="before")
    @classmethod
    def coerce_default(cls, value: object) -> object:
        if value is None or isinstance(value, dict):
            return value
        return {"value": value}

    @field_validator("note", mode="before")
    @classmethod
    def coerce_note(cls, value: object) -> object:
        return _note_text(value)

    @property
    def type_name(self) -> str:
        return self.type.type_name or "unknown"

    def constraints(self) -> List[str]:
        labels: List[str] = []
        if self.pk:
            labels.append("Primary Key")
        if self.unique:
            labels.append("Unique")
        if self.not_null:
            labels.append("Not Null")
        if self.increment:
            labels.append("Auto Increment")
        return labels


class Table(SchemaModel):
    name: str = Field(..., min_length=1)
    schema_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("schema_name", "schemaName")
    )
    columns: List[Column] = Field(
        default_factory=list, validation_alias=AliasChoices("columns", "fields")
    )
    note: Optional[str] = None
    header_color: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("header_color", "headerColor")
    )

    @field_validator("note", mode="before")
    @classmethod
    def coerce_note(cls, value: object) -> object:
        return _note_text(value)

    def column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None


class Endpoint(SchemaModel):
    table_name: str = Field(..., validation_alias=AliasChoices("table_name", "tableName"))
    schema_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("schema_name", "schemaName")
    )
    field_names: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("field_names", "fieldNames", "fieldName"),
    )
    relation: str = RELATION_ONE

    @field_validator("field_names", mode="before")
    @classmethod
    def coerce_field_names(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("relation", mode="before")
    @classmethod
    def coerce_relation(cls, value: object) -> str:
        return normalize_relation(value)


class Relationship(SchemaModel):
    name: Optional[str] = None
    endpoints: List[Endpoint]
    on_delete: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("on_delete", "onDelete")
    )
    on_update: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("on_update", "onUpdate")
    )

    @field_validator("endpoints", mode="after")
    @classmethod
    def ensure_two_endpoints(cls, endpoints: List[Endpoint]) -> List[Endpoint]:
        if len(endpoints) != 2:
            msg = f"A relationship needs exactly two endpoints, got {len(endpoints)}"
            raise ValueError(msg)
        return endpoints


class GroupMember(SchemaModel):
    table_name: str = Field(..., validation_alias=AliasChoices("table_name", "tableName"))
    schema_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("schema_name", "schemaName")
    )


class TableGroup(SchemaModel):
    name: str = Field(..., min_length=1)
    tables: List[GroupMember] = Field(default_factory=list)
    note: Optional[str] = None

    @field_validator("tables", mode="before")
    @classmethod
    def coerce_members(cls, value: object) -> object:
        if isinstance(value, list):
            return [{"table_name": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("note", mode="before")
    @classmethod
    def coerce_note(cls, value: object) -> object:
        return _note_text(value)


class EnumValue(SchemaModel):
    name: str
    note: Optional[str] = None

    @field_validator("note", mode="before")
    @classmethod
    def coerce_note(cls, value: object) -> object:
        return _note_text(value)


class Enumeration(SchemaModel):
    name: str = Field(..., min_length=1)
    values: List[EnumValue] = Field(default_factory=list)

    @field_validator("values", mode="before")
    @classmethod
    def coerce_values(cls, value: object) -> object:
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value


class StickyNote(SchemaModel):
    name: str = Field(..., min_length=1)
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, value: object) -> object:
        return _note_text(value) or ""


class Namespace(SchemaModel):
    name: str = DEFAULT_NAMESPACE
    tables: List[Table] = Field(default_factory=list)
    relationships: List[Relationship] = Field(
        default_factory=list, validation_alias=AliasChoices("relationships", "refs")
    )
    groups: List[TableGroup] = Field(
        default_factory=list, validation_alias=AliasChoices("groups", "tableGroups")
    )
    enums: List[Enumeration] = Field(default_factory=list)
    notes: List[StickyNote] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, value: object) -> str:
        return str(value or "").strip() or DEFAULT_NAMESPACE


class SchemaGraph(SchemaModel):
    namespaces: List[Namespace] = Field(
        default_factory=list, validation_alias=AliasChoices("namespaces", "schemas")
    )

    @property
    def has_multiple_namespaces(self) -> bool:
        return len(self.namespaces) > 1


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Geometry:
    x: float
    y: float
    width: float | None = None
    height: float | None = None

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)

    def size(self) -> Size | None:
        if self.width is None or self.height is None:
            return None
        return Size(self.width, self.height)

    def translated(self, dx: float, dy: float) -> Geometry:
        return Geometry(self.x + dx, self.y + dy, self.width, self.height)

    def to_dict(self) -> dict[str, float]:
        payload = {"x": self.x, "y": self.y}
        if self.width is not None:
            payload["width"] = self.width
        if self.height is not None:
            payload["height"] = self.height
        return payload

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Geometry:
        width = raw.get("width")
        height = raw.get("height")
        return cls(
            x=float(raw.get("x", 0.0)),
            y=float(raw.get("y", 0.0)),
            width=float(width) if width is not None else None,
            height=float(height) if height is not None else None,
        )
