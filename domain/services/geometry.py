from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from domain.flattened import ColumnHandle, FlatNote, FlatTable
from domain.models import Column, Geometry, Point, Size, StickyNote

PRIMARY_KEY_ICON = "🔑"
UNIQUE_ICON = "⚡"
NOT_NULL_ICON = "❗"


@dataclass(frozen=True)
class GeometryConfig:
    header_height: float = 42.0
    note_height: float = 30.0
    row_height: float = 30.0
    row_gap: float = 2.0
    row_inset: float = 2.0
    table_padding: float = 8.0
    min_table_width: float = 200.0
    title_char_width: float = 9.0
    title_padding: float = 24.0
    icon_width: float = 12.0
    icon_gap: float = 6.0
    name_char_width: float = 7.5
    link_icon_width: float = 16.0
    type_gap: float = 8.0
    type_char_width: float = 6.5
    row_padding: float = 16.0
    note_base_size: Size = Size(200, 120)
    note_max_size: Size = Size(300, 200)
    note_min_size: Size = Size(120, 80)
    note_title_char_width: float = 8.0
    note_title_padding: float = 40.0
    note_chars_per_line: int = 40
    note_line_height: float = 16.0
    note_title_height: float = 36.0
    group_padding: float = 20.0


def column_icon(column: Column) -> str:
    if column.pk:
        return PRIMARY_KEY_ICON
    if column.unique:
        return UNIQUE_ICON
    if column.not_null:
        return NOT_NULL_ICON
    return ""


class GeometryEstimator:
    def __init__(self, config: GeometryConfig | None = None) -> None:
        self.config = config or GeometryConfig()

    def header_width(self, title: str) -> float:
        return len(title) * self.config.title_char_width + self.config.title_padding

    def row_content_width(self, column: Column, handle: ColumnHandle | None = None) -> float:
        cfg = self.config
        width = cfg.row_padding + len(column.name) * cfg.name_char_width
        if column_icon(column):
            width += cfg.icon_width + cfg.icon_gap
        if handle is not None and handle.is_connected:
            width += cfg.link_icon_width
        width += cfg.type_gap + len(column.type_name) * cfg.type_char_width
        return width + cfg.row_inset * 2

    def table_size(
        self,
        table: FlatTable,
        handles: Mapping[str, ColumnHandle] | None = None,
    ) -> Size:
        handles = handles or {}
        widths = [self.config.min_table_width, self.header_width(table.qualified_name)]
        widths.extend(
            self.row_content_width(column, handles.get(column.name))
            for column in table.table.columns
        )
        return Size(math.ceil(max(widths)), self.table_height(table))

    def table_height(self, table: FlatTable) -> float:
        cfg = self.config
        note_band = cfg.note_height if table.table.note else 0.0
        return (
            cfg.header_height
            + note_band
            + len(table.table.columns) * cfg.row_height
            + cfg.table_padding * 2
        )

    def row_offset(self, table: FlatTable, index: int) -> Point:
        cfg = self.config
        note_band = cfg.note_height if table.table.note else 0.0
        return Point(
            cfg.row_inset,
            cfg.header_height + note_band + cfg.table_padding + index * cfg.row_height,
        )

    def row_size(self, table_width: float) -> Size:
        return Size(table_width - self.config.row_inset * 2, self.config.row_height - self.config.row_gap)

    def note_min_size(self, note: StickyNote) -> Size:
        cfg = self.config
        lines = min(self._content_lines(note.content), 2)
        width = len(note.name) * cfg.note_title_char_width + cfg.row_padding
        height = cfg.note_title_height + lines * cfg.note_line_height + cfg.row_padding
        return Size(
            _clamp(width, cfg.note_min_size.width, cfg.note_max_size.width),
            _clamp(height, cfg.note_min_size.height, cfg.note_max_size.height),
        )

    def note_size(self, note: FlatNote, override: Geometry | None = None) -> Size:
        persisted = override.size() if override is not None else None
        if persisted is not None:
            return self.clamp_note_size(note.note, persisted)
        cfg = self.config
        minimum = self.note_min_size(note.note)
        title_width = min(
            len(note.note.name) * cfg.note_title_char_width + cfg.note_title_padding,
            cfg.note_max_size.width,
        )
        lines = self._content_lines(note.note.content)
        height = min(
            cfg.note_base_size.height + lines * cfg.note_line_height, cfg.note_max_size.height
        )
        return Size(
            max(cfg.note_base_size.width, title_width, minimum.width),
            max(height, minimum.height),
        )

    def clamp_note_size(self, note: StickyNote, size: Size) -> Size:
        minimum = self.note_min_size(note)
        return Size(max(size.width, minimum.width), max(size.height, minimum.height))

    def _content_lines(self, content: str) -> int:
        if not content:
            return 1
        return math.ceil(len(content) / self.config.note_chars_per_line)


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))
