from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.layered import LayoutConfig
from domain.models import Size
from domain.services.geometry import GeometryConfig

DEFAULT_CONFIG_PATH = Path("config/diagram.yaml")
CONFIG_PATH_ENV = "DBML_DIAGRAM_CONFIG_PATH"


class NoteSizeSettings(BaseModel):
    width: float = Field(default=200.0, gt=0)
    height: float = Field(default=120.0, gt=0)

    def to_size(self) -> Size:
        return Size(self.width, self.height)


class GeometrySettings(BaseModel):
    header_height: float = 42.0
    row_height: float = 30.0
    table_padding: float = 8.0
    min_table_width: float = Field(default=200.0, gt=0)
    group_padding: float = Field(default=20.0, ge=0)
    note_base_size: NoteSizeSettings = NoteSizeSettings()
    note_max_size: NoteSizeSettings = NoteSizeSettings(width=300.0, height=200.0)

    def to_geometry_config(self) -> GeometryConfig:
        return GeometryConfig(
            header_height=self.header_height,
            row_height=self.row_height,
            table_padding=self.table_padding,
            min_table_width=self.min_table_width,
            group_padding=self.group_padding,
            note_base_size=self.note_base_size.to_size(),
            note_max_size=self.note_max_size.to_size(),
        )


class LayoutSettings(BaseModel):
    node_sep: float = Field(default=50.0, ge=0)
    rank_sep: float = Field(default=100.0, ge=0)
    order_passes: int = Field(default=4, ge=0)
    max_cols: int = Field(default=4, ge=1)
    fallback_offset: float = Field(default=40.0, ge=0)

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            node_sep=self.node_sep,
            rank_sep=self.rank_sep,
            order_passes=self.order_passes,
            max_cols=self.max_cols,
        )


class DiagramSettings(BaseModel):
    layout_store_path: Path = Path("data/layouts/layouts.json")
    geometry: GeometrySettings = GeometrySettings()
    layout: LayoutSettings = LayoutSettings()
    log_level: str = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        return str(value).upper() if value else "WARNING"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DBML_DIAGRAM_", env_nested_delimiter="__")

    diagram: DiagramSettings = DiagramSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv(CONFIG_PATH_ENV)
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
