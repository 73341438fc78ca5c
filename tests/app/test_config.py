from __future__ import annotations

from pathlib import Path

import pytest

from app.config import AppSettings, DiagramSettings, LayoutSettings, load_settings
from app.diagram_wiring import build_converter, build_diagram
from tests.helpers.schema_fixtures import users_posts_schema


def test_defaults_without_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    settings = load_settings()

    assert settings.diagram.layout_store_path == Path("data/layouts/layouts.json")
    assert settings.diagram.layout.node_sep == 50
    assert settings.diagram.geometry.min_table_width == 200
    assert settings.diagram.log_level == "WARNING"


def test_yaml_config_is_loaded(tmp_path: Path) -> None:
    config = tmp_path / "diagram.yaml"
    config.write_text(
        "diagram:\n"
        "  layout_store_path: store/layouts.json\n"
        "  log_level: debug\n"
        "  layout:\n"
        "    node_sep: 80\n"
        "    max_cols: 2\n"
        "  geometry:\n"
        "    group_padding: 32\n",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.diagram.layout_store_path == Path("store/layouts.json")
    assert settings.diagram.log_level == "DEBUG"
    assert settings.diagram.layout.to_layout_config().node_sep == 80
    assert settings.diagram.layout.to_layout_config().max_cols == 2
    assert settings.diagram.geometry.to_geometry_config().group_padding == 32


def test_config_path_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "custom.yaml"
    config.write_text("diagram:\n  layout:\n    rank_sep: 150\n", encoding="utf-8")
    monkeypatch.setenv("DBML_DIAGRAM_CONFIG_PATH", str(config))

    assert load_settings().diagram.layout.rank_sep == 150


def test_environment_overrides_yaml(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "diagram.yaml"
    config.write_text("diagram:\n  layout:\n    node_sep: 80\n", encoding="utf-8")
    monkeypatch.setenv("DBML_DIAGRAM_DIAGRAM__LAYOUT__NODE_SEP", "120")

    assert load_settings(config).diagram.layout.node_sep == 120


def test_missing_config_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")


def test_yaml_source_does_not_leak_between_loads(tmp_path: Path) -> None:
    config = tmp_path / "diagram.yaml"
    config.write_text("diagram:\n  layout:\n    node_sep: 80\n", encoding="utf-8")

    load_settings(config)

    assert AppSettings().diagram.layout.node_sep == 50


def test_wiring_applies_fallback_offset(tmp_path: Path) -> None:
    settings = AppSettings(
        diagram=DiagramSettings(
            layout_store_path=tmp_path / "layouts.json",
            layout=LayoutSettings(fallback_offset=25),
        )
    )

    converter = build_converter(settings)

    assert converter.fallback_offset == 25


def test_build_diagram_uses_settings(app_settings) -> None:
    diagram = build_diagram(users_posts_schema(), {"users": {"x": 3, "y": 4}}, settings=app_settings)

    assert diagram.node("users").position.x == 3
    assert len(diagram.edges) == 1
