from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from adapters.filesystem.layout_repository import FileSystemLayoutRepository
from app.cli import app
from domain.models import Geometry
from domain.services.position_reconciliation import layout_key
from tests.helpers.schema_fixtures import load_schema_payload

runner = CliRunner()


@pytest.fixture
def store_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "layouts" / "layouts.json"
    monkeypatch.setenv("DBML_DIAGRAM_DIAGRAM__LAYOUT_STORE_PATH", str(path))
    monkeypatch.chdir(tmp_path)
    return path


@pytest.fixture
def schema_path(tmp_path: Path) -> Path:
    path = tmp_path / "blog.json"
    path.write_text(json.dumps(load_schema_payload("blog.json")), encoding="utf-8")
    return path


def test_render_writes_diagram_json(store_path: Path, schema_path: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "blog.diagram.json"

    result = runner.invoke(app, ["render", str(schema_path), "--output", str(output)])

    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert {node["id"] for node in payload["nodes"] if node["type"] == "container"} == {
        "users",
        "posts",
        "comments",
        "audit_log",
    }
    assert len(payload["edges"]) == 3


def test_render_defaults_output_next_to_schema(store_path: Path, schema_path: Path) -> None:
    result = runner.invoke(app, ["render", str(schema_path)])

    assert result.exit_code == 0, result.output
    assert schema_path.with_suffix(".diagram.json").exists()


def test_move_group_persists_member_positions(store_path: Path, schema_path: Path) -> None:
    result = runner.invoke(
        app, ["move-group", str(schema_path), "content", "--dx", "50", "--dy", "20"]
    )

    assert result.exit_code == 0, result.output
    saved = FileSystemLayoutRepository(store_path).load_layout(layout_key(schema_path))
    assert set(saved) == {"posts", "comments"}


def test_move_group_rejects_unknown_group(store_path: Path, schema_path: Path) -> None:
    result = runner.invoke(app, ["move-group", str(schema_path), "missing", "--dx", "1"])

    assert result.exit_code == 1


def test_move_node_then_clear_layout(store_path: Path, schema_path: Path) -> None:
    repository = FileSystemLayoutRepository(store_path)
    key = layout_key(schema_path)

    moved = runner.invoke(
        app, ["move-node", str(schema_path), "users", "--x", "300", "--y", "40"]
    )
    assert moved.exit_code == 0, moved.output
    assert repository.load_layout(key) == {"users": Geometry(300, 40)}

    cleared = runner.invoke(app, ["clear-layout", str(schema_path)])
    assert cleared.exit_code == 0, cleared.output
    assert repository.load_layout(key) == {}


def test_move_node_rejects_unknown_node(store_path: Path, schema_path: Path) -> None:
    result = runner.invoke(app, ["move-node", str(schema_path), "ghost", "--x", "1", "--y", "1"])

    assert result.exit_code == 1


def test_tables_lists_schema_tables(schema_path: Path) -> None:
    result = runner.invoke(app, ["tables", str(schema_path)])

    assert result.exit_code == 0, result.output
    assert "audit_log" in result.output


def test_validate_reports_counts(schema_path: Path) -> None:
    result = runner.invoke(app, ["validate", str(schema_path)])

    assert result.exit_code == 0, result.output
    assert "4 tables, 3 relationships" in " ".join(result.output.split())


def test_invalid_schema_exits_with_error(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text(
        json.dumps({"schemas": [{"refs": [{"endpoints": [{"tableName": "a"}]}]}]}),
        encoding="utf-8",
    )

    assert runner.invoke(app, ["validate", str(broken)]).exit_code == 1
    assert runner.invoke(app, ["validate", str(tmp_path / "missing.json")]).exit_code == 1
