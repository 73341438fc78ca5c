from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from adapters.layout.layered import LayeredLayoutEngine
from app.config import AppSettings, DiagramSettings
from domain.models import SchemaGraph
from domain.services.build_diagram import SchemaToDiagramConverter
from tests.helpers.schema_fixtures import load_schema_fixture


def _clear_diagram_env() -> None:
    for key in list(os.environ):
        if key.startswith("DBML_DIAGRAM_"):
            os.environ.pop(key, None)


_clear_diagram_env()


@pytest.fixture(autouse=True)
def clear_diagram_env() -> Generator[None, None, None]:
    _clear_diagram_env()
    yield
    _clear_diagram_env()


@pytest.fixture
def diagram_settings(tmp_path: Path) -> DiagramSettings:
    return DiagramSettings(layout_store_path=tmp_path / "layouts" / "layouts.json")


@pytest.fixture
def app_settings(diagram_settings: DiagramSettings) -> AppSettings:
    return AppSettings(diagram=diagram_settings)


@pytest.fixture
def converter() -> SchemaToDiagramConverter:
    return SchemaToDiagramConverter(LayeredLayoutEngine())


@pytest.fixture
def blog_schema() -> SchemaGraph:
    return load_schema_fixture("blog.json")
