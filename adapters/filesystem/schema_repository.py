from __future__ import annotations

from pathlib import Path

from adapters.filesystem.json_utils import load_json
from domain.models import SchemaGraph


class FileSystemSchemaRepository:
    """Reads schema graphs exported as JSON by the schema parser."""

    def load(self, path: Path) -> SchemaGraph:
        return SchemaGraph.model_validate(load_json(path))

    def load_all_with_paths(self, directory: Path) -> list[tuple[Path, SchemaGraph]]:
        return [(path, self.load(path)) for path in sorted(directory.glob("*.json"))]
