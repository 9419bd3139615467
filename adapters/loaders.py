# adapters/loaders.py
from __future__ import annotations
from pathlib import Path

from ddl.generate_ddl import generate_sql
from reml.loader import load_schema, loads_schema
from reml.models import RemlSchema


class FileSchemaLoader:
    """Loads a REML YAML file from disk."""
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> RemlSchema:
        return load_schema(self.path)


class TextSchemaLoader:
    """Loads REML YAML already in memory (request bodies, stdin)."""
    def __init__(self, text: str, source: str = "<request>"):
        self.text = text
        self.source = source

    def load(self) -> RemlSchema:
        return loads_schema(self.text, source=self.source)


class SqlRenderer:
    def render(self, schema: RemlSchema, dialect: str | None = None) -> str:
        return generate_sql(schema, dialect)
