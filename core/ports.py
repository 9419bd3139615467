# core/ports.py
from __future__ import annotations
from typing import Protocol

from reml.models import RemlSchema


class SchemaLoader(Protocol):
    """Produces a validated schema or raises reml.loader.InvalidSchemaError."""
    def load(self) -> RemlSchema: ...


class DdlRenderer(Protocol):
    """Renders a schema as a DDL script for one dialect."""
    def render(self, schema: RemlSchema, dialect: str | None = None) -> str: ...
