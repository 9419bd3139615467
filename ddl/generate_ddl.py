# ddl/generate_ddl.py
from __future__ import annotations
import logging
import re
from typing import List, Optional

from ddl.ddl_builder import build_statements, sql_comment, statement_counts
from ddl.dialects import DialectConfig, dialect_config
from reml.models import RemlSchema

logger = logging.getLogger(__name__)

RULE = "-- " + "=" * 60
GENERATOR = "reml-ddl"
DEFAULT_DIALECT = "postgresql"


def _header(schema: RemlSchema, dialect_label: str) -> List[str]:
    lines = [
        RULE,
        sql_comment(f"{schema.name or 'Schema'} DDL"),
        sql_comment(f"Database: {dialect_label}"),
    ]
    if schema.summary:
        lines.append(sql_comment(schema.summary))
    lines += [f"-- Generated by {GENERATOR}", RULE, ""]
    return lines


def _footer(schema: RemlSchema) -> List[str]:
    return [sql_comment(f"End of {schema.name or 'Schema'} DDL"), ""]


def generate_ddl(schema: RemlSchema, config: DialectConfig, *, dialect_label: Optional[str] = None) -> str:
    """
    Complete DDL script for `schema` in the dialect described by `config`.
    Pure: the same schema and config always give byte-identical output.
    """
    lines = _header(schema, dialect_label or config.name)
    lines.extend(build_statements(schema, config))
    lines.extend(_footer(schema))
    logger.info("Generated %s DDL: %s", config.name, statement_counts(schema, config))
    return "\n".join(lines)


def generate_sql(schema: RemlSchema, dialect: Optional[str] = None) -> str:
    """
    DDL for an explicit dialect, else the schema's own `database`, else PostgreSQL.
    Unknown dialect names render with the PostgreSQL configuration.
    """
    requested = dialect or schema.database or DEFAULT_DIALECT
    return generate_ddl(schema, dialect_config(requested), dialect_label=requested)


def export_filename(schema: RemlSchema) -> str:
    """Download name for the script: metadata name with unsafe characters replaced."""
    base = schema.name or "schema"
    return re.sub(r"[^a-zA-Z0-9\-_]", "_", base) + ".sql"
