# ddl/cli.py
import logging
from pathlib import Path
from typing import Optional

import typer

from adapters.loaders import FileSchemaLoader
from core.ports import SchemaLoader
from core.settings import get_settings
from ddl.dialects import REGISTRY, canonical_dialect
from ddl.generate_ddl import export_filename, generate_sql
from reml.loader import InvalidSchemaError, parse_and_validate_reml, read_reml
from reml.models import RemlSchema

app = typer.Typer(help="Generate SQL DDL from REML schema files.")
logger = logging.getLogger("ddl.cli")


# ---------------------------
# Core utilities
# ---------------------------
def _schema_path(path: Optional[Path]) -> Path:
    return path or Path(get_settings().SCHEMA_PATH)


def _require_valid_schema(loader: SchemaLoader) -> RemlSchema:
    try:
        return loader.load()
    except InvalidSchemaError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)


def _resolve_dialect(requested: Optional[str], schema: RemlSchema, strict: bool) -> str:
    name = requested or schema.database or get_settings().DEFAULT_DIALECT
    if canonical_dialect(name) is None:
        if strict:
            typer.echo(f"❌ Unknown dialect {name!r}. Use one of: {' | '.join(REGISTRY)}", err=True)
            raise typer.Exit(code=2)
        typer.echo(f"⚠️  Unknown dialect {name!r}, generating PostgreSQL DDL.", err=True)
    return name


# ---------------------------
# Commands
# ---------------------------
@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Logging level (defaults to LOG_LEVEL)."),
):
    level = (log_level or get_settings().LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO))


@app.command(help="Validate a REML file (errors and warnings).")
def validate(path: Optional[Path] = typer.Argument(None, help="REML YAML file")):
    path = _schema_path(path)
    try:
        text = read_reml(path)
    except InvalidSchemaError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    result = parse_and_validate_reml(text)
    if result.parse_error is not None:
        typer.echo(f"❌ YAML parse error: {result.parse_error}", err=True)
        raise typer.Exit(code=1)

    for w in result.validation.warnings:
        typer.echo(f"⚠️  {w.path}: {w.message}")
    if not result.validation.valid:
        for e in result.validation.errors:
            typer.echo(f"❌ {e.path}: {e.message}" if e.path else f"❌ {e.message}")
        raise typer.Exit(code=1)
    typer.echo(f"✅ {path} is valid.")


@app.command(help="Export CREATE DDL for a REML file.")
def export_ddl(
    path: Optional[Path] = typer.Argument(None, help="REML YAML file"),
    dialect: Optional[str] = typer.Option(
        None, help="postgresql | mysql | mariadb | sqlite | sqlserver | oracle (defaults to the schema's database)"
    ),
    out: Optional[str] = typer.Option(None, help="Output .sql file path, '-' for stdout"),
    strict_dialect: bool = typer.Option(False, help="Fail instead of falling back on an unknown dialect."),
):
    path = _schema_path(path)
    logger.debug("Loading schema from %s", path)
    schema = _require_valid_schema(FileSchemaLoader(path))
    name = _resolve_dialect(dialect, schema, strict_dialect)
    sql = generate_sql(schema, name)

    if out == "-":
        typer.echo(sql, nl=False)
        return

    target = Path(out) if out else Path(export_filename(schema))
    target.write_text(sql, encoding="utf-8")
    typer.echo(f"✅ DDL written to {target} (dialect={name})")


@app.command(help="List supported dialects.")
def dialects():
    for config in REGISTRY.values():
        info = config.describe()
        typer.echo(
            f"{info['name']:<10} {info['label']:<11} enums={info['enum_strategy']:<17} "
            f"comments={info['comment_strategy']}"
        )


if __name__ == "__main__":
    app()
