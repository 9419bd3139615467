# ddl/ddl_builder.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

from ddl.dialects import CommentStrategy, DialectConfig, EnumStrategy, IndexMethod
from ddl.graph import order_tables
from reml.models import Column, EnumDef, ForeignKey, Index, RemlSchema, Table, View

logger = logging.getLogger(__name__)

INDENT = "  "
ENUM_FALLBACK_LENGTH = 50


def escape_literal(value: str) -> str:
    return value.replace("'", "''")


def _literal(value: Any) -> str:
    if isinstance(value, str):
        return f"'{escape_literal(value)}'"
    return str(value)


def sql_comment(text: str) -> str:
    """`-- ` in front of every line, so multi-line labels stay inside the comment."""
    lines = str(text).splitlines() or [""]
    return "\n".join(f"-- {line}".rstrip() for line in lines)


def _describe(label: Optional[str], description: Optional[str]) -> Optional[str]:
    """`label - description`, or whichever of the two exists."""
    if label:
        return f"{label} - {description}" if description else label
    return description or None


def _quoted_list(names: List[str], config: DialectConfig) -> str:
    return ", ".join(config.quote_identifier(n) for n in names)


# ---- types and defaults ------------------------------------------------------

def resolve_type(col: Column, config: DialectConfig, enums: Mapping[str, EnumDef]) -> str:
    """
    Physical type for a column:
      1) enum reference -> dialect enum strategy
      2) array column   -> native array or the dialect's JSON type
      3) plain type     -> type map, then (length) or (precision[,scale])
    """
    enum_def = enums.get(col.enum_ref) if col.enum_ref else None
    if enum_def is not None:
        if config.enum_strategy is EnumStrategy.CREATE_NAMED_TYPE:
            return config.quote_identifier(col.enum_ref)
        if config.enum_strategy is EnumStrategy.INLINE_ENUM:
            return f"ENUM({', '.join(_literal(v) for v in enum_def.literal_values())})"
        if enum_def.type == "integer":
            return config.lookup_type("integer")
        return f"{config.lookup_type('varchar')}({ENUM_FALLBACK_LENGTH})"

    if col.array_of:
        if config.supports_arrays:
            return f"{config.lookup_type(col.array_of)}[]"
        return config.lookup_type("json")

    base = config.lookup_type(col.type)
    if col.length:
        return f"{base}({col.length})"
    if col.precision is not None:
        if col.scale is not None:
            return f"{base}({col.precision},{col.scale})"
        return f"{base}({col.precision})"
    return base


def format_default(value: Any, config: DialectConfig) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)

    text = str(value)
    mapped = config.default_function_map.get(text.lower())
    if mapped:
        return mapped
    # already an expression, e.g. nextval('seq')
    if "(" in text and ")" in text:
        return text
    return f"'{escape_literal(text)}'"


# ---- statements --------------------------------------------------------------

def enum_ddl(name: str, enum_def: EnumDef, config: DialectConfig) -> Optional[str]:
    if config.enum_strategy is not EnumStrategy.CREATE_NAMED_TYPE:
        return None
    values = ", ".join(_literal(v) for v in enum_def.literal_values())
    heading = sql_comment(f"{name}: {enum_def.label}" if enum_def.label else f"Enum: {name}")
    return f"{heading}\nCREATE TYPE {config.quote_identifier(name)} AS ENUM ({values});\n"


def column_ddl(
    name: str,
    col: Column,
    config: DialectConfig,
    enums: Mapping[str, EnumDef],
    *,
    inline_pk: bool = False,
) -> str:
    parts = [INDENT + config.quote_identifier(name)]

    sql_type = resolve_type(col, config, enums)
    suffix = None
    if col.auto_increment:
        ai = config.auto_increment(sql_type)
        sql_type = ai.type or sql_type
        suffix = ai.suffix
    parts.append(sql_type)
    if suffix:
        parts.append(suffix)

    if not col.nullable or inline_pk:
        parts.append("NOT NULL")
    if col.has_default:
        parts.append(f"DEFAULT {format_default(col.default, config)}")
    if inline_pk:
        parts.append("PRIMARY KEY")
    if col.unique and not inline_pk:
        parts.append("UNIQUE")
    return " ".join(parts)


def foreign_key_clause(fk: ForeignKey, config: DialectConfig) -> str:
    clause = (
        f"{INDENT}FOREIGN KEY ({_quoted_list(fk.columns, config)}) "
        f"REFERENCES {config.quote_identifier(fk.references.table)} "
        f"({_quoted_list(fk.references.columns, config)})"
    )
    if fk.on_delete:
        clause += f" ON DELETE {fk.on_delete}"
    if fk.on_update:
        clause += f" ON UPDATE {fk.on_update}"
    return clause


def table_ddl(name: str, table: Table, schema: RemlSchema, config: DialectConfig) -> str:
    lines: List[str] = []
    if table.label:
        lines.append(sql_comment(f"{name}: {table.label}"))
    if table.description and config.comment_strategy is CommentStrategy.INLINE_SQL_COMMENT:
        lines.append(sql_comment(table.description))

    if_not_exists = "IF NOT EXISTS " if config.supports_if_not_exists else ""
    qualified = config.qualify(name, table.db_schema)
    lines.append(f"CREATE TABLE {if_not_exists}{qualified} (")

    pk_cols = table.primary_key_columns()
    single_pk = pk_cols[0] if len(pk_cols) == 1 else None

    body: List[str] = [
        column_ddl(col_name, col, config, schema.enums, inline_pk=col_name == single_pk)
        for col_name, col in table.columns.items()
    ]
    if len(pk_cols) > 1:
        body.append(f"{INDENT}PRIMARY KEY ({_quoted_list(pk_cols, config)})")
    for uc in table.unique_constraints:
        constraint = f"CONSTRAINT {config.quote_identifier(uc.name)} " if uc.name else ""
        body.append(f"{INDENT}{constraint}UNIQUE ({_quoted_list(uc.columns, config)})")
    for cc in table.check_constraints:
        constraint = f"CONSTRAINT {config.quote_identifier(cc.name)} " if cc.name else ""
        body.append(f"{INDENT}{constraint}CHECK ({cc.expression})")
    body.extend(foreign_key_clause(fk, config) for fk in table.foreign_keys)

    lines.append(",\n".join(body))
    lines.append(");\n")

    if config.comment_strategy is CommentStrategy.ALTER_COMMENT and table.description:
        lines.append(f"ALTER TABLE {qualified} COMMENT = '{escape_literal(table.description)}';\n")

    return "\n".join(lines)


def index_name(table_name: str, index: Index) -> str:
    return index.name or "_".join(["idx", table_name, *index.column_names()])


def index_ddl(table_name: str, table: Table, index: Index, config: DialectConfig) -> str:
    unique = "UNIQUE " if index.unique else ""

    cols: List[str] = []
    for ic in index.columns:
        col = config.quote_identifier(ic.column)
        if ic.order:
            col += f" {ic.order}"
        if ic.nulls:
            col += f" NULLS {ic.nulls}"
        cols.append(col)

    using = f"USING {index.type}" if index.type else ""
    ddl = (
        f"CREATE {unique}INDEX {config.quote_identifier(index_name(table_name, index))} "
        f"ON {config.qualify(table_name, table.db_schema)}"
    )
    if using and config.index_method is IndexMethod.BEFORE_COLUMNS:
        ddl += f" {using}"
    ddl += f" ({', '.join(cols)})"
    if using and config.index_method is IndexMethod.AFTER_COLUMNS:
        ddl += f" {using}"
    if index.where:
        ddl += f" WHERE {index.where}"
    return ddl + ";\n"


def view_ddl(name: str, view: View, config: DialectConfig) -> str:
    materialized = "MATERIALIZED " if view.materialized else ""
    query = view.query.rstrip().rstrip(";").rstrip()
    return f"CREATE {materialized}VIEW {config.qualify(name, view.db_schema)} AS\n{query};\n"


def comment_statements(schema: RemlSchema, config: DialectConfig) -> Optional[str]:
    lines: List[str] = []
    for table_name, table in schema.tables.items():
        qualified = config.qualify(table_name, table.db_schema)
        table_comment = _describe(table.label, table.description)
        if table_comment:
            lines.append(f"COMMENT ON TABLE {qualified} IS '{escape_literal(table_comment)}';")
        for col_name, col in table.columns.items():
            col_comment = _describe(col.label, col.description)
            if col_comment:
                lines.append(
                    f"COMMENT ON COLUMN {qualified}.{config.quote_identifier(col_name)} "
                    f"IS '{escape_literal(col_comment)}';"
                )
    if not lines:
        return None
    return "\n-- Comments\n" + "\n".join(lines) + "\n"


# ---- whole schema ------------------------------------------------------------

def build_statements(schema: RemlSchema, config: DialectConfig) -> List[str]:
    """
    Every statement block for `schema`, in emission order:
    enums, tables (FK dependency order), indexes, views, comments.
    """
    blocks: List[str] = []

    for name, enum_def in schema.enums.items():
        ddl = enum_ddl(name, enum_def, config)
        if ddl:
            blocks.append(ddl)

    ordered = order_tables(schema)
    for name in ordered:
        logger.debug("Emitting table %s (%s)", name, config.name)
        blocks.append(table_ddl(name, schema.tables[name], schema, config))

    for name in ordered:
        table = schema.tables[name]
        blocks.extend(index_ddl(name, table, index, config) for index in table.indexes)

    blocks.extend(view_ddl(name, view, config) for name, view in schema.views.items())

    if config.comment_strategy is CommentStrategy.COMMENT_ON:
        comments = comment_statements(schema, config)
        if comments:
            blocks.append(comments)

    return blocks


def statement_counts(schema: RemlSchema, config: DialectConfig) -> Dict[str, int]:
    return {
        "enums": len(schema.enums) if config.enum_strategy is EnumStrategy.CREATE_NAMED_TYPE else 0,
        "tables": len(schema.tables),
        "indexes": sum(len(t.indexes) for t in schema.tables.values()),
        "views": len(schema.views),
    }
