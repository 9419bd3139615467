# ddl/dialects.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)


class EnumStrategy(str, Enum):
    CREATE_NAMED_TYPE = "create_named_type"
    INLINE_ENUM = "inline_enum"
    CHECK_CONSTRAINT = "check_constraint"


class CommentStrategy(str, Enum):
    COMMENT_ON = "comment_on"
    ALTER_COMMENT = "alter_comment"
    INLINE_SQL_COMMENT = "inline_sql_comment"


class IndexMethod(str, Enum):
    """Where `USING <method>` goes in CREATE INDEX, if anywhere."""
    BEFORE_COLUMNS = "before_columns"
    AFTER_COLUMNS = "after_columns"
    NONE = "none"


class AutoIncrement(NamedTuple):
    type: Optional[str] = None    # replaces the column type (SERIAL)
    suffix: Optional[str] = None  # trails the column type (AUTO_INCREMENT)


# Logical REML type -> physical type, shared by every dialect unless overridden.
BASE_TYPE_MAP: Dict[str, str] = {
    "integer": "INTEGER",
    "bigint": "BIGINT",
    "smallint": "SMALLINT",
    "tinyint": "TINYINT",
    "decimal": "DECIMAL",
    "numeric": "NUMERIC",
    "float": "FLOAT",
    "double": "DOUBLE PRECISION",
    "real": "REAL",
    "char": "CHAR",
    "varchar": "VARCHAR",
    "text": "TEXT",
    "nchar": "NCHAR",
    "nvarchar": "NVARCHAR",
    "ntext": "NTEXT",
    "date": "DATE",
    "time": "TIME",
    "datetime": "DATETIME",
    "timestamp": "TIMESTAMP",
    "timestamptz": "TIMESTAMPTZ",
    "binary": "BINARY",
    "varbinary": "VARBINARY",
    "blob": "BLOB",
    "boolean": "BOOLEAN",
    "bit": "BIT",
    "uuid": "UUID",
    "json": "JSON",
    "jsonb": "JSONB",
    "array": "TEXT",
}


@dataclass(frozen=True)
class DialectConfig:
    name: str
    quote_chars: Tuple[str, str]
    auto_increment: Callable[[str], AutoIncrement]
    enum_strategy: EnumStrategy
    type_map: Mapping[str, str]
    default_function_map: Mapping[str, str]
    supports_if_not_exists: bool
    comment_strategy: CommentStrategy
    supports_arrays: bool = False
    index_method: IndexMethod = IndexMethod.NONE
    label: str = field(default="", compare=False)

    def quote_identifier(self, name: str) -> str:
        opening, closing = self.quote_chars
        return f"{opening}{name.replace(closing, closing * 2)}{closing}"

    def qualify(self, name: str, db_schema: Optional[str] = None) -> str:
        if db_schema:
            return f"{self.quote_identifier(db_schema)}.{self.quote_identifier(name)}"
        return self.quote_identifier(name)

    def lookup_type(self, logical: str) -> str:
        """Map a logical type; anything unknown passes through uppercased."""
        return self.type_map.get(logical.lower()) or logical.upper()

    def describe(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "label": self.label,
            "enum_strategy": self.enum_strategy.value,
            "comment_strategy": self.comment_strategy.value,
            "supports_if_not_exists": self.supports_if_not_exists,
            "supports_arrays": self.supports_arrays,
        }


def _types(**overrides: str) -> Mapping[str, str]:
    return MappingProxyType({**BASE_TYPE_MAP, **overrides})


def _serial(resolved_type: str) -> AutoIncrement:
    return AutoIncrement(type="BIGSERIAL" if resolved_type == "BIGINT" else "SERIAL")


def _suffix(keyword: str) -> Callable[[str], AutoIncrement]:
    def render(resolved_type: str) -> AutoIncrement:
        return AutoIncrement(suffix=keyword)
    return render


_MYSQL_TYPES = _types(
    boolean="TINYINT(1)",
    double="DOUBLE",
    timestamptz="TIMESTAMP",
    uuid="CHAR(36)",
    jsonb="JSON",
    blob="LONGBLOB",
    ntext="LONGTEXT",
)

_MYSQL_DEFAULTS = MappingProxyType({
    "now()": "CURRENT_TIMESTAMP",
    "current_timestamp": "CURRENT_TIMESTAMP",
    "gen_random_uuid()": "(UUID())",
    "uuid()": "(UUID())",
})

POSTGRESQL = DialectConfig(
    name="postgresql",
    label="PostgreSQL",
    quote_chars=('"', '"'),
    auto_increment=_serial,
    enum_strategy=EnumStrategy.CREATE_NAMED_TYPE,
    type_map=_types(),
    default_function_map=MappingProxyType({
        "now()": "NOW()",
        "current_timestamp": "CURRENT_TIMESTAMP",
        "gen_random_uuid()": "gen_random_uuid()",
        "uuid()": "gen_random_uuid()",
    }),
    supports_if_not_exists=True,
    comment_strategy=CommentStrategy.COMMENT_ON,
    supports_arrays=True,
    index_method=IndexMethod.BEFORE_COLUMNS,
)

MYSQL = DialectConfig(
    name="mysql",
    label="MySQL",
    quote_chars=("`", "`"),
    auto_increment=_suffix("AUTO_INCREMENT"),
    enum_strategy=EnumStrategy.INLINE_ENUM,
    type_map=_MYSQL_TYPES,
    default_function_map=_MYSQL_DEFAULTS,
    supports_if_not_exists=True,
    comment_strategy=CommentStrategy.ALTER_COMMENT,
    index_method=IndexMethod.AFTER_COLUMNS,
)

MARIADB = DialectConfig(
    name="mariadb",
    label="MariaDB",
    quote_chars=("`", "`"),
    auto_increment=_suffix("AUTO_INCREMENT"),
    enum_strategy=EnumStrategy.INLINE_ENUM,
    type_map=_MYSQL_TYPES,
    default_function_map=_MYSQL_DEFAULTS,
    supports_if_not_exists=True,
    comment_strategy=CommentStrategy.ALTER_COMMENT,
    index_method=IndexMethod.AFTER_COLUMNS,
)

SQLITE = DialectConfig(
    name="sqlite",
    label="SQLite",
    quote_chars=('"', '"'),
    auto_increment=_suffix("AUTOINCREMENT"),
    enum_strategy=EnumStrategy.CHECK_CONSTRAINT,
    type_map=_types(
        boolean="INTEGER",
        uuid="TEXT",
        json="TEXT",
        jsonb="TEXT",
        timestamptz="TEXT",
        timestamp="TEXT",
        datetime="TEXT",
        decimal="REAL",
        numeric="REAL",
        double="REAL",
        float="REAL",
    ),
    # SQLite only accepts expression defaults wrapped in parentheses
    default_function_map=MappingProxyType({
        "now()": "(datetime('now'))",
        "current_timestamp": "CURRENT_TIMESTAMP",
        "gen_random_uuid()": "(hex(randomblob(16)))",
        "uuid()": "(hex(randomblob(16)))",
    }),
    supports_if_not_exists=True,
    comment_strategy=CommentStrategy.INLINE_SQL_COMMENT,
)

SQLSERVER = DialectConfig(
    name="sqlserver",
    label="SQL Server",
    quote_chars=("[", "]"),
    auto_increment=_suffix("IDENTITY(1,1)"),
    enum_strategy=EnumStrategy.CHECK_CONSTRAINT,
    type_map=_types(
        boolean="BIT",
        double="FLOAT",
        text="NVARCHAR(MAX)",
        timestamptz="DATETIMEOFFSET",
        timestamp="DATETIME2",
        datetime="DATETIME2",
        uuid="UNIQUEIDENTIFIER",
        json="NVARCHAR(MAX)",
        jsonb="NVARCHAR(MAX)",
        blob="VARBINARY(MAX)",
        ntext="NVARCHAR(MAX)",
    ),
    default_function_map=MappingProxyType({
        "now()": "GETDATE()",
        "current_timestamp": "GETDATE()",
        "gen_random_uuid()": "NEWID()",
        "uuid()": "NEWID()",
    }),
    supports_if_not_exists=False,
    comment_strategy=CommentStrategy.INLINE_SQL_COMMENT,
)

ORACLE = DialectConfig(
    name="oracle",
    label="Oracle",
    quote_chars=('"', '"'),
    auto_increment=_suffix("GENERATED ALWAYS AS IDENTITY"),
    enum_strategy=EnumStrategy.CHECK_CONSTRAINT,
    type_map=_types(
        integer="NUMBER(10)",
        bigint="NUMBER(19)",
        smallint="NUMBER(5)",
        tinyint="NUMBER(3)",
        boolean="NUMBER(1)",
        double="BINARY_DOUBLE",
        float="BINARY_FLOAT",
        real="BINARY_FLOAT",
        text="CLOB",
        varchar="VARCHAR2",
        nvarchar="NVARCHAR2",
        ntext="NCLOB",
        timestamp="TIMESTAMP",
        timestamptz="TIMESTAMP WITH TIME ZONE",
        datetime="TIMESTAMP",
        uuid="RAW(16)",
        json="CLOB",
        jsonb="CLOB",
    ),
    default_function_map=MappingProxyType({
        "now()": "SYSDATE",
        "current_timestamp": "CURRENT_TIMESTAMP",
        "gen_random_uuid()": "SYS_GUID()",
        "uuid()": "SYS_GUID()",
    }),
    supports_if_not_exists=False,
    comment_strategy=CommentStrategy.COMMENT_ON,
)

REGISTRY: Mapping[str, DialectConfig] = MappingProxyType({
    d.name: d for d in (POSTGRESQL, MYSQL, MARIADB, SQLITE, SQLSERVER, ORACLE)
})

DIALECTS: Tuple[str, ...] = tuple(REGISTRY)

ALIASES: Mapping[str, str] = MappingProxyType({
    "postgres": "postgresql",
    "pg": "postgresql",
    "pgsql": "postgresql",
    "sqlite3": "sqlite",
    "mssql": "sqlserver",
    "tsql": "sqlserver",
})


def canonical_dialect(name: Optional[str]) -> Optional[str]:
    """Registry key for `name` (aliases resolved), or None if unknown."""
    key = (name or "").strip().lower()
    key = ALIASES.get(key, key)
    return key if key in REGISTRY else None


def dialect_config(name: Optional[str]) -> DialectConfig:
    """
    Configuration for `name`.
    Unknown dialects fall back to PostgreSQL, the most standard profile.
    """
    key = canonical_dialect(name)
    if key is None:
        logger.warning("Unknown dialect %r, falling back to postgresql", name)
        return POSTGRESQL
    return REGISTRY[key]
