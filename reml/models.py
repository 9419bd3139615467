# reml/models.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


def _as_list(value: Any) -> Any:
    """Normalize a one-or-many field ("id" or ["a", "b"]) into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _none_as_empty(value: Any, empty: Any) -> Any:
    return empty if value is None else value


def _as_text(value: Any) -> Any:
    return value if value is None or isinstance(value, str) else str(value)


class RemlModel(BaseModel):
    """
    Base for every REML node.

    - camelCase keys as written in REML YAML, snake_case attributes
    - unknown keys are dropped
    - frozen: the generator never mutates its input
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    # free-text fields accept any scalar YAML produces (`label: 2024`)
    @field_validator("label", "description", "name", "author", "where", "expression", "query",
                     mode="before", check_fields=False)
    @classmethod
    def _text_fields(cls, v: Any) -> Any:
        return _as_text(v)

    # `nullable: null` means "not set"
    @field_validator("nullable", "primary_key", "auto_increment", "unique", "materialized",
                     mode="before", check_fields=False)
    @classmethod
    def _null_flags(cls, v: Any, info: ValidationInfo) -> Any:
        return cls.model_fields[info.field_name].default if v is None else v


# ---- enums -------------------------------------------------------------------

class EnumValue(RemlModel):
    value: Union[int, float, str]
    label: Optional[str] = None
    description: Optional[str] = None


class EnumDef(RemlModel):
    label: Optional[str] = None
    type: Optional[str] = None  # "string" | "integer"
    description: Optional[str] = None
    values: List[EnumValue] = Field(default_factory=list)

    @field_validator("values", mode="before")
    @classmethod
    def _shorthand_values(cls, v: Any) -> Any:
        return [
            item if isinstance(item, (dict, EnumValue)) else {"value": item}
            for item in _as_list(v)
        ]

    def literal_values(self) -> List[Union[int, float, str]]:
        return [item.value for item in self.values]


# ---- columns -----------------------------------------------------------------

class ColumnValidation(RemlModel):
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    format: Optional[str] = None
    check: Optional[str] = None


class Column(RemlModel):
    type: str
    label: Optional[str] = None
    description: Optional[str] = None
    nullable: bool = True
    default: Any = None
    example: Any = None
    primary_key: bool = False
    auto_increment: bool = False
    unique: bool = False
    length: Optional[Union[int, str]] = None  # `MAX` passes through
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_ref: Optional[str] = None
    array_of: Optional[str] = None
    validation: Optional[ColumnValidation] = None

    @field_validator("type", "enum_ref", "array_of", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        # YAML happily turns `type: 1` into an int; types are open strings
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def has_default(self) -> bool:
        """True when `default` was declared, even as an explicit null."""
        return "default" in self.model_fields_set


# ---- keys, constraints, indexes ----------------------------------------------

class ForeignKeyTarget(RemlModel):
    table: str
    columns: List[str] = Field(default_factory=list)

    @field_validator("columns", mode="before")
    @classmethod
    def _one_or_many(cls, v: Any) -> Any:
        return _as_list(v)


class ForeignKey(RemlModel):
    columns: List[str] = Field(default_factory=list)
    references: ForeignKeyTarget
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    description: Optional[str] = None

    @field_validator("columns", mode="before")
    @classmethod
    def _one_or_many(cls, v: Any) -> Any:
        return _as_list(v)


class UniqueConstraint(RemlModel):
    columns: List[str] = Field(default_factory=list)
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("columns", mode="before")
    @classmethod
    def _one_or_many(cls, v: Any) -> Any:
        return _as_list(v)


class CheckConstraint(RemlModel):
    expression: str = ""
    name: Optional[str] = None
    description: Optional[str] = None


class IndexColumn(RemlModel):
    column: str
    order: Optional[str] = None  # ASC | DESC
    nulls: Optional[str] = None  # FIRST | LAST


class Index(RemlModel):
    name: Optional[str] = None
    columns: List[IndexColumn] = Field(default_factory=list)
    unique: bool = False
    type: Optional[str] = None
    where: Optional[str] = None
    description: Optional[str] = None

    @field_validator("columns", mode="before")
    @classmethod
    def _shorthand_columns(cls, v: Any) -> Any:
        return [
            {"column": item} if isinstance(item, str) else item
            for item in _as_list(v)
        ]

    def column_names(self) -> List[str]:
        return [c.column for c in self.columns]


# ---- tables and views --------------------------------------------------------

class Table(RemlModel):
    label: Optional[str] = None
    description: Optional[str] = None
    db_schema: Optional[str] = Field(default=None, alias="schema")
    columns: Dict[str, Column] = Field(default_factory=dict)
    primary_key: Optional[List[str]] = None
    foreign_keys: List[ForeignKey] = Field(default_factory=list)
    unique_constraints: List[UniqueConstraint] = Field(default_factory=list)
    check_constraints: List[CheckConstraint] = Field(default_factory=list)
    indexes: List[Index] = Field(default_factory=list)

    @field_validator("primary_key", mode="before")
    @classmethod
    def _pk_one_or_many(cls, v: Any) -> Any:
        return None if v is None else _as_list(v)

    @field_validator("columns", mode="before")
    @classmethod
    def _columns_or_empty(cls, v: Any) -> Any:
        return _none_as_empty(v, {})

    @field_validator("foreign_keys", "unique_constraints", "check_constraints", "indexes", mode="before")
    @classmethod
    def _lists_or_empty(cls, v: Any) -> Any:
        return _none_as_empty(v, [])

    def primary_key_columns(self) -> List[str]:
        """
        Table-level `primaryKey` wins when declared (even if empty);
        otherwise the columns flagged `primaryKey`, in declaration order.
        """
        if self.primary_key is not None:
            return list(self.primary_key)
        return [name for name, col in self.columns.items() if col.primary_key]


class ViewColumn(RemlModel):
    type: Optional[str] = None
    description: Optional[str] = None


class View(RemlModel):
    query: str = ""
    db_schema: Optional[str] = Field(default=None, alias="schema")
    materialized: bool = False
    description: Optional[str] = None
    columns: Dict[str, ViewColumn] = Field(default_factory=dict)

    @field_validator("columns", mode="before")
    @classmethod
    def _columns_or_empty(cls, v: Any) -> Any:
        return _none_as_empty(v, {})


# ---- root --------------------------------------------------------------------

class Metadata(RemlModel):
    name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    version: Optional[str] = None

    @field_validator("version", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        return v if v is None or isinstance(v, str) else str(v)


class RemlSchema(RemlModel):
    reml_version: Optional[str] = Field(default=None, alias="reml")
    database: Optional[str] = None
    description: Optional[str] = None
    updated_at: Any = None
    metadata: Optional[Metadata] = None
    enums: Dict[str, EnumDef] = Field(default_factory=dict)
    tables: Dict[str, Table] = Field(default_factory=dict)
    views: Dict[str, View] = Field(default_factory=dict)

    @field_validator("reml_version", "database", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        # `reml: 1.0` parses as a float
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("enums", "tables", "views", mode="before")
    @classmethod
    def _maps_or_empty(cls, v: Any) -> Any:
        return _none_as_empty(v, {})

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name if self.metadata else None

    @property
    def summary(self) -> Optional[str]:
        if self.metadata and self.metadata.description:
            return self.metadata.description
        return self.description
