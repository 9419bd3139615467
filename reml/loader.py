# reml/loader.py
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

import yaml
from jsonschema.validators import Draft7Validator
from pydantic import ValidationError as ModelValidationError

from reml.models import RemlSchema

logger = logging.getLogger(__name__)

SUPPORTED_DATABASES = ("postgresql", "mysql", "mariadb", "sqlite", "sqlserver", "oracle")

# Only what generation cannot do without.
# Everything else is optional and unknown keys are ignored.
REML_STRUCTURE = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["reml", "database", "tables"],
    "properties": {
        "reml": {"not": {"enum": ["", None]}},
        "database": {"not": {"enum": ["", None]}},
        "tables": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {
                "type": "object",
                "required": ["columns"],
                "properties": {
                    "columns": {
                        "type": "object",
                        "minProperties": 1,
                        "additionalProperties": {
                            "type": "object",
                            "required": ["type"],
                            "properties": {"type": {"not": {"enum": ["", None]}}},
                        },
                    },
                },
            },
        },
    },
}

_validator = Draft7Validator(REML_STRUCTURE)


@dataclass
class ValidationIssue:
    path: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [vars(e) for e in self.errors],
            "warnings": [vars(w) for w in self.warnings],
        }


class ParseResult(NamedTuple):
    data: Any
    error: Optional[str]


class LoadResult(NamedTuple):
    schema: Optional[RemlSchema]
    validation: ValidationResult
    parse_error: Optional[str]


class InvalidSchemaError(Exception):
    def __init__(self, message: str, issues: Optional[List[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


# ---- parsing -----------------------------------------------------------------

class RemlYamlLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 booleans: `yes`, `no`, `on` and `off` stay strings."""


RemlYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:bool"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
RemlYamlLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|false)$", re.IGNORECASE),
    list("tTfF"),
)


def parse_reml(text: str) -> ParseResult:
    """Parse REML YAML. Syntax errors are returned, not raised."""
    try:
        return ParseResult(yaml.load(text, Loader=RemlYamlLoader), None)
    except yaml.YAMLError as e:
        return ParseResult(None, str(e))


# ---- structural validation ---------------------------------------------------

def _dotted(parts) -> str:
    return ".".join(str(p) for p in parts)


def _describe(path: List[Any], missing: Optional[str] = None) -> ValidationIssue:
    """Turn a failing location into the message a schema author expects."""
    where = list(path) + ([missing] if missing else [])
    dotted = _dotted(where)

    if where == ["reml"]:
        return ValidationIssue(dotted, "REML version is required")
    if where == ["database"]:
        return ValidationIssue(dotted, "Database type is required")
    if where == ["tables"]:
        return ValidationIssue(dotted, "At least one table is required")
    if len(where) == 3 and where[0] == "tables" and where[2] == "columns":
        return ValidationIssue(dotted, f'Table "{where[1]}" must have at least one column')
    if len(where) == 5 and where[0] == "tables" and where[4] == "type":
        return ValidationIssue(dotted, f'Column "{where[3]}" must have a type')
    if not where:
        return ValidationIssue("", "Schema root must be a mapping")
    return ValidationIssue(dotted, f"Invalid value at {dotted}")


def _structure_issues(data: Any) -> List[ValidationIssue]:
    issues: Dict[str, ValidationIssue] = {}
    for err in _validator.iter_errors(data):
        path = list(err.absolute_path)
        if err.validator == "required":
            for prop in err.validator_value:
                if isinstance(err.instance, dict) and prop not in err.instance:
                    issue = _describe(path, prop)
                    issues.setdefault(issue.path, issue)
            continue
        # `tables: []` reads as "no tables", same for columns
        if err.validator in ("minProperties", "not") or (
            path and path[-1] in ("tables", "columns") and err.validator == "type"
        ):
            issue = _describe(path)
        else:
            issue = _describe(path)
            issue = ValidationIssue(issue.path, f"{issue.message}: {err.message}")
        issues.setdefault(issue.path, issue)
    return sorted(issues.values(), key=lambda i: i.path)


def _model_issues(err: ModelValidationError) -> List[ValidationIssue]:
    return [
        ValidationIssue(_dotted(e["loc"]), e["msg"])
        for e in err.errors()
    ]


def validate_reml(data: Any) -> ValidationResult:
    """
    Lenient validation:
      - required: reml, database, tables (at least one), columns (at least one), columns.*.type
      - unknown fields are ignored
      - an unsupported database is a warning, not an error
    """
    result = ValidationResult(errors=_structure_issues(data))

    if isinstance(data, dict):
        database = data.get("database")
        if database and str(database) not in SUPPORTED_DATABASES:
            result.warnings.append(ValidationIssue(
                "database",
                f'Database "{database}" may not be fully supported. '
                "Some features may not render correctly.",
                severity="warning",
            ))
    return result


def build_schema(data: Any, validation: ValidationResult) -> Optional[RemlSchema]:
    if not validation.valid:
        return None
    try:
        return RemlSchema.model_validate(data)
    except ModelValidationError as e:
        validation.errors.extend(_model_issues(e))
        return None


def parse_and_validate_reml(text: str) -> LoadResult:
    data, parse_error = parse_reml(text)
    if parse_error is not None:
        return LoadResult(None, ValidationResult(), parse_error)

    validation = validate_reml(data)
    schema = build_schema(data, validation)
    return LoadResult(schema, validation, None)


# ---- raising entry points ----------------------------------------------------

def loads_schema(text: str, source: str = "<string>") -> RemlSchema:
    """Parse + validate REML text, raising InvalidSchemaError on any error."""
    result = parse_and_validate_reml(text)
    if result.parse_error is not None:
        raise InvalidSchemaError(f"Failed to parse {source}: {result.parse_error}")

    for w in result.validation.warnings:
        logger.warning("%s: %s (%s)", source, w.message, w.path)

    if result.schema is None:
        details = "; ".join(
            f"{e.path}: {e.message}" if e.path else e.message
            for e in result.validation.errors
        )
        raise InvalidSchemaError(
            f"Schema validation failed for {source}: {details}",
            result.validation.errors,
        )

    logger.info(
        "Loaded %s: %d tables, %d enums, %d views",
        source, len(result.schema.tables), len(result.schema.enums), len(result.schema.views),
    )
    return result.schema


def read_reml(path: str | Path) -> str:
    """Text of a REML file; missing, unreadable or non-UTF-8 files raise InvalidSchemaError."""
    schema_path = Path(path)
    if not schema_path.exists():
        raise InvalidSchemaError(f"Schema file not found at {path}")
    try:
        return schema_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidSchemaError(f"Failed to read {path}: {e}") from e


def load_schema(path: str | Path) -> RemlSchema:
    return loads_schema(read_reml(path), source=str(path))
