# server/routes.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from adapters.loaders import SqlRenderer, TextSchemaLoader
from core.ports import DdlRenderer
from core.settings import Settings, get_settings
from ddl.dialects import REGISTRY, canonical_dialect
from ddl.generate_ddl import export_filename
from reml.loader import InvalidSchemaError, parse_and_validate_reml

logger = logging.getLogger(__name__)

router = APIRouter()


class DdlRequest(BaseModel):
    reml: str
    dialect: Optional[str] = None


class ValidateRequest(BaseModel):
    reml: str


def get_renderer() -> DdlRenderer:
    return SqlRenderer()


def _check_size(text: str, settings: Settings) -> None:
    if len(text.encode("utf-8")) > settings.MAX_SCHEMA_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"Schema exceeds {settings.MAX_SCHEMA_BYTES} bytes",
        )


@router.post("/ddl", response_class=PlainTextResponse, tags=["ddl"])
def generate(
    body: DdlRequest,
    settings: Settings = Depends(get_settings),
    renderer: DdlRenderer = Depends(get_renderer),
):
    _check_size(body.reml, settings)
    try:
        schema = TextSchemaLoader(body.reml).load()
    except InvalidSchemaError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": str(e), "errors": [vars(i) for i in e.issues]},
        ) from e

    dialect = body.dialect or schema.database or settings.DEFAULT_DIALECT
    if canonical_dialect(dialect) is None:
        logger.warning("Request for unknown dialect %r, rendering postgresql", dialect)

    sql = renderer.render(schema, dialect)
    filename = export_filename(schema)
    return PlainTextResponse(
        sql,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/validate", tags=["ddl"])
def validate(body: ValidateRequest, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    _check_size(body.reml, settings)
    result = parse_and_validate_reml(body.reml)
    if result.parse_error is not None:
        raise HTTPException(status_code=422, detail={"message": result.parse_error, "errors": []})
    return result.validation.to_dict()


@router.get("/dialects", tags=["ddl"])
def list_dialects() -> List[Dict[str, Any]]:
    return [config.describe() for config in REGISTRY.values()]


@router.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}
