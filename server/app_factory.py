# server/app_factory.py
from __future__ import annotations
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from core.settings import Settings, get_settings
from server.routes import router

logger = logging.getLogger(__name__)


def _unique_op_id(route: APIRoute) -> str:
    method = next(iter(route.methods or {"GET"})).lower()
    tag = (route.tags[0] if route.tags else "default").lower().replace(" ", "_")
    name = (route.name or route.endpoint.__name__).lower().replace(" ", "_")
    return f"{tag}__{name}__{method}"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    app = FastAPI(
        title="REML DDL Engine",
        version="1.0.0",
        generate_unique_id_function=_unique_op_id,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)
    # routes resolve settings through Depends(get_settings)
    app.dependency_overrides[get_settings] = lambda: settings

    logger.info(
        "REML DDL engine ready (default dialect=%s, max schema=%d bytes)",
        settings.DEFAULT_DIALECT, settings.MAX_SCHEMA_BYTES,
    )
    return app
