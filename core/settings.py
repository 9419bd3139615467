# core/settings.py
from __future__ import annotations
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    DEFAULT_DIALECT: str
    SCHEMA_PATH: str
    LOG_LEVEL: str
    CORS_ORIGINS: List[str]
    MAX_SCHEMA_BYTES: int

    def __init__(self) -> None:
        self.DEFAULT_DIALECT = os.getenv("REML_DEFAULT_DIALECT", "postgresql").strip().lower()
        self.SCHEMA_PATH = os.getenv("REML_SCHEMA_PATH", "schema.reml.yaml")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        self.MAX_SCHEMA_BYTES = int(os.getenv("MAX_SCHEMA_BYTES", str(1024 * 1024)))


@lru_cache
def get_settings() -> Settings:
    return Settings()
