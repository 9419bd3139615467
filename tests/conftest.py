from pathlib import Path
from typing import Any, Dict

import pytest

from reml.loader import load_schema
from reml.models import RemlSchema

FIXTURES = Path(__file__).parent / "fixtures"


def make_schema(tables: Dict[str, Any], **extra: Any) -> RemlSchema:
    """Build a schema straight from REML-shaped dicts (camelCase keys)."""
    data = {"reml": "1.0", "database": "postgresql", "tables": tables}
    data.update(extra)
    return RemlSchema.model_validate(data)


@pytest.fixture
def shop_path() -> Path:
    return FIXTURES / "shop.reml.yaml"


@pytest.fixture
def shop(shop_path: Path) -> RemlSchema:
    return load_schema(shop_path)
