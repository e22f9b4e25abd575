"""
Test Suite Configuration
"""
from pathlib import Path
from typing import Dict

import polars as pl
import pytest

from sales_engine.config import ENTITY_NAMES, Settings, get_settings
from sales_engine.engine import SalesEngine

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are read fresh in every test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture(scope="session")
def csv_sources() -> Dict[str, Path]:
    """Entity name -> fixture CSV path"""
    return {name: FIXTURES / f"{name}.csv" for name in ENTITY_NAMES}


@pytest.fixture
def test_settings(csv_sources, monkeypatch) -> Settings:
    """Settings pointing at the fixture dataset"""
    monkeypatch.setenv("APP_ENV", "testing")
    for name, path in csv_sources.items():
        monkeypatch.setenv(f"SALES_DATA_{name.upper()}", str(path))
    return get_settings()


@pytest.fixture
def engine(csv_sources) -> SalesEngine:
    """Engine loaded with the full fixture dataset"""
    return SalesEngine.from_csv(csv_sources)


@pytest.fixture
def analyst(engine):
    return engine.analyst


@pytest.fixture
def sample_items_df() -> pl.DataFrame:
    """Items as an in-memory frame, prices in cents"""
    return pl.DataFrame({
        "id": [1, 2, 3],
        "name": ["Pencil", "Pen", "Lamp"],
        "description": ["HB pencil", "Blue pen", "Glass lamp"],
        "unit_price": [1000, 2000, 100000],
        "merchant_id": [10, 10, 20],
        "created_at": ["2016-01-11 09:34:06 UTC"] * 3,
        "updated_at": ["2016-01-11 09:34:06 UTC"] * 3,
    })
