"""
Unit Tests - Sales Engine and Configuration
"""
import pytest
from pydantic import ValidationError

from sales_engine.analytics import SalesAnalyst
from sales_engine.config import ENTITY_NAMES, Settings
from sales_engine.engine import SalesEngine
from sales_engine.repository import ItemRepository


class TestSalesEngine:
    """Tests for building engines"""

    def test_from_csv_loads_every_collection(self, engine):
        assert engine.row_counts() == {
            "merchants": 4,
            "items": 5,
            "invoices": 6,
            "invoice_items": 8,
            "transactions": 7,
            "customers": 4,
        }

    def test_partial_sources_leave_empty_collections(self, csv_sources):
        """Test entity types without a source stay empty"""
        engine = SalesEngine.from_csv({
            "items": csv_sources["items"],
            "merchants": csv_sources["merchants"],
        })

        assert len(engine.items) == 5
        assert len(engine.invoices) == 0
        assert engine.analyst.average_items_per_merchant() == 1.25

    def test_unknown_entity_rejected(self, csv_sources):
        with pytest.raises(ValueError):
            SalesEngine.from_csv({"orders": csv_sources["invoices"]})

    def test_repository_lookup(self, engine):
        assert isinstance(engine.repository("items"), ItemRepository)
        with pytest.raises(ValueError):
            engine.repository("orders")

    def test_analyst_property(self, engine):
        analyst = engine.analyst

        assert isinstance(analyst, SalesAnalyst)
        assert analyst.engine is engine

    def test_from_settings(self, test_settings):
        """Test sources come from SALES_DATA_* variables"""
        engine = SalesEngine.from_settings(test_settings)

        assert engine.row_counts()["transactions"] == 7


class TestSettings:
    """Tests for configuration"""

    def test_defaults(self):
        settings = Settings()

        assert settings.app_name == "sales-engine"
        assert settings.analytics.top_n == 20
        assert settings.data.sources() == {}

    def test_data_sources_from_environment(self, test_settings, csv_sources):
        sources = test_settings.data.sources()

        assert set(sources) == set(ENTITY_NAMES)
        assert sources["items"] == str(csv_sources["items"])
        assert test_settings.app_env == "testing"

    def test_invalid_environment_rejected(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "moon")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_log_format_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            Settings()
