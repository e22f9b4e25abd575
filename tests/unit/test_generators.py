"""
Unit Tests - Synthetic Data Generator
"""
import pytest

from sales_engine.data import SalesDataGenerator
from sales_engine.engine import SalesEngine


@pytest.fixture(scope="module")
def generated(tmp_path_factory):
    output = tmp_path_factory.mktemp("generated")
    paths = SalesDataGenerator(seed=7).generate_all(
        output,
        n_merchants=10,
        n_items=60,
        n_customers=25,
        n_invoices=80,
    )
    return paths


class TestSalesDataGenerator:
    """Tests for SalesDataGenerator"""

    def test_writes_every_table(self, generated):
        assert set(generated) == {
            "merchants", "items", "invoices", "invoice_items", "transactions", "customers",
        }
        assert all(path.exists() for path in generated.values())

    def test_output_loads_into_engine(self, generated):
        """Test the generated layout round-trips through the loaders"""
        engine = SalesEngine.from_csv(generated)

        assert len(engine.merchants) == 10
        assert len(engine.items) == 60
        assert len(engine.invoices) == 80
        assert len(engine.invoice_items) >= 80

    def test_foreign_keys_resolve(self, generated):
        engine = SalesEngine.from_csv(generated)

        for line in engine.invoice_items.all():
            assert line.item(engine) is not None
            assert line.invoice(engine) is not None
        for invoice in engine.invoices.all():
            assert invoice.merchant(engine) is not None
            assert invoice.customer(engine) is not None

    def test_line_prices_match_catalog(self, generated):
        engine = SalesEngine.from_csv(generated)

        for line in engine.invoice_items.all():
            assert line.unit_price == line.item(engine).unit_price

    def test_seed_is_reproducible(self):
        first = SalesDataGenerator(seed=3).generate(n_merchants=3, n_items=5, n_customers=2, n_invoices=4)
        second = SalesDataGenerator(seed=3).generate(n_merchants=3, n_items=5, n_customers=2, n_invoices=4)

        assert first["items"].equals(second["items"])
        assert first["invoices"].equals(second["invoices"])

    def test_invoices_need_merchants_and_customers(self):
        with pytest.raises(ValueError):
            SalesDataGenerator().generate(n_merchants=0, n_invoices=5)

    def test_analyst_runs_on_generated_data(self, generated):
        analyst = SalesEngine.from_csv(generated).analyst

        assert analyst.average_items_per_merchant() == 6.0
        assert sum(analyst.invoice_count_by_weekday().values()) == 80
        assert len(analyst.top_revenue_earners(5)) == 5
