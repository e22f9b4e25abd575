"""
Unit Tests - Sales Analyst
"""
from datetime import date, datetime
from decimal import Decimal

import polars as pl
import pytest

from sales_engine.analytics import DAY_NAMES, SalesAnalyst
from sales_engine.config import get_settings
from sales_engine.engine import SalesEngine
from sales_engine.exceptions import EmptyDatasetError
from sales_engine.models import InvoiceStatus


def ids(records):
    return [r.id for r in records]


class TestItemReports:
    """Tests for items-per-merchant and price reports"""

    def test_average_items_per_merchant(self, analyst):
        assert analyst.average_items_per_merchant() == 1.25

    def test_items_per_merchant_standard_deviation(self, analyst):
        assert analyst.average_items_per_merchant_standard_deviation() == 1.26

    def test_high_item_count_threshold_is_per_call(self, analyst):
        """Test the deviation multiplier can be overridden"""
        assert analyst.merchants_with_high_item_count() == []
        assert ids(analyst.merchants_with_high_item_count(deviations=1)) == [1]

    def test_average_item_price_for_merchant(self, analyst):
        result = analyst.average_item_price_for_merchant(1)

        assert isinstance(result, Decimal)
        assert result == Decimal("20.00")

    def test_average_item_price_for_merchant_without_items(self, analyst):
        with pytest.raises(EmptyDatasetError):
            analyst.average_item_price_for_merchant(4)

    def test_average_average_price_skips_empty_merchants(self, analyst):
        assert analyst.average_average_price_per_merchant() == Decimal("356.67")

    def test_average_item_cost(self, analyst):
        assert analyst.average_item_cost() == Decimal("222.00")

    def test_item_unit_price_standard_deviation(self, analyst):
        assert analyst.item_unit_price_standard_deviation() == 435.17

    def test_golden_items(self, analyst):
        assert analyst.golden_items() == []
        assert [i.name for i in analyst.golden_items(deviations=1)] == ["Lamp"]

    def test_merchants_with_only_one_item(self, analyst):
        assert ids(analyst.merchants_with_only_one_item()) == [2, 3]

    def test_only_one_item_registered_in_month(self, analyst):
        """Test month names and numbers select by creation month"""
        assert ids(analyst.merchants_with_only_one_item_registered_in_month("May")) == [2]
        assert ids(analyst.merchants_with_only_one_item_registered_in_month("march")) == [3]
        assert ids(analyst.merchants_with_only_one_item_registered_in_month(3)) == [3]
        assert analyst.merchants_with_only_one_item_registered_in_month("December") == []

    def test_unknown_month_raises(self, analyst):
        with pytest.raises(ValueError):
            analyst.merchants_with_only_one_item_registered_in_month("Smarch")
        with pytest.raises(ValueError):
            analyst.merchants_with_only_one_item_registered_in_month(13)


class TestInvoiceReports:
    """Tests for invoice count and distribution reports"""

    def test_average_invoices_per_merchant(self, analyst):
        assert analyst.average_invoices_per_merchant() == 1.5
        assert analyst.average_invoices_per_merchant_standard_deviation() == 1.73

    def test_top_merchants_by_invoice_count(self, analyst):
        assert analyst.top_merchants_by_invoice_count() == []
        assert ids(analyst.top_merchants_by_invoice_count(deviations=1)) == [1]

    def test_bottom_merchants_by_invoice_count(self, analyst):
        assert analyst.bottom_merchants_by_invoice_count() == []
        assert ids(analyst.bottom_merchants_by_invoice_count(deviations=0.5)) == [4]

    def test_invoice_count_by_weekday_has_every_day(self, analyst):
        """Test all seven buckets are present, Sunday first"""
        counts = analyst.invoice_count_by_weekday()

        assert tuple(counts) == DAY_NAMES
        assert counts == {
            "Sunday": 0,
            "Monday": 3,
            "Tuesday": 1,
            "Wednesday": 1,
            "Thursday": 0,
            "Friday": 0,
            "Saturday": 1,
        }

    def test_invoice_by_day_standard_deviation(self, analyst):
        assert analyst.invoice_by_day_standard_deviation() == 1.07

    def test_top_days_by_invoice_count(self, analyst):
        assert analyst.top_days_by_invoice_count() == ["Monday"]

    def test_invoice_status(self, analyst):
        assert analyst.invoice_status("pending") == 33.33
        assert analyst.invoice_status(InvoiceStatus.SHIPPED) == 50.0
        assert analyst.invoice_status(" RETURNED ") == 16.67

    def test_invoice_status_unknown_raises(self, analyst):
        with pytest.raises(ValueError):
            analyst.invoice_status("lost")


class TestRevenue:
    """Tests for revenue reports"""

    def test_invoice_paid_in_full(self, analyst):
        assert analyst.invoice_paid_in_full(1)
        assert analyst.invoice_paid_in_full(3)
        assert not analyst.invoice_paid_in_full(2)
        assert not analyst.invoice_paid_in_full(999)

    def test_invoice_total(self, analyst):
        assert analyst.invoice_total(1) == Decimal("110.00")
        assert analyst.invoice_total(4) == Decimal("200.00")
        assert analyst.invoice_total(999) == Decimal("0")

    def test_invoice_total_is_additive(self, analyst, engine):
        """Test per-invoice totals sum to the merchant's unfiltered total"""
        invoices = engine.invoices.find_all_by_merchant_id(1)

        assert sum(analyst.invoice_total(i.id) for i in invoices) == Decimal("660.00")

    def test_total_revenue_by_date(self, analyst):
        assert analyst.total_revenue_by_date(date(2012, 3, 5)) == Decimal("480.00")
        assert analyst.total_revenue_by_date(datetime(2012, 3, 5, 13, 0)) == Decimal("480.00")
        assert analyst.total_revenue_by_date(date(2012, 3, 4)) == Decimal("0")

    def test_revenue_by_merchant_counts_paid_invoices_only(self, analyst):
        assert analyst.revenue_by_merchant(1) == Decimal("310.00")
        assert analyst.revenue_by_merchant(2) == Decimal("1000.00")
        assert analyst.revenue_by_merchant(4) == Decimal("0")

    def test_merchants_ranked_by_revenue(self, analyst):
        assert ids(analyst.merchants_ranked_by_revenue()) == [2, 1, 3, 4]

    def test_top_revenue_earners(self, analyst):
        assert ids(analyst.top_revenue_earners(2)) == [2, 1]
        assert ids(analyst.top_revenue_earners()) == [2, 1, 3, 4]
        assert analyst.top_revenue_earners(0) == []

    def test_top_revenue_earners_default_from_settings(self, analyst, monkeypatch):
        monkeypatch.setenv("SALES_ANALYTICS_TOP_N", "1")
        get_settings.cache_clear()
        assert ids(analyst.top_revenue_earners()) == [2]

    def test_merchants_with_pending_invoices(self, analyst):
        assert ids(analyst.merchants_with_pending_invoices()) == [1]

    def test_reports_are_pure(self, analyst):
        """Test repeated calls give the same answer"""
        first = ids(analyst.merchants_ranked_by_revenue())
        assert ids(analyst.merchants_ranked_by_revenue()) == first
        assert analyst.invoice_count_by_weekday() == analyst.invoice_count_by_weekday()


class TestBestSellers:
    """Tests for per-merchant best sellers"""

    def test_most_sold_item_ties_return_every_item(self, analyst):
        """Test two items sharing the largest quantity are both returned"""
        assert [i.name for i in analyst.most_sold_item_for_merchant(1)] == ["Pencil", "Notebook"]

    def test_most_sold_ignores_pending_invoices(self, analyst):
        # the quantity 9 line sits on a pending invoice
        names = [i.name for i in analyst.most_sold_item_for_merchant(1)]
        assert names.count("Notebook") == 1

    def test_most_sold_lists_each_item_once(self, analyst):
        """Test an item on two top-quantity lines appears a single time"""
        lines = [
            line for line in analyst.engine.invoice_items.find_all_by_item_id(101)
            if line.quantity == 5
        ]
        assert len(lines) == 2

        names = [i.name for i in analyst.most_sold_item_for_merchant(1)]
        assert names.count("Pencil") == 1

    def test_most_sold_for_merchant_without_sales(self, analyst):
        assert analyst.most_sold_item_for_merchant(4) == []

    def test_best_item_for_merchant(self, analyst):
        assert analyst.best_item_for_merchant(1).name == "Notebook"
        assert analyst.best_item_for_merchant(2).name == "Lamp"
        assert analyst.best_item_for_merchant(4) is None


class TestCustomerReports:
    """Tests for customer reports"""

    def test_customers_ranked_by_revenue(self, analyst):
        assert ids(analyst.customers_ranked_by_revenue()) == [1, 2, 3, 4]

    def test_top_buyers(self, analyst):
        assert ids(analyst.top_buyers(1)) == [1]

    def test_top_merchant_for_customer(self, analyst):
        """Test units are summed per merchant across every invoice"""
        assert analyst.top_merchant_for_customer(1).id == 1
        assert analyst.top_merchant_for_customer(3).id == 3
        assert analyst.top_merchant_for_customer(4) is None

    def test_one_time_buyers(self, analyst):
        assert ids(analyst.one_time_buyers()) == [3]

    def test_one_time_buyers_top_item(self, analyst):
        assert analyst.one_time_buyers_top_item().name == "Bike"

    def test_items_bought_in_year(self, analyst):
        """Test only paid invoices from that year count"""
        assert [i.name for i in analyst.items_bought_in_year(1, 2012)] == ["Pencil", "Pen", "Lamp"]
        assert analyst.items_bought_in_year(1, 2013) == []

    def test_highest_volume_items(self, analyst):
        assert [i.name for i in analyst.highest_volume_items(1)] == ["Notebook"]
        assert [i.name for i in analyst.highest_volume_items(2)] == ["Pencil", "Notebook"]
        assert analyst.highest_volume_items(4) == []


def _tied_engine() -> SalesEngine:
    """Three merchants with equal paid revenue"""
    stamp = "2012-03-27 14:54:09 UTC"
    return SalesEngine.from_csv({
        "merchants": pl.DataFrame({
            "id": [7, 8, 9],
            "name": ["Zeta", "Alpha", "Mid"],
            "created_at": [stamp] * 3,
            "updated_at": [stamp] * 3,
        }),
        "invoices": pl.DataFrame({
            "id": [1, 2, 3],
            "customer_id": [1, 1, 1],
            "merchant_id": [7, 8, 9],
            "status": ["shipped"] * 3,
            "created_at": [stamp] * 3,
            "updated_at": [stamp] * 3,
        }),
        "invoice_items": pl.DataFrame({
            "id": [1, 2, 3],
            "item_id": [1, 2, 3],
            "invoice_id": [1, 2, 3],
            "quantity": [1, 1, 1],
            "unit_price": [500, 500, 500],
            "created_at": [stamp] * 3,
            "updated_at": [stamp] * 3,
        }),
        "transactions": pl.DataFrame({
            "id": [1, 2, 3],
            "invoice_id": [1, 2, 3],
            "credit_card_number": ["4068631943231473"] * 3,
            "result": ["success"] * 3,
            "created_at": [stamp] * 3,
            "updated_at": [stamp] * 3,
        }),
    })


class TestDeterminism:
    """Tests for tie-breaking and degenerate datasets"""

    def test_revenue_ties_keep_collection_order(self):
        analyst = SalesAnalyst(_tied_engine())
        assert ids(analyst.merchants_ranked_by_revenue()) == [7, 8, 9]

    def test_top_merchant_for_customer_tie_is_first_seen(self):
        analyst = SalesAnalyst(_tied_engine())
        assert analyst.top_merchant_for_customer(1).id == 7

    def test_empty_engine_reports_raise(self):
        """Test degenerate statistics surface as division by zero"""
        analyst = SalesEngine().analyst

        with pytest.raises(ZeroDivisionError):
            analyst.average_items_per_merchant()
        with pytest.raises(EmptyDatasetError):
            analyst.invoice_count_by_weekday()
        with pytest.raises(EmptyDatasetError):
            analyst.invoice_status("pending")
        with pytest.raises(EmptyDatasetError):
            analyst.average_item_cost()

    def test_single_merchant_deviation_raises(self, sample_items_df):
        stamp = "2012-03-27 14:54:09 UTC"
        engine = SalesEngine.from_csv({
            "merchants": pl.DataFrame({
                "id": [10], "name": ["Solo"], "created_at": [stamp], "updated_at": [stamp],
            }),
            "items": sample_items_df.filter(pl.col("merchant_id") == 10),
        })

        assert engine.analyst.average_items_per_merchant() == 2.0
        with pytest.raises(ZeroDivisionError):
            engine.analyst.average_items_per_merchant_standard_deviation()

    def test_empty_collections_yield_empty_rankings(self):
        analyst = SalesEngine().analyst

        assert analyst.merchants_ranked_by_revenue() == []
        assert analyst.one_time_buyers() == []
        assert analyst.one_time_buyers_top_item() is None
