"""
Unit Tests - HTTP API
"""
import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from sales_engine.engine import SalesEngine
from sales_engine.serving.api.main import create_app
from sales_engine.serving.api.routes import analytics_router


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine)) as test_client:
        yield test_client


@pytest.fixture
def empty_client():
    with TestClient(create_app(SalesEngine())) as test_client:
        yield test_client


class TestHealth:
    """Tests for health endpoints"""

    def test_health_reports_row_counts(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["data"]["rows"]["invoices"] == 6

    def test_empty_dataset_is_degraded(self, empty_client):
        assert empty_client.get("/api/v1/health").json()["status"] == "degraded"

    def test_liveness(self, client):
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}

    def test_request_headers(self, client):
        """Test the logging middleware tags responses"""
        response = client.get("/api/v1/health", headers={"X-Request-ID": "abc"})

        assert response.headers["X-Request-ID"] == "abc"
        assert response.headers["X-Response-Time"].endswith("ms")


class TestAnalyticsEndpoints:
    """Tests for analytics endpoints"""

    def test_reports_run_in_threadpool(self):
        """Test report handlers are plain functions so they do not block the event loop"""
        routes = [r for r in analytics_router.routes if isinstance(r, APIRoute)]

        assert routes
        assert not any(inspect.iscoroutinefunction(r.endpoint) for r in routes)

    def test_items_per_merchant(self, client):
        response = client.get("/api/v1/analytics/merchants/items")

        assert response.json() == {"average": 1.25, "standard_deviation": 1.26}

    def test_high_item_count_deviations_param(self, client):
        response = client.get("/api/v1/analytics/merchants/items/high", params={"deviations": 1})

        assert [m["id"] for m in response.json()] == [1]

    def test_invoices_per_merchant(self, client):
        response = client.get("/api/v1/analytics/merchants/invoices")

        assert response.json() == {"average": 1.5, "standard_deviation": 1.73}

    def test_bottom_merchants(self, client):
        response = client.get("/api/v1/analytics/merchants/invoices/bottom", params={"deviations": 0.5})

        assert [m["name"] for m in response.json()] == ["LolaMarleys"]

    def test_top_revenue_earners(self, client):
        response = client.get("/api/v1/analytics/merchants/top-revenue", params={"n": 2})

        assert [m["id"] for m in response.json()] == [2, 1]

    def test_pending_merchants(self, client):
        response = client.get("/api/v1/analytics/merchants/pending")

        assert [m["id"] for m in response.json()] == [1]

    def test_merchant_revenue(self, client):
        response = client.get("/api/v1/analytics/merchants/1/revenue")

        assert response.json() == {"merchant_id": 1, "revenue": 310.0}

    def test_unknown_merchant_is_404(self, client):
        assert client.get("/api/v1/analytics/merchants/999/revenue").status_code == 404

    def test_golden_items(self, client):
        response = client.get("/api/v1/analytics/items/golden", params={"deviations": 1})

        assert response.json() == [{"id": 104, "name": "Lamp", "unit_price": 1000.0, "merchant_id": 2}]

    def test_weekdays(self, client):
        body = client.get("/api/v1/analytics/invoices/weekdays").json()

        assert body["counts"]["Monday"] == 3
        assert body["top_days"] == ["Monday"]

    def test_invoice_status(self, client):
        response = client.get("/api/v1/analytics/invoices/status/pending")

        assert response.json() == {"status": "pending", "percentage": 33.33}

    def test_invalid_status_rejected(self, client):
        assert client.get("/api/v1/analytics/invoices/status/lost").status_code == 422

    def test_invoice_total(self, client):
        response = client.get("/api/v1/analytics/invoices/2/total")

        assert response.json() == {"invoice_id": 2, "total": 270.0, "paid_in_full": False}

    def test_unknown_invoice_is_404(self, client):
        assert client.get("/api/v1/analytics/invoices/999/total").status_code == 404

    def test_top_buyers(self, client):
        response = client.get("/api/v1/analytics/customers/top-buyers", params={"n": 1})

        assert response.json() == [{"id": 1, "first_name": "Joey", "last_name": "Ondricka"}]

    def test_insufficient_data_is_422(self, empty_client):
        """Test degenerate statistics map to a client error"""
        response = empty_client.get("/api/v1/analytics/merchants/items")

        assert response.status_code == 422
        assert response.json()["detail"] == "insufficient data"
