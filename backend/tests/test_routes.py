"""
test_routes.py — HTTP-level tests for the costing router.

The repository dependency is replaced with an in-memory fake, so no database
is touched.  Reference washroom is 10 × 8 × 9 ft (total area 404 ft²).
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from washroom_estimator.api.costing_routes import get_pricing_policy, get_pricing_repository
from washroom_estimator.main import app
from washroom_estimator.models.pricing_schema import Fixture, PricingPolicy, PricingSettings


class _FakeRepository:

    def __init__(self, catalog_items, brand_products, fail=False):
        self._catalog = catalog_items
        self._brands = brand_products
        self._fail = fail
        self.requested_brands = []

    async def fetch_service_catalog(self):
        if self._fail:
            raise OperationalError("SELECT vendor_items", {}, Exception("connection refused"))
        return list(self._catalog)

    async def fetch_brand_products(self, brand_ids):
        ids = [b for b in brand_ids if b]
        self.requested_brands.extend(ids)
        return {b: self._brands.get(b, []) for b in ids}

    async def fetch_fixtures(self):
        return [Fixture(name="Other Execution Charges", category="additional", client_price=3500)]

    async def fetch_settings(self):
        return PricingSettings()


_WASHROOM = {"id": "w1", "name": "Master", "length": 10, "width": 8, "height": 9}


@pytest.fixture
def fake_repo(catalog_items, brand_products):
    return _FakeRepository(catalog_items, brand_products)


@pytest.fixture
def client(fake_repo):
    app.dependency_overrides[get_pricing_repository] = lambda: fake_repo
    app.dependency_overrides[get_pricing_policy] = lambda: PricingPolicy()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
        assert "X-Process-Time" in resp.headers

    def test_metrics(self, client):
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "uptime_seconds" in resp.json()


class TestEstimateRoute:

    def test_estimate(self, client):
        """10 × 8: plumbing 12,000 + tiling 39,440 + mandatory 3,500 + products 4,500."""
        resp = client.post("/api/costing/estimate", json={"length": 10, "width": 8, "brand_id": "aqua"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["plumbing_cost"] == 12000.0
        assert body["tiling_cost"]["tile_count"] == 102
        assert body["product_cost"] == 4500.0
        assert body["total"] == 12000 + 39440 + 3500 + 4500


class TestProjectCostsRoute:

    def test_costs_and_update_payload(self, client, fake_repo):
        """
        tiling 404 × 50 = 20,200; margin 1.52 % = 307.04; GST = 20,200 × 18 % = 3,636
        final = 24,143.04
        """
        washroom = dict(_WASHROOM, services={"tiling": True})
        resp = client.post("/api/costing/projects/costs", json={
            "washrooms": [washroom],
            "cost_items": [{"id": "a1", "name": "Debris", "amount": 500, "category": "additional"}],
            "margin_pct": 1.52,
            "gst_rate_pct": 18,
        })
        assert resp.status_code == 200
        body = resp.json()
        costs = body["costs"]
        assert costs["per_washroom_costs"][0]["execution_subtotal"] == 20200.0
        assert costs["additional_total"] == 500.0
        assert costs["combined_tiling_rate"] == 165.0
        assert costs["tiling_cost"] == 80 * 165.0
        payload = body["update_payload"]
        assert payload["additional_costs"] == {"a1": {"name": "Debris", "description": "", "amount": 500.0}}
        assert payload["final_quotation_amount"] == pytest.approx(costs["summary"]["grand_total"])
        assert fake_repo.requested_brands == []

    def test_bad_body_is_422(self, client):
        resp = client.post("/api/costing/projects/costs", json={"washrooms": "not a list"})
        assert resp.status_code == 422

    def test_storage_failure_is_503(self, client, catalog_items, brand_products):
        app.dependency_overrides[get_pricing_repository] = lambda: _FakeRepository(
            catalog_items, brand_products, fail=True,
        )
        resp = client.post("/api/costing/projects/costs", json={"washrooms": [_WASHROOM]})
        assert resp.status_code == 503
        assert resp.json()["detail"] == "Unable to load service catalog"


class TestQuotationRoutes:

    def test_quotation_pricing(self, client):
        """5,000 + 10 % margin + 18 % GST on (amount + margin) = 6,490."""
        resp = client.post("/api/costing/quotation-pricing", json={
            "washrooms": [_WASHROOM],
            "line_items": [{"name": "Plumbing", "amount": 5000, "washroom_id": "w1"}],
            "margins": {"w1": 10},
            "gst_rate": 18,
        })
        assert resp.status_code == 200
        summary = resp.json()["project_summary"]
        assert summary["grand_total"] == pytest.approx(6490.0)
        assert summary["average_margin"] == pytest.approx(10.0)

    def test_quotation_built_from_catalog(self, client):
        washroom = dict(_WASHROOM, services={"plumbing": True}, selected_brand_id="aqua")
        resp = client.post("/api/costing/quotation", json={
            "washrooms": [washroom],
            "margins": 0,
            "gst_rate": 18,
            "project_code": "PRJ-7",
            "sequence": 2,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["quotation_number"].startswith("QUO-PRJ-7-")
        assert body["quotation_number"].endswith("-2")
        summary = body["summary"]
        assert summary["product_total"] == 4500.0
        assert summary["logistics_charge"] == 337.5
        assert summary["gst_amount"] == pytest.approx(900.0)
        assert summary["grand_total"] == pytest.approx(5000 + 4500 + 337.5 + 900)
