"""
test_washroom_costing.py — Unit tests for washroom-level aggregation.
"""

import logging

from washroom_estimator.services.washroom_costing import brand_product_total, cost_washroom


class TestWashroomAggregation:

    def test_scenario_area_rate_service_no_brand(self, washroom_factory, catalog):
        """10 × 8 × 9 ft with one 50 /sqft service → 20,200, no product cost."""
        result = cost_washroom(washroom_factory(services=["tiling"]), catalog)
        assert result.execution_subtotal == 20200.0
        assert result.product_subtotal == 0.0
        assert result.total == 20200.0
        assert result.service_costs == {"tiling": 20200.0}
        assert result.areas.floor_area == 80.0
        assert result.areas.wall_area == 324.0

    def test_empty_washroom_costs_zero(self, washroom_factory, catalog):
        result = cost_washroom(washroom_factory(), catalog)
        assert result.total == 0.0
        assert result.lines == []

    def test_deselected_services_ignored(self, washroom_factory, catalog):
        washroom = washroom_factory(services={"tiling": False, "plumbing": True})
        result = cost_washroom(washroom, catalog)
        assert result.service_costs == {"plumbing": 5000.0}

    def test_mixed_services_sum(self, washroom_factory, catalog):
        """tiling 20,200 + plumbing 5,000 + exhaust 1,500 + half_floor 4,000 = 30,700."""
        washroom = washroom_factory(services=["tiling", "plumbing", "exhaust", "half_floor"])
        result = cost_washroom(washroom, catalog)
        assert result.execution_subtotal == 30700.0
        assert sum(result.service_costs.values()) == result.execution_subtotal

    def test_unknown_service_contributes_zero(self, washroom_factory, catalog):
        result = cost_washroom(washroom_factory(services=["plumbing", "ghost"]), catalog)
        assert result.execution_subtotal == 5000.0
        ghost = [line for line in result.lines if line.service_id == "ghost"][0]
        assert not ghost.found
        assert ghost.cost == 0.0

    def test_service_details_grouped_by_category(self, washroom_factory, catalog):
        washroom = washroom_factory(services=["tiling", "waterproof", "exhaust", "ghost"])
        details = cost_washroom(washroom, catalog).service_details
        assert details == {
            "Civil": ["Wall & floor tiling", "Waterproofing"],
            "Electrical": ["Exhaust fan fitting"],
        }


class TestBrandProducts:

    def test_scenario_brand_only(self, washroom_factory, catalog, brand_products):
        """Products priced 1200 + 800 + 2500 → product subtotal 4,500."""
        result = cost_washroom(washroom_factory(selected_brand_id="aqua"), catalog, brand_products)
        assert result.execution_subtotal == 0.0
        assert result.product_subtotal == 4500.0
        assert result.total == 4500.0

    def test_brand_with_no_products_is_zero_and_logged(self, brand_products, caplog):
        with caplog.at_level(logging.WARNING):
            assert brand_product_total("empty", brand_products) == 0.0
        assert "no products" in caplog.text

    def test_unknown_brand_is_zero(self, brand_products):
        assert brand_product_total("missing", brand_products) == 0.0

    def test_no_brand_selected(self, brand_products):
        assert brand_product_total(None, brand_products) == 0.0
        assert brand_product_total("", brand_products) == 0.0


class TestIdempotence:

    def test_identical_inputs_identical_output(self, washroom_factory, catalog, brand_products):
        washroom = washroom_factory(services=["tiling", "broken", "half_floor"], selected_brand_id="aqua")
        first = cost_washroom(washroom, catalog, brand_products)
        second = cost_washroom(washroom, catalog, brand_products)
        assert first.model_dump_json() == second.model_dump_json()
