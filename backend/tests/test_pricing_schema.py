"""
test_pricing_schema.py — Input coercion, policy config and display formatting.
"""

import math

import pytest

from washroom_estimator.models.pricing_schema import (
    PricingPolicy,
    QuotationLineItem,
    ServiceItem,
    Washroom,
    coerce_amount,
)
from washroom_estimator.services.currency import format_inr, round_currency


class TestCoercion:

    @pytest.mark.parametrize("raw,expected", [
        (None, 0.0), ("", 0.0), ("abc", 0.0), (float("nan"), 0.0), (float("inf"), 0.0),
        ("12.5", 12.5), (7, 7.0), (-3, -3.0), (True, 0.0),
    ])
    def test_coerce_amount(self, raw, expected):
        assert coerce_amount(raw) == expected

    def test_washroom_defaults_and_clamps(self):
        washroom = Washroom(id="w", length=-4, width="6", height=None, selected_brand_id="")
        assert washroom.length == 0.0
        assert washroom.width == 6.0
        assert washroom.height == 8.0
        assert washroom.selected_brand_id is None

    def test_selected_service_ids(self):
        washroom = Washroom(id="w", services={"a": True, "b": False, "c": 1})
        assert washroom.selected_service_ids() == ["a", "c"]

    def test_service_item_none_fields(self):
        item = ServiceItem(id="s", name=None, unit=None, rate=None)
        assert item.unit == ""
        assert item.rate == 0.0

    def test_line_item_nan_amount(self):
        assert QuotationLineItem(name="x", amount=math.nan).amount == 0.0


class TestPolicyFromEnv:

    def test_defaults(self, monkeypatch):
        for var in ("GST_RATE_PCT", "SIMPLE_MARGIN_PCT", "LOGISTICS_PCT",
                    "MRP_FALLBACK_MARKUP", "BRAND_PRODUCTS_GST_APPLICABLE"):
            monkeypatch.delenv(var, raising=False)
        policy = PricingPolicy.from_env()
        assert policy.gst_rate_pct == 18.0
        assert policy.simple_margin_pct == 1.52
        assert policy.logistics_pct == 7.5
        assert policy.mrp_fallback_markup == 1.2
        assert policy.brand_products_gst_applicable is False

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("GST_RATE_PCT", "12")
        monkeypatch.setenv("LOGISTICS_PCT", "5")
        monkeypatch.setenv("BRAND_PRODUCTS_GST_APPLICABLE", "true")
        policy = PricingPolicy.from_env()
        assert policy.gst_rate_pct == 12.0
        assert policy.logistics_pct == 5.0
        assert policy.brand_products_gst_applicable is True

    def test_negative_env_value_means_no_charge(self, monkeypatch):
        monkeypatch.setenv("GST_RATE_PCT", "-18")
        assert PricingPolicy.from_env().gst_rate_pct == 0.0


class TestCurrency:

    @pytest.mark.parametrize("value,expected", [
        (0, "₹0.00"),
        (999.5, "₹999.50"),
        (1000, "₹1,000.00"),
        (123456.5, "₹1,23,456.50"),
        (12345678.9, "₹1,23,45,678.90"),
        (-2500, "-₹2,500.00"),
    ])
    def test_indian_grouping(self, value, expected):
        assert format_inr(value) == expected

    def test_round_half_up(self):
        assert round_currency(0.125) == 0.13
        assert round_currency(6490.0000000000001) == 6490.0
        assert round_currency(None) == 0.0
