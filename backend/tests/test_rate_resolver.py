"""
test_rate_resolver.py — Unit tests for unit classification and catalog lookup.
"""

import logging

import pytest

from washroom_estimator.models.pricing_schema import ServiceItem
from washroom_estimator.services.rate_resolver import ServiceCatalog, UnitKind, classify_unit


class TestClassifyUnit:

    @pytest.mark.parametrize("unit", ["sqft", "SQFT", "Sq Ft", "sft", "per square foot", "Rs/sqft"])
    def test_area_units(self, unit):
        assert classify_unit(unit) == UnitKind.AREA

    @pytest.mark.parametrize("unit", ["bathroom", "Per Bathroom", "per BATHROOM set"])
    def test_per_washroom_units(self, unit):
        assert classify_unit(unit) == UnitKind.PER_WASHROOM

    @pytest.mark.parametrize("unit", ["nos", "lump sum", "rmt", "", None])
    def test_everything_else_is_flat(self, unit):
        assert classify_unit(unit) == UnitKind.FLAT


class TestServiceCatalog:

    def test_resolves_rate_and_lowercased_unit(self, catalog):
        resolved = catalog.resolve("waterproof")
        assert resolved.found
        assert resolved.rate == 12.0
        assert resolved.unit == "sq ft"
        assert resolved.unit_kind == UnitKind.AREA
        assert resolved.name == "Waterproofing"
        assert resolved.category == "Civil"

    def test_unknown_id_resolves_softly(self, catalog, caplog):
        with caplog.at_level(logging.WARNING):
            resolved = catalog.resolve("deleted-item")
        assert not resolved.found
        assert resolved.rate == 0.0
        assert resolved.unit == ""
        assert "not found" in caplog.text

    def test_formula_compiled_at_build_time(self, catalog):
        resolved = catalog.resolve("half_floor")
        assert resolved.formula is not None
        assert resolved.formula_error is None

    def test_malformed_formula_recorded_not_raised(self, catalog):
        resolved = catalog.resolve("broken")
        assert resolved.formula is None
        assert resolved.formula_error
        assert resolved.formula_source == "$rate * (($floor_area"

    def test_blank_formula_means_no_formula(self):
        catalog = ServiceCatalog([ServiceItem(id="x", unit="nos", rate=10, formula="   ")])
        assert catalog.resolve("x").formula is None
        assert catalog.resolve("x").formula_error is None

    def test_duplicate_ids_keep_last(self):
        catalog = ServiceCatalog([
            ServiceItem(id="x", unit="nos", rate=10, formula="rate * 2"),
            ServiceItem(id="x", unit="nos", rate=20),
        ])
        assert len(catalog) == 1
        assert catalog.resolve("x").rate == 20.0
        assert catalog.resolve("x").formula is None

    def test_negative_or_junk_rate_clamped(self):
        catalog = ServiceCatalog([
            ServiceItem(id="neg", unit="nos", rate=-50),
            ServiceItem(id="nan", unit="nos", rate="n/a"),
        ])
        assert catalog.resolve("neg").rate == 0.0
        assert catalog.resolve("nan").rate == 0.0
