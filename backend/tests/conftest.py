"""
conftest.py — Shared pytest fixtures for the washroom estimator test suite.

No database or external service fixtures are defined here.  Engine tests are
pure unit tests; route tests override the repository dependency with an
in-memory fake.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``washroom_estimator.*`` imports resolve regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any package imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Service catalog
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog_items():
    """
    A small vendor rate card covering every unit kind.

      tiling      50 /sqft       area rule  → rate × (floor + wall)
      waterproof  12 /Sq Ft      area rule (mixed case, spaced unit)
      plumbing    5000 /bathroom flat, once per washroom
      exhaust     1500 /nos      flat (unrecognised unit)
      half_floor  100 /sqft      formula "$rate * $floor_area / 2"
      broken      40 /sqft       malformed formula → area rule
    """
    from washroom_estimator.models.pricing_schema import ServiceItem
    return [
        ServiceItem(id="tiling", name="Wall & floor tiling", category="Civil", unit="sqft", rate=50),
        ServiceItem(id="waterproof", name="Waterproofing", category="Civil", unit="Sq Ft", rate=12),
        ServiceItem(id="plumbing", name="Complete plumbing", category="Plumbing", unit="Per Bathroom", rate=5000),
        ServiceItem(id="exhaust", name="Exhaust fan fitting", category="Electrical", unit="nos", rate=1500),
        ServiceItem(id="half_floor", name="Floor grouting", category="Civil", unit="sqft", rate=100,
                    formula="$rate * $floor_area / 2"),
        ServiceItem(id="broken", name="Ceiling panels", category="Civil", unit="sqft", rate=40,
                    formula="$rate * (($floor_area"),
    ]


@pytest.fixture
def catalog(catalog_items):
    from washroom_estimator.services.rate_resolver import ServiceCatalog
    return ServiceCatalog(catalog_items)


# ---------------------------------------------------------------------------
# Washrooms
# ---------------------------------------------------------------------------

@pytest.fixture
def washroom_factory():
    """
    Build a Washroom with the 10 × 8 × 9 ft reference dimensions by default.

    Reference areas: floor = 80, wall = 2 × 9 × 18 = 324, total = 404.
    """
    from washroom_estimator.models.pricing_schema import Washroom

    def _make(washroom_id="w1", services=(), **overrides):
        if not isinstance(services, dict):
            services = {service_id: True for service_id in services}
        fields = {
            "id": washroom_id,
            "name": f"Washroom {washroom_id}",
            "length": 10.0,
            "width": 8.0,
            "height": 9.0,
            "services": services,
        }
        fields.update(overrides)
        return Washroom(**fields)

    return _make


# ---------------------------------------------------------------------------
# Brands
# ---------------------------------------------------------------------------

@pytest.fixture
def brand_products():
    """Brand "aqua" has three products totalling 4,500; brand "empty" has none."""
    from washroom_estimator.models.pricing_schema import Product
    return {
        "aqua": [
            Product(id="p1", brand_id="aqua", name="Basin mixer", price=1200, mrp=1500),
            Product(id="p2", brand_id="aqua", name="Health faucet", price=800),
            Product(id="p3", brand_id="aqua", name="Rain shower", price=2500, mrp=3200),
        ],
        "empty": [],
    }


@pytest.fixture
def policy():
    """Default pricing policy: GST 18 %, simple margin 1.52 %, logistics 7.5 %."""
    from washroom_estimator.models.pricing_schema import PricingPolicy
    return PricingPolicy()
