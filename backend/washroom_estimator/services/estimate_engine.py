"""
CalculatorEstimator -- the customer-facing quick estimate.

    fixtures  = Σ client price of every catalog fixture matching a selected option
                + the mandatory "other execution charges" fixture
    plumbing  = floor area × plumbing rate / sqft
    tiling    = tiles × tile cost  +  tiling area × labour rate / sqft
                tiling area = floor + 2 × (L + W) × wall height (8 ft)
                tiles       = ceil(ceil(area / 4) × (1 + breakage%))
    product   = Σ client price of the selected brand's products
    total     = fixtures + plumbing + tiling + product
"""
import logging
import math
from typing import Dict, Iterable, Optional, Tuple

from washroom_estimator.models.costing_results import EstimateResult, TilingCost
from washroom_estimator.models.pricing_schema import (
    EstimateSelections,
    Fixture,
    PricingSettings,
)
from washroom_estimator.services.perf_monitor import timed
from washroom_estimator.services.washroom_costing import BrandProducts, brand_product_total

logger = logging.getLogger("washroom-api.estimate")


# ---------------------------------------------------------------------------
# Fixture option → (catalog category, name keyword)
# ---------------------------------------------------------------------------
_FIXTURE_KEYWORDS: Dict[str, Tuple[str, str]] = {
    "led_mirror": ("electrical", "led mirror"),
    "exhaust_fan": ("electrical", "exhaust fan"),
    "water_heater": ("electrical", "water heater"),
    "complete_plumbing": ("plumbing", "complete plumbing"),
    "fixture_installation": ("plumbing", "fixture installation"),
    "shower_partition": ("additional", "shower partition"),
    "vanity": ("additional", "vanity"),
    "bathtub": ("additional", "bathtub"),
    "jacuzzi": ("additional", "jacuzzi"),
}

# Charged on every estimate
_MANDATORY_FIXTURE: Tuple[str, str] = ("additional", "other execution charges")

# float noise guard before ceil(): 100 × 1.1 is 110.00000000000001, not 111 tiles
_CEIL_PRECISION = 9


def _ceil(value: float) -> int:
    return int(math.ceil(round(value, _CEIL_PRECISION)))


class CalculatorEstimator:
    """Quick estimate for a single washroom from the public calculator."""

    def __init__(self, settings: Optional[PricingSettings] = None) -> None:
        self.settings = settings or PricingSettings()

    # ------------------------------------------------------------------
    # 1. Fixtures
    # ------------------------------------------------------------------

    def fixture_cost(self, selections: EstimateSelections, fixtures: Iterable[Fixture]) -> float:
        fixtures = list(fixtures)
        chosen = selections.fixtures.model_dump()
        total = 0.0

        for option, (category, keyword) in _FIXTURE_KEYWORDS.items():
            if not chosen.get(option):
                continue
            for fixture in fixtures:
                if fixture.category.lower() == category and keyword in fixture.name.lower():
                    total += fixture.client_price

        category, keyword = _MANDATORY_FIXTURE
        mandatory = next(
            (f for f in fixtures if f.category.lower() == category and keyword in f.name.lower()),
            None,
        )
        if mandatory is None:
            logger.warning("Mandatory 'other execution charges' fixture missing from catalog")
        else:
            total += mandatory.client_price
        return total

    # ------------------------------------------------------------------
    # 2. Plumbing
    # ------------------------------------------------------------------

    def plumbing_cost(self, length: float, width: float) -> float:
        return length * width * self.settings.plumbing_rate_per_sqft

    # ------------------------------------------------------------------
    # 3. Tiling
    # ------------------------------------------------------------------

    def tiling_cost(self, length: float, width: float) -> TilingCost:
        s = self.settings
        floor_area = length * width
        wall_area = 2.0 * (length + width) * s.wall_height_ft
        tiling_area = floor_area + wall_area

        base_tiles = _ceil(tiling_area / s.tile_coverage_sqft)
        tile_count = _ceil(base_tiles * (1.0 + s.breakage_percentage / 100.0))

        material_cost = tile_count * s.tile_cost_per_unit
        labor_cost = tiling_area * s.tiling_labor_per_sqft
        return TilingCost(
            tiling_area=tiling_area,
            tile_count=tile_count,
            material_cost=material_cost,
            labor_cost=labor_cost,
            total=material_cost + labor_cost,
        )

    # ------------------------------------------------------------------
    # 4. Roll-up
    # ------------------------------------------------------------------

    def calculate_estimate(
        self,
        selections: EstimateSelections,
        fixtures: Iterable[Fixture] = (),
        brand_products: Optional[BrandProducts] = None,
    ) -> EstimateResult:
        fixture_cost = self.fixture_cost(selections, fixtures)
        plumbing_cost = self.plumbing_cost(selections.length, selections.width)
        tiling = self.tiling_cost(selections.length, selections.width)
        product_cost = brand_product_total(selections.brand_id, brand_products or {})

        return EstimateResult(
            fixture_cost=fixture_cost,
            plumbing_cost=plumbing_cost,
            tiling_cost=tiling,
            product_cost=product_cost,
            total=fixture_cost + plumbing_cost + tiling.total + product_cost,
        )


@timed
def calculate_estimate(
    selections: EstimateSelections,
    fixtures: Iterable[Fixture] = (),
    brand_products: Optional[BrandProducts] = None,
    settings: Optional[PricingSettings] = None,
) -> EstimateResult:
    return CalculatorEstimator(settings).calculate_estimate(selections, fixtures, brand_products)
