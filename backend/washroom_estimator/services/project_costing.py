"""
Project-level cost aggregation.

    execution total   = Σ ad hoc execution items + Σ washroom service subtotals
    vendor total      = Σ ad hoc vendor items
    additional total  = Σ ad hoc additional items
    product cost      = Σ washroom brand totals          (or an explicit override)
    logistics cost    = product cost × logistics%         (or an explicit override)
    tiling cost       = Σ floor area × (tile cost + tile laying rate), tiling washrooms only

The flat summary (margin, GST, grand total) comes from the simple mode of
``MarginTaxEngine``; its grand total is the project's final quotation amount.
The tiling cost is a settings-rate reference figure for the execution view and
is not part of any total.
"""
import logging
from typing import Any, Dict, Iterable, Optional, Sequence, Union

from washroom_estimator.models.costing_results import ProjectCosts
from washroom_estimator.models.pricing_schema import (
    CostCategory,
    CostItem,
    PricingPolicy,
    PricingSettings,
    ServiceItem,
    Washroom,
    coerce_non_negative,
)
from washroom_estimator.services.cost_items import to_storage, totals_by_category
from washroom_estimator.services.margin_tax_engine import MarginTaxEngine
from washroom_estimator.services.perf_monitor import timed
from washroom_estimator.services.rate_resolver import ServiceCatalog
from washroom_estimator.services.washroom_costing import BrandProducts, cost_washroom

logger = logging.getLogger("washroom-api.project-costing")


def logistics_charge(product_cost: float, policy: Optional[PricingPolicy] = None) -> float:
    """Logistics / creative service charge on brand products (7.5 % by default)."""
    policy = policy or PricingPolicy()
    return coerce_non_negative(product_cost) * policy.logistics_pct / 100.0


TILING_SERVICE_ID = "tiling"


def combined_tiling_rate(settings: Optional[PricingSettings] = None) -> float:
    settings = settings or PricingSettings()
    return settings.tile_cost_per_unit + settings.tiling_labor_per_sqft


@timed
def calculate_project_costs(
    washrooms: Sequence[Washroom],
    cost_items: Iterable[CostItem] = (),
    catalog: Union[ServiceCatalog, Iterable[ServiceItem]] = (),
    brand_products: Optional[BrandProducts] = None,
    product_cost_override: Optional[float] = None,
    logistics_cost_override: Optional[float] = None,
    margin_pct: Optional[float] = None,
    gst_rate_pct: Optional[float] = None,
    policy: Optional[PricingPolicy] = None,
    settings: Optional[PricingSettings] = None,
) -> ProjectCosts:
    """
    Cost every washroom and roll the results up with the ad hoc cost items.

    Pure: identical inputs give identical output; nothing is cached.
    """
    policy = policy or PricingPolicy()
    if not isinstance(catalog, ServiceCatalog):
        catalog = ServiceCatalog(catalog)

    per_washroom = [cost_washroom(washroom, catalog, brand_products) for washroom in washrooms]
    ad_hoc = totals_by_category(cost_items)

    washroom_execution_total = sum(w.execution_subtotal for w in per_washroom)
    execution_total = ad_hoc[CostCategory.EXECUTION] + washroom_execution_total
    vendor_total = ad_hoc[CostCategory.VENDOR]
    additional_total = ad_hoc[CostCategory.ADDITIONAL]

    if product_cost_override is not None:
        product_cost = coerce_non_negative(product_cost_override)
    else:
        product_cost = sum(w.product_subtotal for w in per_washroom)

    if logistics_cost_override is not None:
        logistics_cost = coerce_non_negative(logistics_cost_override)
    else:
        logistics_cost = logistics_charge(product_cost, policy)

    summary = MarginTaxEngine(policy).simple_summary(
        execution_total,
        vendor_total,
        additional_total,
        product_cost,
        logistics_cost,
        margin_pct=margin_pct,
        gst_rate_pct=gst_rate_pct,
    )

    floor_area = sum(w.areas.floor_area for w in per_washroom)
    wall_area = sum(w.areas.wall_area for w in per_washroom)

    tiling_rate = combined_tiling_rate(settings)
    tiling_floor_area = sum(
        cost.areas.floor_area
        for washroom, cost in zip(washrooms, per_washroom)
        if washroom.services.get(TILING_SERVICE_ID)
    )

    logger.info(
        "Project costed: %d washrooms, grand total %.2f", len(per_washroom), summary.grand_total,
    )
    return ProjectCosts(
        execution_total=execution_total,
        vendor_total=vendor_total,
        additional_total=additional_total,
        washroom_execution_total=washroom_execution_total,
        product_cost=product_cost,
        logistics_cost=logistics_cost,
        floor_area=floor_area,
        wall_area=wall_area,
        total_area=floor_area + wall_area,
        per_washroom_costs=per_washroom,
        combined_tiling_rate=tiling_rate,
        tiling_cost=tiling_floor_area * tiling_rate,
        summary=summary,
        final_quotation_amount=summary.grand_total,
    )


def build_cost_update_payload(costs: ProjectCosts, cost_items: Iterable[CostItem]) -> Dict[str, Any]:
    """Record handed to the persistence layer when the costing tab is saved."""
    payload: Dict[str, Any] = to_storage(cost_items)
    payload["final_quotation_amount"] = costs.final_quotation_amount
    return payload
