"""Washroom-level cost aggregation: selected services + selected brand."""
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from washroom_estimator.models.costing_results import ServiceCostLine, WashroomCost
from washroom_estimator.models.pricing_schema import Product, Washroom
from washroom_estimator.services.area_calculator import washroom_areas
from washroom_estimator.services.item_cost_evaluator import evaluate_item_cost
from washroom_estimator.services.rate_resolver import ServiceCatalog

logger = logging.getLogger("washroom-api.washroom-costing")

BrandProducts = Mapping[str, Sequence[Product]]


def brand_product_total(brand_id: Optional[str], brand_products: BrandProducts) -> float:
    """Sum of the client prices of every product in ``brand_id``; 0 when unknown/empty."""
    if not brand_id:
        return 0.0
    products = brand_products.get(brand_id) or []
    if not products:
        logger.warning("Selected brand has no products; product cost is 0",
                       extra={"brand_id": brand_id})
        return 0.0
    return sum(product.price for product in products)


def group_service_details(lines: Sequence[ServiceCostLine]) -> Dict[str, List[str]]:
    """Selected service names grouped by catalog category, for display."""
    grouped: Dict[str, List[str]] = {}
    for line in lines:
        if not line.found:
            continue
        grouped.setdefault(line.category or "other", []).append(line.name or line.service_id)
    return grouped


def cost_washroom(
    washroom: Washroom,
    catalog: ServiceCatalog,
    brand_products: Optional[BrandProducts] = None,
) -> WashroomCost:
    """
    Price every selected service of ``washroom`` and add its brand's products.

    A washroom with nothing selected and no brand costs exactly 0.
    """
    areas = washroom_areas(washroom)
    lines: List[ServiceCostLine] = []
    service_costs: Dict[str, float] = {}

    for service_id in washroom.selected_service_ids():
        resolved = catalog.resolve(service_id)
        item_cost = evaluate_item_cost(
            resolved,
            areas,
            length=washroom.length,
            width=washroom.width,
            height=washroom.height,
            washroom_id=washroom.id,
        )
        service_costs[service_id] = item_cost.cost
        lines.append(ServiceCostLine(
            service_id=service_id,
            name=resolved.name,
            category=resolved.category,
            unit=resolved.unit,
            rate=resolved.rate,
            cost=item_cost.cost,
            found=resolved.found,
            used_formula=item_cost.used_formula,
            formula_error=item_cost.formula_error,
        ))

    execution_subtotal = sum(service_costs.values())
    product_subtotal = brand_product_total(washroom.selected_brand_id, brand_products or {})

    return WashroomCost(
        washroom_id=washroom.id,
        washroom_name=washroom.name,
        areas=areas,
        execution_subtotal=execution_subtotal,
        product_subtotal=product_subtotal,
        total=execution_subtotal + product_subtotal,
        service_costs=service_costs,
        lines=lines,
        service_details=group_service_details(lines),
    )
