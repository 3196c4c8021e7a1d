"""
Quotation assembly.

Turns priced line items (see ``MarginTaxEngine.generate_quotation_pricing``)
into the structure the document renderer and the persistence layer consume:

    per washroom → per category → display lines (MRP, special price, GST)

Project summary:
    special price subtotal = Σ (amount + margin)
    logistics charge       = Σ brand product amounts × logistics%   (not taxed)
    pre-GST subtotal       = special price subtotal + logistics charge
    grand total            = pre-GST subtotal + GST
    MRP total              = Σ (line MRP, or special price × 1.2 when the line has none)

No rendering and no storage happen here.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from washroom_estimator.models.costing_results import (
    CategoryGroup,
    PricedLineItem,
    Quotation,
    QuotationDisplayLine,
    QuotationPricing,
    QuotationSummary,
    WashroomCost,
    WashroomPricing,
    WashroomQuotation,
)
from washroom_estimator.models.pricing_schema import (
    PricingPolicy,
    QuotationLineItem,
    Washroom,
)
from washroom_estimator.services.area_calculator import washroom_areas
from washroom_estimator.services.perf_monitor import timed
from washroom_estimator.services.project_costing import logistics_charge
from washroom_estimator.services.rate_resolver import ServiceCatalog
from washroom_estimator.services.washroom_costing import BrandProducts, cost_washroom

logger = logging.getLogger("washroom-api.quotation")

BRAND_PRODUCT_CATEGORY = "Brand Products"

DEFAULT_TERMS = (
    "1. This quotation is valid for 30 days.\n"
    "2. 50% advance required to start work.\n"
    "3. Project timeline will be finalized upon confirmation.\n"
    "4. Material specifications as per the quotation only."
)


def quotation_number(project_code: str, sequence: int, on_date: Optional[date] = None) -> str:
    """``QUO-<project code>-<YYYYMMDD>-<n>``; ``sequence`` is 1 for a project's first quotation."""
    on_date = on_date or date.today()
    return f"QUO-{project_code}-{on_date:%Y%m%d}-{max(1, int(sequence))}"


# ---------------------------------------------------------------------------
# 1. Line items from costed washrooms
# ---------------------------------------------------------------------------

def build_line_items(
    washrooms: Sequence[Washroom],
    catalog: ServiceCatalog,
    brand_products: Optional[BrandProducts] = None,
    policy: Optional[PricingPolicy] = None,
    washroom_costs: Optional[Sequence[WashroomCost]] = None,
) -> List[QuotationLineItem]:
    """
    One line per selected service (at its evaluated cost) and one line per
    product of each washroom's selected brand.  Services left at zero cost
    because their id is unknown are dropped.
    """
    policy = policy or PricingPolicy()
    brand_products = brand_products or {}
    costs_by_id: Dict[str, WashroomCost] = {c.washroom_id: c for c in (washroom_costs or [])}

    items: List[QuotationLineItem] = []
    for washroom in washrooms:
        costed = costs_by_id.get(washroom.id) or cost_washroom(washroom, catalog, brand_products)
        for line in costed.lines:
            if not line.found:
                continue
            items.append(QuotationLineItem(
                id=line.service_id,
                name=line.name,
                description=line.category,
                amount=line.cost,
                unit=line.unit,
                category=line.category,
                washroom_id=washroom.id,
            ))
        for product in brand_products.get(washroom.selected_brand_id or "") or []:
            items.append(QuotationLineItem(
                id=product.id,
                name=product.name,
                amount=product.price,
                mrp=product.mrp,
                unit="nos",
                category=BRAND_PRODUCT_CATEGORY,
                washroom_id=washroom.id,
                is_brand_product=True,
                gst_applicable=policy.brand_products_gst_applicable,
            ))
    return items


# ---------------------------------------------------------------------------
# 2. Grouping
# ---------------------------------------------------------------------------

def _display_line(priced: PricedLineItem, policy: PricingPolicy) -> QuotationDisplayLine:
    item = priced.item
    mrp = item.mrp if item.mrp is not None else priced.price_with_margin * policy.mrp_fallback_markup
    return QuotationDisplayLine(
        name=item.name,
        description=item.description,
        unit=item.unit,
        category=item.category,
        is_brand_product=item.is_brand_product,
        mrp=mrp,
        special_price=priced.price_with_margin,
        gst_amount=priced.gst_amount,
    )


def group_by_category(
    priced_items: Iterable[PricedLineItem],
    policy: Optional[PricingPolicy] = None,
) -> List[CategoryGroup]:
    """Category groups in first-seen order, each with MRP and special-price subtotals."""
    policy = policy or PricingPolicy()
    groups: Dict[str, CategoryGroup] = {}
    for priced in priced_items:
        category = priced.item.category or "Other"
        group = groups.get(category)
        if group is None:
            group = groups[category] = CategoryGroup(category=category)
        line = _display_line(priced, policy)
        group.lines.append(line)
        group.mrp_subtotal += line.mrp
        group.subtotal += line.special_price
    return list(groups.values())


def _washroom_block(
    bucket: WashroomPricing,
    policy: PricingPolicy,
    washrooms_by_id: Mapping[str, Washroom],
) -> WashroomQuotation:
    categories = group_by_category(bucket.items, policy)
    washroom = washrooms_by_id.get(bucket.washroom_id or "")
    return WashroomQuotation(
        washroom_id=bucket.washroom_id,
        washroom_name=bucket.washroom_name,
        areas=washroom_areas(washroom) if washroom is not None else None,
        categories=categories,
        mrp_total=sum(g.mrp_subtotal for g in categories),
        subtotal=sum(g.subtotal for g in categories),
    )


# ---------------------------------------------------------------------------
# 3. Assembly
# ---------------------------------------------------------------------------

@timed
def assemble_quotation(
    washrooms: Sequence[Washroom],
    pricing: QuotationPricing,
    policy: Optional[PricingPolicy] = None,
    number: Optional[str] = None,
    terms: Optional[str] = None,
) -> Quotation:
    """Package priced line items into per-washroom, per-category blocks plus a summary."""
    policy = policy or PricingPolicy()
    washrooms_by_id = {w.id: w for w in washrooms}

    buckets = list(pricing.per_washroom_pricing)
    if pricing.shared_pricing is not None:
        buckets.append(pricing.shared_pricing)
    blocks = [_washroom_block(bucket, policy, washrooms_by_id) for bucket in buckets]

    all_items = [priced for bucket in buckets for priced in bucket.items]
    product_total = sum(p.item.amount for p in all_items if p.item.is_brand_product)
    logistics = logistics_charge(product_total, policy)
    special_subtotal = sum(block.subtotal for block in blocks)
    mrp_total = sum(block.mrp_total for block in blocks)
    gst_amount = pricing.project_summary.total_gst
    pre_gst = special_subtotal + logistics

    summary = QuotationSummary(
        mrp_total=mrp_total,
        special_price_subtotal=special_subtotal,
        discount_amount=max(0.0, mrp_total - special_subtotal),
        product_total=product_total,
        logistics_charge=logistics,
        pre_gst_subtotal=pre_gst,
        gst_amount=gst_amount,
        grand_total=pre_gst + gst_amount,
    )
    logger.info("Quotation assembled: %d blocks, grand total %.2f", len(blocks), summary.grand_total)
    return Quotation(
        quotation_number=number,
        washrooms=blocks,
        summary=summary,
        pricing=pricing,
        terms=DEFAULT_TERMS if terms is None else terms,
    )
