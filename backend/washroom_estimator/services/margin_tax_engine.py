"""
MarginTaxEngine -- margin and GST layering for washroom quotations.

Two pricing policies coexist:

  Simple mode (customer-facing calculator / costing tab)
    subtotal        = execution + vendor + additional + product + logistics
    margin          = subtotal × margin%            (default 1.52 %)
    GST             = (execution + vendor + additional) × GST%
    grand total     = subtotal + margin + GST

  Detailed mode (internal quotation, per washroom)
    per line:  margin = amount × margin%   (service lines only, never brand products)
               GST    = (amount + margin) × GST%   (GST-applicable lines only)
    washroom totals are summed into the project summary.

Negative, missing or non-numeric percentages are treated as 0.  Nothing is
rounded here; see ``services.currency`` for display rounding.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from washroom_estimator.models.costing_results import (
    PricedLineItem,
    ProjectCostSummary,
    ProjectPricingSummary,
    QuotationPricing,
    WashroomPricing,
)
from washroom_estimator.models.pricing_schema import (
    PricingPolicy,
    QuotationLineItem,
    Washroom,
    coerce_non_negative,
)

logger = logging.getLogger("washroom-api.margin-tax")

MarginConfig = Union[None, float, Mapping[str, float]]

SHARED_BUCKET_NAME = "Project-wide items"


def _pct(value) -> float:
    return coerce_non_negative(value) / 100.0


class MarginTaxEngine:
    """
    Applies margin and GST.  Policy values come from ``PricingPolicy`` and can be
    overridden per call.
    """

    def __init__(self, policy: Optional[PricingPolicy] = None) -> None:
        self.policy = policy or PricingPolicy()

    # ------------------------------------------------------------------
    # 1. Simple mode
    # ------------------------------------------------------------------

    def simple_summary(
        self,
        execution_total: float,
        vendor_total: float,
        additional_total: float,
        product_cost: float,
        logistics_cost: float,
        margin_pct: Optional[float] = None,
        gst_rate_pct: Optional[float] = None,
    ) -> ProjectCostSummary:
        """
        Flat project summary.  GST is charged on the execution services total
        only; product and logistics are never taxed in this mode.
        """
        margin_pct = self.policy.simple_margin_pct if margin_pct is None else coerce_non_negative(margin_pct)
        gst_rate_pct = self.policy.gst_rate_pct if gst_rate_pct is None else coerce_non_negative(gst_rate_pct)

        execution_total = coerce_non_negative(execution_total)
        vendor_total = coerce_non_negative(vendor_total)
        additional_total = coerce_non_negative(additional_total)
        product_cost = coerce_non_negative(product_cost)
        logistics_cost = coerce_non_negative(logistics_cost)

        execution_services_total = execution_total + vendor_total + additional_total
        subtotal = execution_services_total + product_cost + logistics_cost
        margin_amount = subtotal * margin_pct / 100.0
        price_with_margin = subtotal + margin_amount
        gst_amount = execution_services_total * gst_rate_pct / 100.0

        return ProjectCostSummary(
            execution_total=execution_total,
            vendor_total=vendor_total,
            additional_total=additional_total,
            execution_services_total=execution_services_total,
            product_cost=product_cost,
            logistics_cost=logistics_cost,
            subtotal=subtotal,
            margin_pct=margin_pct,
            margin_amount=margin_amount,
            price_with_margin=price_with_margin,
            gst_rate_pct=gst_rate_pct,
            gst_amount=gst_amount,
            grand_total=price_with_margin + gst_amount,
        )

    # ------------------------------------------------------------------
    # 2. Detailed mode
    # ------------------------------------------------------------------

    @staticmethod
    def price_line(item: QuotationLineItem, margin_pct: float, gst_rate_pct: float) -> PricedLineItem:
        margin_amount = 0.0 if item.is_brand_product else item.amount * _pct(margin_pct)
        price_with_margin = item.amount + margin_amount
        gst_amount = price_with_margin * _pct(gst_rate_pct) if item.gst_applicable else 0.0
        return PricedLineItem(
            item=item,
            margin_amount=margin_amount,
            gst_amount=gst_amount,
            price_with_margin=price_with_margin,
            total=price_with_margin + gst_amount,
        )

    def price_washroom(
        self,
        items: Iterable[QuotationLineItem],
        margin_pct: float,
        gst_rate_pct: float,
        washroom_id: Optional[str] = None,
        washroom_name: str = "",
    ) -> WashroomPricing:
        margin_pct = coerce_non_negative(margin_pct)
        priced = [self.price_line(item, margin_pct, gst_rate_pct) for item in items]

        base_price = sum(line.item.amount for line in priced)
        margin_amount = sum(line.margin_amount for line in priced)
        gst_amount = sum(line.gst_amount for line in priced)
        price_with_margin = base_price + margin_amount

        return WashroomPricing(
            washroom_id=washroom_id,
            washroom_name=washroom_name,
            margin_pct=margin_pct,
            base_price=base_price,
            margin_amount=margin_amount,
            price_with_margin=price_with_margin,
            gst_amount=gst_amount,
            total_price=price_with_margin + gst_amount,
            items=priced,
        )

    def generate_quotation_pricing(
        self,
        washrooms: Sequence[Washroom],
        line_items: Sequence[QuotationLineItem],
        margins: MarginConfig = None,
        gst_rate_pct: Optional[float] = None,
        default_margin_pct: float = 0.0,
    ) -> QuotationPricing:
        """
        Per-washroom internal pricing plus a project summary.

        ``margins`` is either one global percentage or a ``{washroom_id: pct}``
        map; washrooms absent from the map get ``default_margin_pct``.  Lines
        without a (known) washroom are priced once in a shared bucket at the
        default margin rather than being repeated in every washroom.
        """
        gst_rate_pct = self.policy.gst_rate_pct if gst_rate_pct is None else coerce_non_negative(gst_rate_pct)
        known_ids = {washroom.id for washroom in washrooms}

        by_washroom: Dict[str, List[QuotationLineItem]] = {wid: [] for wid in known_ids}
        shared: List[QuotationLineItem] = []
        for item in line_items:
            if item.washroom_id in known_ids:
                by_washroom[item.washroom_id].append(item)
            else:
                if item.washroom_id:
                    logger.warning("Line item references unknown washroom; pricing it as shared",
                                   extra={"washroom_id": item.washroom_id})
                shared.append(item)

        per_washroom = [
            self.price_washroom(
                by_washroom[washroom.id],
                self._margin_for(washroom.id, margins, default_margin_pct),
                gst_rate_pct,
                washroom_id=washroom.id,
                washroom_name=washroom.name,
            )
            for washroom in washrooms
        ]
        shared_pricing = None
        if shared:
            shared_pricing = self.price_washroom(
                shared, self._margin_for("", margins, default_margin_pct), gst_rate_pct,
                washroom_name=SHARED_BUCKET_NAME,
            )

        buckets = per_washroom + ([shared_pricing] if shared_pricing else [])
        return QuotationPricing(
            gst_rate_pct=gst_rate_pct,
            per_washroom_pricing=per_washroom,
            shared_pricing=shared_pricing,
            project_summary=summarize_pricing(buckets),
        )

    @staticmethod
    def _margin_for(washroom_id: str, margins: MarginConfig, default_margin_pct: float) -> float:
        if margins is None:
            return coerce_non_negative(default_margin_pct)
        if isinstance(margins, Mapping):
            return coerce_non_negative(margins.get(washroom_id, default_margin_pct))
        return coerce_non_negative(margins)


def summarize_pricing(buckets: Iterable[WashroomPricing]) -> ProjectPricingSummary:
    """Roll washroom pricing up to project level; average margin is audit-only."""
    buckets = list(buckets)
    total_base = sum(b.base_price for b in buckets)
    total_with_margin = sum(b.price_with_margin for b in buckets)
    total_gst = sum(b.gst_amount for b in buckets)
    average_margin = 0.0
    if total_base > 0:
        average_margin = (total_with_margin - total_base) / total_base * 100.0
    return ProjectPricingSummary(
        total_base_price=total_base,
        total_with_margin=total_with_margin,
        total_gst=total_gst,
        grand_total=total_with_margin + total_gst,
        average_margin=average_margin,
    )


def generate_quotation_pricing(
    washrooms: Sequence[Washroom],
    line_items: Sequence[QuotationLineItem],
    margins: MarginConfig = None,
    gst_rate: Optional[float] = None,
    policy: Optional[PricingPolicy] = None,
    default_margin_pct: float = 0.0,
) -> QuotationPricing:
    """Module-level shortcut for ``MarginTaxEngine(policy).generate_quotation_pricing``."""
    return MarginTaxEngine(policy).generate_quotation_pricing(
        washrooms, line_items, margins=margins, gst_rate_pct=gst_rate,
        default_margin_pct=default_margin_pct,
    )
