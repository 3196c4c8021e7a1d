"""
Computed output records returned by the costing and quotation engines.

Amounts are left unrounded; ``services.currency`` rounds for display only.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from washroom_estimator.models.pricing_schema import QuotationLineItem


class AreaBreakdown(BaseModel):
    """Areas in square feet."""
    floor_area: float = 0.0
    wall_area: float = 0.0
    ceiling_area: float = 0.0
    total_area: float = 0.0


# ---------------------------------------------------------------------------
# Calculator estimate
# ---------------------------------------------------------------------------

class TilingCost(BaseModel):
    tiling_area: float = 0.0
    tile_count: int = 0
    material_cost: float = 0.0
    labor_cost: float = 0.0
    total: float = 0.0


class EstimateResult(BaseModel):
    fixture_cost: float = 0.0
    plumbing_cost: float = 0.0
    tiling_cost: TilingCost = Field(default_factory=TilingCost)
    product_cost: float = 0.0
    total: float = 0.0


# ---------------------------------------------------------------------------
# Washroom / project costing
# ---------------------------------------------------------------------------

class ServiceCostLine(BaseModel):
    """How one selected service was priced for one washroom."""
    service_id: str
    name: str = ""
    category: str = ""
    unit: str = ""
    rate: float = 0.0
    cost: float = 0.0
    found: bool = True
    used_formula: bool = False
    formula_error: Optional[str] = None


class WashroomCost(BaseModel):
    washroom_id: str
    washroom_name: str = ""
    areas: AreaBreakdown = Field(default_factory=AreaBreakdown)
    execution_subtotal: float = 0.0
    product_subtotal: float = 0.0
    total: float = 0.0
    service_costs: Dict[str, float] = Field(default_factory=dict)
    lines: List[ServiceCostLine] = Field(default_factory=list)
    service_details: Dict[str, List[str]] = Field(default_factory=dict)


class ProjectCostSummary(BaseModel):
    """
    Simple-mode cost summary.

    subtotal          = execution_services_total + product_cost + logistics_cost
    grand_total       = subtotal × (1 + margin%) + execution_services_total × GST%
    """
    execution_total: float = 0.0
    vendor_total: float = 0.0
    additional_total: float = 0.0
    execution_services_total: float = 0.0
    product_cost: float = 0.0
    logistics_cost: float = 0.0
    subtotal: float = 0.0
    margin_pct: float = 0.0
    margin_amount: float = 0.0
    price_with_margin: float = 0.0
    gst_rate_pct: float = 0.0
    gst_amount: float = 0.0
    grand_total: float = 0.0


class ProjectCosts(BaseModel):
    execution_total: float = 0.0
    vendor_total: float = 0.0
    additional_total: float = 0.0
    washroom_execution_total: float = 0.0
    product_cost: float = 0.0
    logistics_cost: float = 0.0
    floor_area: float = 0.0
    wall_area: float = 0.0
    total_area: float = 0.0
    per_washroom_costs: List[WashroomCost] = Field(default_factory=list)
    # settings tile material + tile laying rate, per ft² of floor
    combined_tiling_rate: float = 0.0
    # floor area × combined rate over washrooms with "tiling" selected; shown, not summed
    tiling_cost: float = 0.0
    summary: ProjectCostSummary = Field(default_factory=ProjectCostSummary)
    final_quotation_amount: float = 0.0


# ---------------------------------------------------------------------------
# Detailed (per-washroom) quotation pricing
# ---------------------------------------------------------------------------

class PricedLineItem(BaseModel):
    item: QuotationLineItem
    margin_amount: float = 0.0
    gst_amount: float = 0.0
    price_with_margin: float = 0.0
    total: float = 0.0


class WashroomPricing(BaseModel):
    washroom_id: Optional[str] = None
    washroom_name: str = ""
    margin_pct: float = 0.0
    base_price: float = 0.0
    margin_amount: float = 0.0
    price_with_margin: float = 0.0
    gst_amount: float = 0.0
    total_price: float = 0.0
    items: List[PricedLineItem] = Field(default_factory=list)


class ProjectPricingSummary(BaseModel):
    total_base_price: float = 0.0
    total_with_margin: float = 0.0
    total_gst: float = 0.0
    grand_total: float = 0.0
    average_margin: float = 0.0


class QuotationPricing(BaseModel):
    gst_rate_pct: float = 0.0
    per_washroom_pricing: List[WashroomPricing] = Field(default_factory=list)
    # lines not tied to any washroom (project-wide charges)
    shared_pricing: Optional[WashroomPricing] = None
    project_summary: ProjectPricingSummary = Field(default_factory=ProjectPricingSummary)


# ---------------------------------------------------------------------------
# Assembled quotation
# ---------------------------------------------------------------------------

class QuotationDisplayLine(BaseModel):
    name: str = ""
    description: str = ""
    unit: str = ""
    category: str = ""
    is_brand_product: bool = False
    mrp: float = 0.0
    special_price: float = 0.0
    gst_amount: float = 0.0


class CategoryGroup(BaseModel):
    category: str
    lines: List[QuotationDisplayLine] = Field(default_factory=list)
    mrp_subtotal: float = 0.0
    subtotal: float = 0.0


class WashroomQuotation(BaseModel):
    washroom_id: Optional[str] = None
    washroom_name: str = ""
    areas: Optional[AreaBreakdown] = None
    categories: List[CategoryGroup] = Field(default_factory=list)
    mrp_total: float = 0.0
    subtotal: float = 0.0


class QuotationSummary(BaseModel):
    mrp_total: float = 0.0
    special_price_subtotal: float = 0.0
    discount_amount: float = 0.0
    product_total: float = 0.0
    logistics_charge: float = 0.0
    pre_gst_subtotal: float = 0.0
    gst_amount: float = 0.0
    grand_total: float = 0.0


class Quotation(BaseModel):
    quotation_number: Optional[str] = None
    washrooms: List[WashroomQuotation] = Field(default_factory=list)
    summary: QuotationSummary = Field(default_factory=QuotationSummary)
    pricing: QuotationPricing = Field(default_factory=QuotationPricing)
    terms: str = ""
