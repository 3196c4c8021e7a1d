"""
Costing routes -- thin HTTP adapter over the pricing engine.

POST /api/costing/estimate            customer calculator quick estimate
POST /api/costing/projects/costs      per-washroom + project costing, save payload
POST /api/costing/quotation-pricing   margin / GST layer (internal pricing)
POST /api/costing/quotation           assembled quotation (line items → summary)
"""
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from washroom_estimator.db import get_db
from washroom_estimator.models.costing_results import (
    EstimateResult,
    ProjectCosts,
    Quotation,
    QuotationPricing,
)
from washroom_estimator.models.pricing_schema import (
    CostItem,
    EstimateSelections,
    PricingPolicy,
    QuotationLineItem,
    Washroom,
)
from washroom_estimator.services.estimate_engine import calculate_estimate
from washroom_estimator.services.margin_tax_engine import generate_quotation_pricing
from washroom_estimator.services.pricing_repository import PricingRepository
from washroom_estimator.services.project_costing import (
    build_cost_update_payload,
    calculate_project_costs,
)
from washroom_estimator.services.quotation_assembler import (
    assemble_quotation,
    build_line_items,
    quotation_number,
)
from washroom_estimator.services.rate_resolver import ServiceCatalog

router = APIRouter(prefix="/api/costing", tags=["Costing"])
logger = logging.getLogger("washroom-api.costing-routes")


# ── Dependencies ─────────────────────────────────────────────────────────────

async def get_pricing_repository(db: AsyncSession = Depends(get_db)) -> PricingRepository:
    return PricingRepository(db)


def get_pricing_policy() -> PricingPolicy:
    return PricingPolicy.from_env()


async def _fetch(awaitable, what: str):
    """Await a collaborator fetch; storage failures become 503."""
    try:
        return await awaitable
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Failed to load %s: %s", what, exc)
        raise HTTPException(status_code=503, detail=f"Unable to load {what}") from exc


# ── Pydantic Models ─────────────────────────────────────────────────────────

class ProjectCostsRequest(BaseModel):
    washrooms: List[Washroom] = Field(default_factory=list)
    cost_items: List[CostItem] = Field(default_factory=list)
    product_cost_override: Optional[float] = None
    logistics_cost_override: Optional[float] = None
    margin_pct: Optional[float] = None
    gst_rate_pct: Optional[float] = None


class ProjectCostsResponse(BaseModel):
    costs: ProjectCosts
    update_payload: Dict[str, Any]


class QuotationPricingRequest(BaseModel):
    washrooms: List[Washroom] = Field(default_factory=list)
    line_items: List[QuotationLineItem] = Field(default_factory=list)
    margins: Union[Dict[str, float], float, None] = None
    gst_rate: Optional[float] = None
    default_margin_pct: float = 0.0


class QuotationRequest(BaseModel):
    washrooms: List[Washroom] = Field(default_factory=list)
    # built from the catalog and selected brands when omitted
    line_items: Optional[List[QuotationLineItem]] = None
    margins: Union[Dict[str, float], float, None] = None
    gst_rate: Optional[float] = None
    default_margin_pct: float = 0.0
    project_code: Optional[str] = None
    sequence: int = 1
    terms: Optional[str] = None


# ── Routes ──────────────────────────────────────────────────────────────────

@router.post("/estimate", response_model=EstimateResult)
async def estimate(
    selections: EstimateSelections,
    repo: PricingRepository = Depends(get_pricing_repository),
):
    """Quick estimate for the public calculator."""
    settings = await _fetch(repo.fetch_settings(), "settings")
    fixtures = await _fetch(repo.fetch_fixtures(), "fixtures")
    brand_products = await _fetch(repo.fetch_brand_products([selections.brand_id]), "brand products")
    return calculate_estimate(selections, fixtures, brand_products, settings)


@router.post("/projects/costs", response_model=ProjectCostsResponse)
async def project_costs(
    req: ProjectCostsRequest,
    repo: PricingRepository = Depends(get_pricing_repository),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    """Detailed internal costing plus the record to store on save."""
    catalog = await _fetch(repo.fetch_service_catalog(), "service catalog")
    brand_products = await _fetch(
        repo.fetch_brand_products(w.selected_brand_id for w in req.washrooms), "brand products",
    )
    settings = await _fetch(repo.fetch_settings(), "settings")
    costs = calculate_project_costs(
        req.washrooms,
        req.cost_items,
        catalog,
        brand_products,
        product_cost_override=req.product_cost_override,
        logistics_cost_override=req.logistics_cost_override,
        margin_pct=req.margin_pct,
        gst_rate_pct=req.gst_rate_pct,
        policy=policy,
        settings=settings,
    )
    return ProjectCostsResponse(
        costs=costs,
        update_payload=build_cost_update_payload(costs, req.cost_items),
    )


@router.post("/quotation-pricing", response_model=QuotationPricing)
async def quotation_pricing(
    req: QuotationPricingRequest,
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    """Per-washroom margin + GST; needs no catalog."""
    return generate_quotation_pricing(
        req.washrooms,
        req.line_items,
        margins=req.margins,
        gst_rate=req.gst_rate,
        policy=policy,
        default_margin_pct=req.default_margin_pct,
    )


@router.post("/quotation", response_model=Quotation)
async def quotation(
    req: QuotationRequest,
    repo: PricingRepository = Depends(get_pricing_repository),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    """Full quotation: line items, internal pricing, category groups and summary."""
    line_items = req.line_items
    if line_items is None:
        catalog = await _fetch(repo.fetch_service_catalog(), "service catalog")
        brand_products = await _fetch(
            repo.fetch_brand_products(w.selected_brand_id for w in req.washrooms), "brand products",
        )
        line_items = build_line_items(req.washrooms, ServiceCatalog(catalog), brand_products, policy)

    pricing = generate_quotation_pricing(
        req.washrooms,
        line_items,
        margins=req.margins,
        gst_rate=req.gst_rate,
        policy=policy,
        default_margin_pct=req.default_margin_pct,
    )
    number = quotation_number(req.project_code, req.sequence) if req.project_code else None
    return assemble_quotation(req.washrooms, pricing, policy, number=number, terms=req.terms)
