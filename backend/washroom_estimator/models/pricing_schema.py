"""
Pricing input records for the washroom costing engine.

Every record here is a transient computation input: the persistence layer
hands them over by value and the engine never mutates them.  Numeric fields
are coerced on the way in -- ``None``, NaN, infinities and non-numeric
strings become 0.0 so a half-filled editing form never poisons a total.
"""
import math
import os
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


DEFAULT_WALL_HEIGHT_FT: float = 8.0


def coerce_amount(value: Any) -> float:
    """Return ``value`` as a finite float, or 0.0 when it is missing or junk."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def coerce_non_negative(value: Any) -> float:
    """Like :func:`coerce_amount` but negative values clamp to 0.0."""
    return max(0.0, coerce_amount(value))


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Washroom
# ---------------------------------------------------------------------------

class Washroom(BaseModel):
    """
    One bathroom unit within a project.

    Dimensions are in feet.  ``wall_area_override`` / ``ceiling_area_override``
    hold manually entered areas that win over the derived values until the
    dimensions next change (see ``area_calculator.update_dimensions``).
    """
    id: str
    name: str = ""
    length: float = 0.0
    width: float = 0.0
    height: float = DEFAULT_WALL_HEIGHT_FT
    wall_area_override: Optional[float] = None
    ceiling_area_override: Optional[float] = None
    services: Dict[str, bool] = Field(default_factory=dict)
    selected_brand_id: Optional[str] = None
    service_details: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("length", "width", mode="before")
    @classmethod
    def _clamp_dimension(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("height", mode="before")
    @classmethod
    def _clamp_height(cls, v: Any) -> float:
        if v is None:
            return DEFAULT_WALL_HEIGHT_FT
        return coerce_non_negative(v)

    @field_validator("wall_area_override", "ceiling_area_override", mode="before")
    @classmethod
    def _clamp_override(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        return coerce_non_negative(v)

    @field_validator("services", mode="before")
    @classmethod
    def _coerce_services(cls, v: Any) -> Dict[str, bool]:
        return {str(k): bool(flag) for k, flag in (v or {}).items()}

    @field_validator("selected_brand_id", mode="before")
    @classmethod
    def _blank_brand_is_none(cls, v: Any) -> Optional[str]:
        return v or None

    def selected_service_ids(self) -> List[str]:
        """Service ids whose flag is on, in insertion order."""
        return [service_id for service_id, selected in self.services.items() if selected]


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------

class ServiceItem(BaseModel):
    """A priceable execution service / vendor item ("scope of work")."""
    id: str
    name: str = ""
    category: str = ""
    unit: str = ""
    rate: float = 0.0
    formula: Optional[str] = None

    @field_validator("name", "category", "unit", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> str:
        return _text(v)

    @field_validator("rate", mode="before")
    @classmethod
    def _clamp_rate(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("formula", mode="before")
    @classmethod
    def _blank_formula_is_none(cls, v: Any) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        return str(v)


class Product(BaseModel):
    """A brand product.  ``price`` is the client-facing (special) price."""
    id: Optional[str] = None
    brand_id: Optional[str] = None
    name: str = ""
    price: float = 0.0
    mrp: Optional[float] = None

    @field_validator("price", mode="before")
    @classmethod
    def _clamp_price(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("mrp", mode="before")
    @classmethod
    def _clamp_mrp(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        mrp = coerce_non_negative(v)
        return mrp or None


class Fixture(BaseModel):
    """A calculator fixture (LED mirror, vanity, ...) with its client price."""
    id: Optional[str] = None
    name: str = ""
    category: str = ""
    client_price: float = 0.0

    @field_validator("client_price", mode="before")
    @classmethod
    def _clamp_price(cls, v: Any) -> float:
        return coerce_non_negative(v)


# ---------------------------------------------------------------------------
# Ad hoc cost items
# ---------------------------------------------------------------------------

class CostCategory(str, Enum):
    EXECUTION = "execution"
    VENDOR = "vendor"
    ADDITIONAL = "additional"


class CostItem(BaseModel):
    """An ad hoc project-level cost line entered during an editing session."""
    id: str
    name: str = ""
    description: str = ""
    amount: float = 0.0
    category: CostCategory

    @field_validator("name", "description", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> str:
        return _text(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _clamp_amount(cls, v: Any) -> float:
        return coerce_non_negative(v)


# ---------------------------------------------------------------------------
# Quotation line items
# ---------------------------------------------------------------------------

class QuotationLineItem(BaseModel):
    """
    One priced line of a quotation.

    Brand products carry ``is_brand_product=True`` and are never margined;
    ``gst_applicable`` decides whether GST is charged on the line.
    """
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    amount: float = 0.0
    mrp: Optional[float] = None
    unit: str = ""
    category: str = ""
    washroom_id: Optional[str] = None
    is_brand_product: bool = False
    gst_applicable: bool = True

    @field_validator("name", "description", "unit", "category", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> str:
        return _text(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _clamp_amount(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("mrp", mode="before")
    @classmethod
    def _clamp_mrp(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return coerce_non_negative(v) or None

    @field_validator("washroom_id", mode="before")
    @classmethod
    def _blank_washroom_is_none(cls, v: Any) -> Optional[str]:
        return v or None


# ---------------------------------------------------------------------------
# Calculator selections
# ---------------------------------------------------------------------------

class FixtureSelections(BaseModel):
    led_mirror: bool = False
    exhaust_fan: bool = False
    water_heater: bool = False
    complete_plumbing: bool = False
    fixture_installation: bool = False
    shower_partition: bool = False
    vanity: bool = False
    bathtub: bool = False
    jacuzzi: bool = False


class EstimateSelections(BaseModel):
    """What the customer-facing calculator collects before estimating."""
    length: float = 0.0
    width: float = 0.0
    fixtures: FixtureSelections = Field(default_factory=FixtureSelections)
    brand_id: Optional[str] = None

    @field_validator("length", "width", mode="before")
    @classmethod
    def _clamp_dimension(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("brand_id", mode="before")
    @classmethod
    def _blank_brand_is_none(cls, v: Any) -> Optional[str]:
        return v or None


# ---------------------------------------------------------------------------
# Settings & policy
# ---------------------------------------------------------------------------

class PricingSettings(BaseModel):
    """Global rates used by the calculator-path estimator."""
    plumbing_rate_per_sqft: float = 150.0
    tile_cost_per_unit: float = 80.0
    tiling_labor_per_sqft: float = 85.0
    breakage_percentage: float = 10.0
    wall_height_ft: float = DEFAULT_WALL_HEIGHT_FT
    tile_coverage_sqft: float = 4.0     # one 2x2 ft tile

    @field_validator(
        "plumbing_rate_per_sqft", "tile_cost_per_unit", "tiling_labor_per_sqft",
        "breakage_percentage", "wall_height_ft", mode="before",
    )
    @classmethod
    def _clamp(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("tile_coverage_sqft", mode="before")
    @classmethod
    def _positive_coverage(cls, v: Any) -> float:
        return coerce_non_negative(v) or 4.0


# env var → PricingPolicy field
_POLICY_ENV_VARS: Dict[str, str] = {
    "gst_rate_pct": "GST_RATE_PCT",
    "simple_margin_pct": "SIMPLE_MARGIN_PCT",
    "logistics_pct": "LOGISTICS_PCT",
    "mrp_fallback_markup": "MRP_FALLBACK_MARKUP",
    "brand_products_gst_applicable": "BRAND_PRODUCTS_GST_APPLICABLE",
}


class PricingPolicy(BaseModel):
    """
    Commercial policy knobs shared by the margin/tax engine and the
    quotation assembler.  Negative or junk percentages mean "no charge".
    """
    gst_rate_pct: float = 18.0
    simple_margin_pct: float = 1.52
    logistics_pct: float = 7.5
    mrp_fallback_markup: float = 1.2
    brand_products_gst_applicable: bool = False

    @field_validator("gst_rate_pct", "simple_margin_pct", "logistics_pct", mode="before")
    @classmethod
    def _clamp_pct(cls, v: Any) -> float:
        return coerce_non_negative(v)

    @field_validator("mrp_fallback_markup", mode="before")
    @classmethod
    def _markup_at_least_one(cls, v: Any) -> float:
        return max(1.0, coerce_amount(v))

    @classmethod
    def from_env(cls) -> "PricingPolicy":
        """Build a policy from ``GST_RATE_PCT``-style env vars over the defaults."""
        overrides: Dict[str, Any] = {}
        for field_name, env_var in _POLICY_ENV_VARS.items():
            raw = os.getenv(env_var, "").strip()
            if raw:
                overrides[field_name] = raw
        return cls(**overrides)
