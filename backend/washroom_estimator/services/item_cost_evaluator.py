"""
Per-item cost evaluation for one selected service in one washroom.

Order of precedence:
  1. Custom formula, when the item has one that compiled.
  2. Unit rule:
       area units ("sqft", "sft", "sq ft", "square")  → rate × (floor + wall)
       "bathroom" units                               → rate, once per washroom
       anything else                                  → rate (flat)

A formula that fails at evaluation time falls back to the unit rule.  The
returned cost is always finite and ≥ 0; anything else is clamped and logged.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from washroom_estimator.models.costing_results import AreaBreakdown
from washroom_estimator.services.formula_engine import FormulaBindings, FormulaError
from washroom_estimator.services.rate_resolver import ResolvedRate, UnitKind

logger = logging.getLogger("washroom-api.item-cost")


@dataclass(frozen=True)
class ItemCost:
    cost: float
    used_formula: bool = False
    formula_error: Optional[str] = None


def unit_rule_cost(rate: float, unit_kind: UnitKind, areas: AreaBreakdown) -> float:
    if unit_kind == UnitKind.AREA:
        return rate * (areas.floor_area + areas.wall_area)
    return rate


def _clamp(value: float, service_id: str, washroom_id: Optional[str]) -> float:
    if not math.isfinite(value) or value < 0:
        logger.warning(
            "Item cost %r clamped to 0", value,
            extra={"service_id": service_id, "washroom_id": washroom_id},
        )
        return 0.0
    return value


def evaluate_item_cost(
    resolved: ResolvedRate,
    areas: AreaBreakdown,
    length: float = 0.0,
    width: float = 0.0,
    height: float = 0.0,
    washroom_id: Optional[str] = None,
) -> ItemCost:
    """Cost one resolved catalog item against a washroom's areas and dimensions."""
    formula_error = resolved.formula_error

    if resolved.formula is not None:
        bindings = FormulaBindings(
            floor_area=areas.floor_area,
            wall_area=areas.wall_area,
            length=length,
            width=width,
            height=height,
            rate=resolved.rate,
        )
        try:
            value = resolved.formula.evaluate(bindings)
        except FormulaError as exc:
            formula_error = str(exc)
            logger.warning(
                "Custom formula failed, falling back to unit rule: %s", exc,
                extra={"service_id": resolved.service_id, "washroom_id": washroom_id},
            )
        else:
            return ItemCost(
                cost=_clamp(value, resolved.service_id, washroom_id),
                used_formula=True,
            )

    value = unit_rule_cost(resolved.rate, resolved.unit_kind, areas)
    return ItemCost(
        cost=_clamp(value, resolved.service_id, washroom_id),
        formula_error=formula_error,
    )
