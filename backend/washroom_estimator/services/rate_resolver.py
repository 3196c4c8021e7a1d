"""
Rate resolution against the service / vendor item catalog.

The catalog is indexed once per computation and every custom formula is
compiled up front, so a project with many washrooms parses each formula a
single time.  Unknown ids resolve softly to rate 0 / unit "" -- the UI may
still hold stale ids after an item is deleted from the catalog.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

from washroom_estimator.models.pricing_schema import ServiceItem
from washroom_estimator.services.formula_engine import (
    CompiledFormula,
    FormulaError,
    compile_formula,
)

logger = logging.getLogger("washroom-api.rates")

# Keyword tables for free-text measurement units (matched on the lower-cased unit)
_AREA_UNIT_KEYWORDS = ("sqft", "sq ft", "sft", "square")
_PER_WASHROOM_UNIT_KEYWORDS = ("bathroom",)


class UnitKind(str, Enum):
    AREA = "area"                   # rate × (floor + wall)
    PER_WASHROOM = "per_washroom"   # flat, once per washroom
    FLAT = "flat"                   # flat, unrecognised / "nos"-style units


def classify_unit(unit: Optional[str]) -> UnitKind:
    text = (unit or "").lower()
    if any(keyword in text for keyword in _AREA_UNIT_KEYWORDS):
        return UnitKind.AREA
    if any(keyword in text for keyword in _PER_WASHROOM_UNIT_KEYWORDS):
        return UnitKind.PER_WASHROOM
    return UnitKind.FLAT


@dataclass(frozen=True)
class ResolvedRate:
    service_id: str
    rate: float = 0.0
    unit: str = ""
    unit_kind: UnitKind = UnitKind.FLAT
    name: str = ""
    category: str = ""
    formula: Optional[CompiledFormula] = None
    formula_source: Optional[str] = None
    formula_error: Optional[str] = None
    found: bool = True


class ServiceCatalog:
    """Id-indexed view of the catalog with formulas pre-compiled."""

    def __init__(self, items: Iterable[ServiceItem]) -> None:
        self._items: Dict[str, ServiceItem] = {}
        self._formulas: Dict[str, CompiledFormula] = {}
        self._formula_errors: Dict[str, str] = {}

        for item in items:
            if item.id in self._items:
                logger.warning("Duplicate service id in catalog; keeping the last entry",
                               extra={"service_id": item.id})
            self._items[item.id] = item
            self._formulas.pop(item.id, None)
            self._formula_errors.pop(item.id, None)
            if item.formula is None:
                continue
            try:
                self._formulas[item.id] = compile_formula(item.formula)
            except FormulaError as exc:
                self._formula_errors[item.id] = str(exc)
                logger.warning(
                    "Custom formula rejected, unit rule will be used: %s", exc,
                    extra={"service_id": item.id},
                )

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._items

    def get(self, service_id: str) -> Optional[ServiceItem]:
        return self._items.get(service_id)

    def items(self) -> Iterable[ServiceItem]:
        return self._items.values()

    def resolve(self, service_id: str) -> ResolvedRate:
        """Resolve rate, lower-cased unit and compiled formula for ``service_id``."""
        item = self._items.get(service_id)
        if item is None:
            logger.warning("Selected service not found in catalog; contributing 0",
                           extra={"service_id": service_id})
            return ResolvedRate(service_id=service_id, found=False)

        unit = item.unit.strip().lower()
        return ResolvedRate(
            service_id=service_id,
            rate=item.rate,
            unit=unit,
            unit_kind=classify_unit(unit),
            name=item.name,
            category=item.category,
            formula=self._formulas.get(service_id),
            formula_source=item.formula,
            formula_error=self._formula_errors.get(service_id),
        )
