"""
Ad hoc cost items and their storage shape.

In memory, cost items are one tagged list (``CostItem.category``).  The
project record stores them as three keyed maps with the category stripped::

    {
        "execution_costs":  {"<id>": {"name": ..., "description": ..., "amount": ...}},
        "vendor_rates":     {...},
        "additional_costs": {...},
    }

Conversion happens only here, at the storage boundary.
"""
import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from washroom_estimator.models.pricing_schema import CostCategory, CostItem

logger = logging.getLogger("washroom-api.cost-items")

STORAGE_KEYS: Dict[CostCategory, str] = {
    CostCategory.EXECUTION: "execution_costs",
    CostCategory.VENDOR: "vendor_rates",
    CostCategory.ADDITIONAL: "additional_costs",
}


def new_cost_item(
    name: str,
    amount: float,
    category: CostCategory,
    description: str = "",
) -> CostItem:
    return CostItem(
        id=str(uuid.uuid4()),
        name=name,
        description=description,
        amount=amount,
        category=category,
    )


def from_storage(record: Optional[Mapping[str, Any]]) -> List[CostItem]:
    """Rebuild the tagged list from a stored project record (missing maps are empty)."""
    items: List[CostItem] = []
    record = record or {}
    for category, key in STORAGE_KEYS.items():
        stored = record.get(key) or {}
        for item_id, payload in stored.items():
            if not isinstance(payload, Mapping):
                logger.warning("Skipping malformed stored cost item",
                               extra={"storage_key": key, "item_id": item_id})
                continue
            items.append(CostItem(
                id=str(item_id),
                name=payload.get("name"),
                description=payload.get("description"),
                amount=payload.get("amount"),
                category=category,
            ))
    return items


def to_storage(items: Iterable[CostItem]) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Tagged list → three keyed maps, category stripped."""
    record: Dict[str, Dict[str, Dict[str, Any]]] = {key: {} for key in STORAGE_KEYS.values()}
    for item in items:
        record[STORAGE_KEYS[item.category]][item.id] = {
            "name": item.name,
            "description": item.description,
            "amount": item.amount,
        }
    return record


def totals_by_category(items: Iterable[CostItem]) -> Dict[CostCategory, float]:
    totals = {category: 0.0 for category in CostCategory}
    for item in items:
        totals[item.category] += item.amount
    return totals
