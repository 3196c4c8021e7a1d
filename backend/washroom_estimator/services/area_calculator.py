"""
Area derivations for a single washroom (square feet).

    floor   = L × W
    wall    = 2 × H × (L + W)       unless manually overridden
    ceiling = floor                 unless manually overridden
    total   = floor + wall

Ceiling area is reported but not part of ``total_area``; cost rules that need
it read it explicitly.
"""
from typing import Optional

from washroom_estimator.models.costing_results import AreaBreakdown
from washroom_estimator.models.pricing_schema import Washroom, coerce_non_negative


def calculate_areas(
    length: float,
    width: float,
    height: float,
    wall_area_override: Optional[float] = None,
    ceiling_area_override: Optional[float] = None,
) -> AreaBreakdown:
    """Derive floor/wall/ceiling/total area.  Never raises; negatives clamp to 0."""
    length = coerce_non_negative(length)
    width = coerce_non_negative(width)
    height = coerce_non_negative(height)

    floor_area = length * width
    if wall_area_override is not None:
        wall_area = coerce_non_negative(wall_area_override)
    else:
        wall_area = 2.0 * height * (length + width)
    if ceiling_area_override is not None:
        ceiling_area = coerce_non_negative(ceiling_area_override)
    else:
        ceiling_area = floor_area

    return AreaBreakdown(
        floor_area=floor_area,
        wall_area=wall_area,
        ceiling_area=ceiling_area,
        total_area=floor_area + wall_area,
    )


def washroom_areas(washroom: Washroom) -> AreaBreakdown:
    return calculate_areas(
        washroom.length,
        washroom.width,
        washroom.height,
        wall_area_override=washroom.wall_area_override,
        ceiling_area_override=washroom.ceiling_area_override,
    )


def update_dimensions(
    washroom: Washroom,
    length: Optional[float] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
) -> Washroom:
    """
    Return a copy of ``washroom`` with new dimensions.

    Manual wall/ceiling overrides survive only if no dimension actually
    changed; any real change drops them so the derived areas take over.
    """
    updates = {}
    for field_name, value in (("length", length), ("width", width), ("height", height)):
        if value is None:
            continue
        value = coerce_non_negative(value)
        if value != getattr(washroom, field_name):
            updates[field_name] = value

    if not updates:
        return washroom.model_copy()

    updates["wall_area_override"] = None
    updates["ceiling_area_override"] = None
    return washroom.model_copy(update=updates)
