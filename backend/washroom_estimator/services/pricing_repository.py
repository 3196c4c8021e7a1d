"""
Read-side adapter between the relational store and the pricing records.

Each fetch runs once per computation, before any arithmetic.  Database errors
are not caught here: a computation without its catalog must fail.
"""
import logging
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from washroom_estimator.models import orm_models as orm
from washroom_estimator.models.pricing_schema import (
    Fixture,
    PricingSettings,
    Product,
    ServiceItem,
)
from washroom_estimator.services.perf_monitor import timed_async

logger = logging.getLogger("washroom-api.repository")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _current_rate_card(cards: Iterable[orm.VendorRateCard]) -> Optional[orm.VendorRateCard]:
    """Most recent card by effective date, then by last update."""
    cards = list(cards)
    if not cards:
        return None
    return max(cards, key=lambda c: (c.effective_date or date.min, c.updated_at or _EPOCH))


class PricingRepository:
    """Loads the catalog, brand products, fixtures and settings for one computation."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @timed_async
    async def fetch_service_catalog(self) -> List[ServiceItem]:
        result = await self.session.execute(
            select(orm.VendorItem).options(
                selectinload(orm.VendorItem.category),
                selectinload(orm.VendorItem.rate_cards),
            )
        )
        items: List[ServiceItem] = []
        for row in result.scalars().all():
            card = _current_rate_card(row.rate_cards)
            if card is None:
                logger.warning("Vendor item has no rate card; rate is 0", extra={"service_id": row.id})
            items.append(ServiceItem(
                id=row.id,
                name=row.scope_of_work,
                category=row.category.name if row.category else "",
                unit=row.measuring_unit,
                rate=card.client_rate if card else 0,
                formula=row.cost_formula,
            ))
        return items

    @timed_async
    async def fetch_brand_products(self, brand_ids: Iterable[Optional[str]]) -> Dict[str, List[Product]]:
        """``{brand_id: [Product, ...]}`` for the given brands (unknown brands map to [])."""
        wanted = sorted({b for b in brand_ids if b})
        grouped: Dict[str, List[Product]] = {brand_id: [] for brand_id in wanted}
        if not wanted:
            return grouped
        result = await self.session.execute(
            select(orm.Product).where(orm.Product.brand_id.in_(wanted)).order_by(orm.Product.name)
        )
        for row in result.scalars().all():
            grouped[row.brand_id].append(Product(
                id=row.id,
                brand_id=row.brand_id,
                name=row.name,
                price=row.client_price,
                mrp=row.mrp,
            ))
        return grouped

    @timed_async
    async def fetch_fixtures(self) -> List[Fixture]:
        result = await self.session.execute(select(orm.Fixture))
        return [
            Fixture(id=row.id, name=row.name, category=row.category, client_price=row.client_price)
            for row in result.scalars().all()
        ]

    @timed_async
    async def fetch_settings(self) -> PricingSettings:
        """The single settings row, or the defaults when the table is empty."""
        result = await self.session.execute(
            select(orm.AppSettings).order_by(orm.AppSettings.updated_at.desc()).limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            logger.info("No settings row found; using default calculator rates")
            return PricingSettings()
        return PricingSettings(
            plumbing_rate_per_sqft=row.plumbing_rate_per_sqft,
            tile_cost_per_unit=row.tile_cost_per_unit,
            tiling_labor_per_sqft=row.tiling_labor_per_sqft,
            breakage_percentage=row.breakage_percentage,
        )
