"""Inventory Ledger and tier catalogue.

InventoryLedger runs inside a transaction owned by the caller (the order
engine); it never commits. InventoryService is the read-only catalogue used
by the tiers router.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.datetime_utils import utc_now
from src.tk_common.errors import (
    InsufficientStockError,
    TierNotFoundError,
    TierUnavailableError,
    UnknownTierError,
)
from src.tk_inventory.application.schemas import TierListResponse, TierResponse
from src.tk_inventory.domain.availability import is_on_sale
from src.tk_inventory.domain.models import Reservation, TicketTier
from src.tk_inventory.domain.repository import TierRepositoryProtocol
from src.tk_inventory.infrastructure.persistence import TierRepository

logger = logging.getLogger(__name__)


class InventoryLedger:
    def __init__(self, repo: TierRepositoryProtocol | None = None) -> None:
        self._repo: TierRepositoryProtocol = repo or TierRepository()

    async def lock_tiers_by_slugs(
        self, db: AsyncSession, slugs: list[str]
    ) -> dict[str, TicketTier]:
        """Lock every requested tier; raise UnknownTierError for the first missing slug."""
        tiers = await self._repo.lock_by_slugs(db, sorted(set(slugs)))
        by_slug = {t.slug: t for t in tiers}
        for slug in slugs:
            if slug not in by_slug:
                raise UnknownTierError(slug)
        return by_slug

    def check_available(
        self, tier: TicketTier, quantity: int, now: datetime | None = None
    ) -> None:
        if not is_on_sale(tier, now or utc_now()):
            raise TierUnavailableError(tier.name)
        if quantity > tier.available_quantity:
            raise InsufficientStockError(tier.name, quantity, tier.available_quantity)

    async def reserve(
        self, db: AsyncSession, tier_id: str, quantity: int, now: datetime | None = None
    ) -> Reservation:
        tier = await self._repo.lock_by_id(db, tier_id)
        if tier is None:
            raise TierNotFoundError(tier_id)
        self.check_available(tier, quantity, now)

        updated = await self._repo.increment_sold(db, tier_id, quantity)
        if updated is None:
            # capacity condition in the UPDATE is the authority, not the read above
            raise InsufficientStockError(tier.name, quantity, tier.available_quantity)

        logger.debug(
            "Reserved %d of tier %s (sold %d/%d)",
            quantity, tier.slug, updated.sold_quantity, updated.total_quantity,
        )
        return Reservation(
            tier_id=tier_id,
            quantity=quantity,
            sold_quantity_after=updated.sold_quantity,
        )

    async def release(
        self, db: AsyncSession, tier_id: str, quantity: int
    ) -> TicketTier | None:
        """Give `quantity` back to the tier, floored at zero sold.

        Callers must release at most once per reservation; the order status
        transition is what guarantees that.
        """
        updated = await self._repo.decrement_sold(db, tier_id, quantity)
        if updated is None:
            logger.warning("Release of %d for unknown tier %s ignored", quantity, tier_id)
            return None
        logger.debug(
            "Released %d of tier %s (sold %d/%d)",
            quantity, updated.slug, updated.sold_quantity, updated.total_quantity,
        )
        return updated


class InventoryService:
    def __init__(self, repo: TierRepositoryProtocol | None = None) -> None:
        self._repo: TierRepositoryProtocol = repo or TierRepository()

    async def list_tiers(self, db: AsyncSession) -> TierListResponse:
        now = utc_now()
        tiers = await self._repo.list_tiers(db)
        return TierListResponse(items=[TierResponse.from_domain(t, now) for t in tiers])

    async def get_tier(self, db: AsyncSession, slug: str) -> TierResponse:
        tier = await self._repo.get_by_slug(db, slug)
        if tier is None:
            raise UnknownTierError(slug)
        return TierResponse.from_domain(tier, utc_now())
