"""Repository Protocol - dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_inventory.domain.models import TicketTier


class TierRepositoryProtocol(Protocol):
    async def list_tiers(self, db: AsyncSession) -> list[TicketTier]: ...

    async def get_by_slug(self, db: AsyncSession, slug: str) -> TicketTier | None: ...

    async def lock_by_id(self, db: AsyncSession, tier_id: str) -> TicketTier | None: ...

    async def lock_by_slugs(
        self, db: AsyncSession, slugs: list[str]
    ) -> list[TicketTier]: ...

    async def increment_sold(
        self, db: AsyncSession, tier_id: str, quantity: int
    ) -> TicketTier | None: ...

    async def decrement_sold(
        self, db: AsyncSession, tier_id: str, quantity: int
    ) -> TicketTier | None: ...
