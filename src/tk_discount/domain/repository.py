"""DiscountCodeRepository Protocol - interface contract for persistence layer."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_discount.domain.models import DiscountCode


class DiscountCodeRepositoryProtocol(Protocol):
    async def get_by_code(
        self, db: AsyncSession, code: str, for_update: bool = False
    ) -> DiscountCode | None: ...

    async def increment_uses(
        self, db: AsyncSession, code_id: str
    ) -> DiscountCode | None: ...
