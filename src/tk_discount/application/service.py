"""Discount Ledger - validation, calculation and redemption of codes.

validate() is a read; redeem() is the durable usage increment and must only
run inside the order-creation transaction (the ledger never commits).
DiscountService.preview() backs the public validate endpoint and never
redeems.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.datetime_utils import utc_now
from src.tk_common.enums import DiscountRejection
from src.tk_common.errors import DiscountInvalidError
from src.tk_discount.application.schemas import DiscountPreviewResponse
from src.tk_discount.domain.models import DiscountCode, ValidatedDiscount
from src.tk_discount.domain.repository import DiscountCodeRepositoryProtocol
from src.tk_discount.domain.rules import calculate_discount, evaluate_code, normalize_code
from src.tk_discount.infrastructure.persistence import DiscountCodeRepository

logger = logging.getLogger(__name__)


class DiscountLedger:
    def __init__(self, repo: DiscountCodeRepositoryProtocol | None = None) -> None:
        self._repo: DiscountCodeRepositoryProtocol = repo or DiscountCodeRepository()

    async def validate(
        self,
        db: AsyncSession,
        code: str,
        tier_slugs: Iterable[str],
        now: datetime | None = None,
        for_update: bool = False,
    ) -> ValidatedDiscount:
        canonical = normalize_code(code)
        record: DiscountCode | None = None
        if canonical:
            record = await self._repo.get_by_code(db, canonical, for_update=for_update)
        return evaluate_code(record, tier_slugs, now or utc_now())

    async def redeem(self, db: AsyncSession, code_id: str) -> DiscountCode:
        updated = await self._repo.increment_uses(db, code_id)
        if updated is None:
            raise DiscountInvalidError(DiscountRejection.EXHAUSTED.value)
        logger.info(
            "Redeemed discount %s (%d/%s uses)",
            updated.code, updated.current_uses, updated.max_uses,
        )
        return updated


class DiscountService:
    def __init__(self, ledger: DiscountLedger | None = None) -> None:
        self._ledger = ledger or DiscountLedger()

    async def preview(
        self,
        db: AsyncSession,
        code: str,
        tier_slugs: list[str],
        subtotal: Decimal | None,
    ) -> DiscountPreviewResponse:
        discount = await self._ledger.validate(db, code, tier_slugs)
        calc = calculate_discount(subtotal, discount) if subtotal is not None else None
        return DiscountPreviewResponse.from_result(discount, calc)
