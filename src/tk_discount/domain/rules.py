"""Discount eligibility and arithmetic - pure functions, no I/O.

evaluate_code runs the checks in a fixed order and stops at the first
failure, so a code is always reported with exactly one reason.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from src.tk_common.enums import DiscountRejection, DiscountType
from src.tk_common.errors import DiscountInvalidError
from src.tk_common.money import ZERO, percent_of, to_money
from src.tk_discount.domain.models import (
    DiscountCalculation,
    DiscountCode,
    ValidatedDiscount,
)


def normalize_code(raw: str | None) -> str:
    return (raw or "").strip().upper()


def evaluate_code(
    code: DiscountCode | None,
    tier_slugs: Iterable[str],
    now: datetime,
) -> ValidatedDiscount:
    if code is None:
        raise DiscountInvalidError(DiscountRejection.NOT_FOUND.value)
    if not code.is_active:
        raise DiscountInvalidError(DiscountRejection.INACTIVE.value)
    if code.is_exhausted:
        raise DiscountInvalidError(DiscountRejection.EXHAUSTED.value)
    if code.valid_from is not None and now < code.valid_from:
        raise DiscountInvalidError(DiscountRejection.NOT_YET_VALID.value)
    if code.valid_until is not None and now > code.valid_until:
        raise DiscountInvalidError(DiscountRejection.EXPIRED.value)
    if code.ticket_tier_id is not None and code.ticket_tier_slug not in set(tier_slugs):
        raise DiscountInvalidError(DiscountRejection.TIER_RESTRICTED.value)

    return ValidatedDiscount(
        code_id=code.id,
        code=code.code,
        discount_type=code.discount_type,
        discount_value=code.discount_value,
        restricted_tier_slug=code.ticket_tier_slug,
        description=code.description,
    )


def calculate_discount(
    subtotal: Decimal, discount: ValidatedDiscount | None
) -> DiscountCalculation:
    """Discount is capped at the subtotal, so the total is never negative."""
    subtotal = to_money(subtotal)
    if discount is None:
        return DiscountCalculation(subtotal=subtotal, discount_amount=ZERO, total=subtotal)

    if discount.discount_type == DiscountType.PERCENTAGE:
        amount = percent_of(subtotal, discount.discount_value)
    else:
        amount = to_money(discount.discount_value)
    amount = max(min(amount, subtotal), ZERO)
    return DiscountCalculation(
        subtotal=subtotal,
        discount_amount=amount,
        total=subtotal - amount,
    )
