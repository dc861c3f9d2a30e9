"""Domain models for tk_discount - pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class DiscountCode:
    id: str
    code: str                        # canonical: trimmed, upper-cased
    discount_type: str               # DiscountType value
    discount_value: Decimal          # percent 0-100, or absolute amount
    is_active: bool = True
    current_uses: int = 0
    max_uses: int | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    ticket_tier_id: str | None = None
    ticket_tier_slug: str | None = None
    description: str | None = None

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and self.current_uses >= self.max_uses


@dataclass(frozen=True)
class ValidatedDiscount:
    code_id: str
    code: str
    discount_type: str
    discount_value: Decimal
    restricted_tier_slug: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class DiscountCalculation:
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
