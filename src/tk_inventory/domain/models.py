"""Domain models for tk_inventory - pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class TicketTier:
    id: str
    slug: str
    name: str
    price: Decimal
    currency: str
    status: str              # stored TierStatus value, see availability.effective_status
    total_quantity: int
    sold_quantity: int
    is_active: bool = True
    description: str | None = None
    sale_starts_at: datetime | None = None
    sale_ends_at: datetime | None = None
    sort_order: int = 0

    @property
    def available_quantity(self) -> int:
        return max(self.total_quantity - self.sold_quantity, 0)


@dataclass
class Reservation:
    """Result of a successful reserve: quantity claimed and the counter after it."""

    tier_id: str
    quantity: int
    sold_quantity_after: int
