"""Order domain model - pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.tk_common.enums import OrderStatus


@dataclass
class Attendee:
    name: str
    email: str
    country: str = ""
    job_title: str = ""
    company: str = ""
    industry: str = ""
    org_type: str = ""
    cncf_consent: bool = False
    whatsapp_updates: bool = False


@dataclass
class OrderItem:
    id: str
    order_id: str
    ticket_tier_id: str
    quantity: int
    unit_price: Decimal  # snapshot at creation, never re-read from the tier
    total_price: Decimal
    # Display only, joined in on read
    tier_name: str | None = None
    tier_slug: str | None = None


@dataclass
class Order:
    id: str
    status: str
    subtotal_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    expires_at: datetime
    discount_code_id: str | None = None
    payment_id: str | None = None
    payment_method: str | None = None
    payment_result: dict[str, Any] | None = None  # opaque provider payload
    paid_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItem] = field(default_factory=list)
    attendee: Attendee | None = None
    discount_code: str | None = None

    @property
    def is_live(self) -> bool:
        """Still holding inventory."""
        return self.status in (OrderStatus.PENDING, OrderStatus.AWAITING_PAYMENT)

    @property
    def is_terminal(self) -> bool:
        return not self.is_live

    def is_overdue(self, now: datetime) -> bool:
        return now > self.expires_at
