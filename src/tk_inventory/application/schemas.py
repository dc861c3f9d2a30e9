"""Pydantic response schemas for tk_inventory API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from src.tk_common.money import format_money
from src.tk_inventory.domain.availability import effective_status
from src.tk_inventory.domain.models import TicketTier


class TierResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: str | None
    price: Decimal
    price_display: str
    currency: str
    status: str
    total_quantity: int
    sold_quantity: int
    available_quantity: int
    sort_order: int

    @classmethod
    def from_domain(cls, tier: TicketTier, now: datetime) -> "TierResponse":
        return cls(
            id=tier.id,
            slug=tier.slug,
            name=tier.name,
            description=tier.description,
            price=tier.price,
            price_display=format_money(tier.price, tier.currency),
            currency=tier.currency,
            status=effective_status(tier, now).value,
            total_quantity=tier.total_quantity,
            sold_quantity=tier.sold_quantity,
            available_quantity=tier.available_quantity,
            sort_order=tier.sort_order,
        )


class TierListResponse(BaseModel):
    items: list[TierResponse]
