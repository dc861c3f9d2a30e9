"""Time-derived tier availability.

A tier's stored status is only the admin's intent; whether it can be sold
right now also depends on the active flag, the sale window and stock left.
"""

from datetime import datetime

from src.tk_common.enums import TierStatus
from src.tk_inventory.domain.models import TicketTier


def _window_status(tier: TicketTier, now: datetime) -> TierStatus | None:
    if not tier.is_active:
        return TierStatus.COMING_SOON
    if tier.sale_starts_at is not None and now < tier.sale_starts_at:
        return TierStatus.COMING_SOON
    if tier.sale_ends_at is not None and now > tier.sale_ends_at:
        return TierStatus.SOLD_OUT
    return None


def effective_status(tier: TicketTier, now: datetime) -> TierStatus:
    status = _window_status(tier, now)
    if status is not None:
        return status
    if tier.available_quantity <= 0:
        return TierStatus.SOLD_OUT
    return TierStatus(tier.status)


def is_on_sale(tier: TicketTier, now: datetime) -> bool:
    """Open for purchase, stock aside; running out is reported as insufficient stock."""
    return (_window_status(tier, now) or TierStatus(tier.status)) is TierStatus.AVAILABLE
