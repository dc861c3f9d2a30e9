"""Global enums - must match DB CHECK constraints exactly."""

from enum import Enum


class TierStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SOLD_OUT = "SOLD_OUT"
    COMING_SOON = "COMING_SOON"


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class DiscountRejection(str, Enum):
    """Why a discount code was refused; first failing check wins."""
    NOT_FOUND = "not-found"
    INACTIVE = "inactive"
    EXHAUSTED = "exhausted"
    NOT_YET_VALID = "not-yet-valid"
    EXPIRED = "expired"
    TIER_RESTRICTED = "tier-restricted"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class OrderEvent(str, Enum):
    AWAIT_PAYMENT = "AWAIT_PAYMENT"
    PAY = "PAY"
    CANCEL = "CANCEL"
    EXPIRE = "EXPIRE"


class PaymentMethod(str, Enum):
    PAGUELOFACIL = "PagueloFacil"
