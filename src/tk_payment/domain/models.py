"""Payment domain objects and the pure pieces of the PagueloFacil flow."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from src.tk_common.money import to_money
from src.tk_order.domain.models import Order

# Provider status strings that mean "money captured"; compared upper-cased.
APPROVED_STATUSES = frozenset({"COMPLETED", "SUCCESS", "APPROVED", "APROBADA"})

DESCRIPTION_MAX_LENGTH = 255


def is_approved(status: str | None) -> bool:
    return (status or "").strip().upper() in APPROVED_STATUSES


@dataclass(frozen=True)
class PaymentConfirmation:
    """Provider claim that an order was paid, from the webhook or the return redirect."""

    order_id: str
    provider_transaction_id: str
    status: str | None
    amount: Any = None  # as received; parsed leniently at comparison time
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconcileOutcome:
    success: bool
    order_id: str
    status: str | None
    message: str
    already_paid: bool = False


@dataclass(frozen=True)
class PaymentLink:
    order_id: str
    url: str


def link_description(order: Order) -> str:
    """'Purchase of the tickets: General x2 @ 2500.00, ...' capped at 255 chars."""
    parts = [
        f"{item.tier_name or item.tier_slug or item.ticket_tier_id} x{item.quantity} "
        f"@ {to_money(item.unit_price)}"
        for item in order.items
    ]
    return f"Purchase of the tickets: {', '.join(parts)}"[:DESCRIPTION_MAX_LENGTH]


def build_link_form(
    order: Order,
    cclw: str,
    return_url: str,
    expires_in: int,
    tax_rate: Decimal,
) -> dict[str, str]:
    """Form fields for LinkDeamon.cfm. Amounts go out as 2-decimal strings."""
    amount = to_money(order.total_amount)
    return {
        "CCLW": cclw,
        "CMTN": str(amount),
        "CDSC": link_description(order),
        "RETURN_URL": return_url,
        "EXPIRES_IN": str(expires_in),
        "CTAX": str(to_money(amount * tax_rate)),
    }
