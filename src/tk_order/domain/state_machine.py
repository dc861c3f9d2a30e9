"""Order state machine.

A total function of (current status, event) -> Transition. Every pair is
listed: a transition either applies (possibly releasing inventory), is an
idempotent no-op, or is rejected. Nothing is coerced.

    PENDING ──AWAIT_PAYMENT──> AWAITING_PAYMENT ──PAY──> PAID
       │  └────────────────PAY───────────────────────────┘
       ├──CANCEL──> CANCELLED      (also from AWAITING_PAYMENT)
       └──EXPIRE──> EXPIRED        (also from AWAITING_PAYMENT)
"""

from dataclasses import dataclass

from src.tk_common.enums import OrderEvent, OrderStatus
from src.tk_common.errors import InvalidOrderStateError


@dataclass(frozen=True)
class Transition:
    target: OrderStatus
    applies: bool                    # False -> idempotent no-op, nothing is written
    releases_inventory: bool = False


_S = OrderStatus
_E = OrderEvent

_TABLE: dict[tuple[OrderStatus, OrderEvent], Transition | None] = {
    (_S.PENDING, _E.AWAIT_PAYMENT): Transition(_S.AWAITING_PAYMENT, True),
    (_S.PENDING, _E.PAY): Transition(_S.PAID, True),
    (_S.PENDING, _E.CANCEL): Transition(_S.CANCELLED, True, releases_inventory=True),
    (_S.PENDING, _E.EXPIRE): Transition(_S.EXPIRED, True, releases_inventory=True),

    (_S.AWAITING_PAYMENT, _E.AWAIT_PAYMENT): None,
    (_S.AWAITING_PAYMENT, _E.PAY): Transition(_S.PAID, True),
    (_S.AWAITING_PAYMENT, _E.CANCEL): Transition(_S.CANCELLED, True, releases_inventory=True),
    (_S.AWAITING_PAYMENT, _E.EXPIRE): Transition(_S.EXPIRED, True, releases_inventory=True),

    (_S.PAID, _E.AWAIT_PAYMENT): None,
    (_S.PAID, _E.PAY): Transition(_S.PAID, False),
    (_S.PAID, _E.CANCEL): None,
    (_S.PAID, _E.EXPIRE): Transition(_S.PAID, False),

    (_S.CANCELLED, _E.AWAIT_PAYMENT): None,
    (_S.CANCELLED, _E.PAY): None,
    (_S.CANCELLED, _E.CANCEL): Transition(_S.CANCELLED, False),
    (_S.CANCELLED, _E.EXPIRE): Transition(_S.CANCELLED, False),

    (_S.EXPIRED, _E.AWAIT_PAYMENT): None,
    (_S.EXPIRED, _E.PAY): None,
    (_S.EXPIRED, _E.CANCEL): None,
    (_S.EXPIRED, _E.EXPIRE): Transition(_S.EXPIRED, False),
}


def transition(order_id: str, status: str, event: OrderEvent) -> Transition:
    """Resolve the transition or raise InvalidOrderStateError."""
    result = _TABLE.get((OrderStatus(status), event))
    if result is None:
        raise InvalidOrderStateError(order_id, str(OrderStatus(status).value), event.value)
    return result
