"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Ticket tiers / inventory
  2xxx: Discount codes
  3xxx: Orders
  4xxx: Payments
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Ticket tiers / inventory ---

class UnknownTierError(AppError):
    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(1001, f"Unknown ticket tier: {slug}", 422)


class TierNotFoundError(AppError):
    def __init__(self, tier_id: str) -> None:
        super().__init__(1002, f"Ticket tier not found: {tier_id}", 404)


class TierUnavailableError(AppError):
    def __init__(self, tier_name: str) -> None:
        self.tier_name = tier_name
        super().__init__(1003, f'Ticket "{tier_name}" is not available for purchase', 422)


class InsufficientStockError(AppError):
    def __init__(self, tier_name: str, requested: int, available: int) -> None:
        self.tier_name = tier_name
        self.requested = requested
        self.available = available
        super().__init__(
            1004,
            f'Not enough "{tier_name}" tickets available: '
            f"requested {requested}, available {available}",
            409,
        )


# --- 2xxx: Discount codes ---

class DiscountInvalidError(AppError):
    """Code lookup or eligibility failure; `reason` is a DiscountRejection value."""

    _MESSAGES = {
        "not-found": "Invalid discount code",
        "inactive": "This discount code is no longer active",
        "exhausted": "This discount code has reached its maximum uses",
        "not-yet-valid": "This discount code is not yet valid",
        "expired": "This discount code has expired",
        "tier-restricted": "Discount code is not valid for selected tickets",
    }

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(2001, self._MESSAGES.get(reason, "Invalid discount code"), 422)


# --- 3xxx: Orders ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(3001, f"Order not found: {order_id}", 404)


class InvalidOrderStateError(AppError):
    def __init__(self, order_id: str, status: str, event: str) -> None:
        self.status = status
        self.event = event
        super().__init__(
            3002, f"Order {order_id} in status {status} does not accept {event}", 409
        )


class OrderNotYetExpiredError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(3003, f"Order {order_id} has not expired yet", 409)


class EmptySelectionError(AppError):
    def __init__(self) -> None:
        super().__init__(3004, "No tickets selected", 422)


# --- 4xxx: Payments ---

class AmountMismatchError(AppError):
    def __init__(self, expected: str, received: str | None) -> None:
        super().__init__(
            4001,
            f"Payment amount does not match the order total: expected {expected}, got {received}",
            422,
        )


class ProviderError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, detail, 502)


class MissingPaymentIdentifiersError(AppError):
    def __init__(self) -> None:
        super().__init__(4003, "Missing orderId or transactionId", 400)


# Envelope code for a webhook whose status is not an approval; no exception
# is raised for it, the reconciler reports it as an unsuccessful outcome.
PAYMENT_NOT_APPROVED = 4010


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
