"""Fixed-point money arithmetic.

All prices, subtotals, discounts and totals are Decimal quantized to cents
and persisted as NUMERIC(12,2). No float anywhere on the money path.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize to cents, rounding half-up: '2500' -> Decimal('2500.00')."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a money amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a money amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: object) -> Decimal | None:
    """Lenient parse for provider payloads. Returns None when unparseable.

    The amount is not quantized: "5000.004" stays 5000.004 so that it never
    compares equal to a 5000.00 total.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def format_money(amount: Decimal, currency: str) -> str:
    """Display form: Decimal('2500') -> 'USD 2,500.00'."""
    return f"{currency} {to_money(amount):,.2f}"


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """amount * percent / 100, rounded half-up to cents."""
    return to_money(amount * percent / Decimal(100))
