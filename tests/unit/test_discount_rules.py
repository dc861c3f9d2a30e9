"""Tests for tk_discount.domain.rules - eligibility and arithmetic."""
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.tk_common.enums import DiscountType
from src.tk_common.errors import DiscountInvalidError
from src.tk_discount.domain.models import ValidatedDiscount
from src.tk_discount.domain.rules import calculate_discount, evaluate_code, normalize_code
from tests.unit.fakes import make_code

NOW = datetime(2026, 1, 15, tzinfo=UTC)


def _reason(code, slugs=("beta",)) -> str:
    with pytest.raises(DiscountInvalidError) as exc_info:
        evaluate_code(code, slugs, NOW)
    return exc_info.value.reason


def _discount(kind: DiscountType, value: str) -> ValidatedDiscount:
    return ValidatedDiscount(
        code_id="c", code="X", discount_type=kind.value, discount_value=Decimal(value)
    )


class TestNormalizeCode:
    def test_trims_and_uppercases(self) -> None:
        assert normalize_code("  republic26 ") == "REPUBLIC26"

    def test_none_is_empty(self) -> None:
        assert normalize_code(None) == ""


class TestEvaluateCode:
    def test_valid_code(self) -> None:
        result = evaluate_code(make_code(), ["beta"], NOW)
        assert result.code == "REPUBLIC26"
        assert result.discount_value == Decimal("26")

    def test_missing(self) -> None:
        assert _reason(None) == "not-found"

    def test_inactive(self) -> None:
        assert _reason(make_code(is_active=False)) == "inactive"

    def test_exhausted(self) -> None:
        assert _reason(make_code(max_uses=1, current_uses=1)) == "exhausted"

    def test_unlimited_never_exhausted(self) -> None:
        evaluate_code(make_code(max_uses=None, current_uses=10_000), ["beta"], NOW)

    def test_not_yet_valid(self) -> None:
        assert _reason(make_code(valid_from=NOW + timedelta(days=1))) == "not-yet-valid"

    def test_expired(self) -> None:
        assert _reason(make_code(valid_until=NOW - timedelta(days=1))) == "expired"

    def test_tier_restricted(self) -> None:
        code = make_code(ticket_tier_id="tier-alpha", ticket_tier_slug="alpha")
        assert _reason(code, ["beta"]) == "tier-restricted"

    def test_restriction_satisfied_by_any_selected_tier(self) -> None:
        code = make_code(ticket_tier_id="tier-alpha", ticket_tier_slug="alpha")
        result = evaluate_code(code, ["beta", "alpha"], NOW)
        assert result.restricted_tier_slug == "alpha"

    def test_first_failure_wins(self) -> None:
        code = make_code(
            is_active=False,
            max_uses=1,
            current_uses=1,
            valid_until=NOW - timedelta(days=1),
        )
        assert _reason(code) == "inactive"


class TestCalculateDiscount:
    def test_no_discount(self) -> None:
        calc = calculate_discount(Decimal("5000"), None)
        assert calc.discount_amount == Decimal("0.00")
        assert calc.total == Decimal("5000.00")

    def test_percentage(self) -> None:
        calc = calculate_discount(Decimal("2000.00"), _discount(DiscountType.PERCENTAGE, "26"))
        assert calc.discount_amount == Decimal("520.00")
        assert calc.total == Decimal("1480.00")

    def test_percentage_rounds_half_up(self) -> None:
        calc = calculate_discount(Decimal("10.05"), _discount(DiscountType.PERCENTAGE, "10"))
        assert calc.discount_amount == Decimal("1.01")
        assert calc.total == Decimal("9.04")

    def test_fixed(self) -> None:
        calc = calculate_discount(Decimal("100.00"), _discount(DiscountType.FIXED, "25"))
        assert calc.discount_amount == Decimal("25.00")
        assert calc.total == Decimal("75.00")

    def test_fixed_capped_at_subtotal(self) -> None:
        calc = calculate_discount(Decimal("100"), _discount(DiscountType.FIXED, "150"))
        assert calc.discount_amount == Decimal("100.00")
        assert calc.total == Decimal("0.00")

    def test_total_plus_discount_is_subtotal(self) -> None:
        for value in ("0", "7.5", "33.33", "100"):
            calc = calculate_discount(Decimal("123.45"), _discount(DiscountType.PERCENTAGE, value))
            assert calc.total + calc.discount_amount == calc.subtotal
            assert calc.total >= 0
