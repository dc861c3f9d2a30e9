# tests/unit/test_order_engine.py
"""OrderEngine tests against in-memory repositories.

The fakes emulate row locks and rollback, so the concurrency cases below
exercise the same lock/validate/write ordering the SQL repositories rely on.
"""
import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.tk_common.errors import (
    DiscountInvalidError,
    EmptySelectionError,
    InsufficientStockError,
    InvalidOrderStateError,
    OrderNotFoundError,
    OrderNotYetExpiredError,
    TierUnavailableError,
    UnknownTierError,
)
from tests.unit.fakes import FakeSession, World, make_attendee

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
LATER = NOW + timedelta(minutes=11)


@pytest.fixture
def world() -> World:
    return World(NOW)


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_creates_pending_order(self, world) -> None:
        db = FakeSession()
        order = await world.engine.create_order(db, {"beta": 2}, make_attendee(), now=NOW)

        assert order.status == "PENDING"
        assert order.subtotal_amount == Decimal("5000.00")
        assert order.total_amount == Decimal("5000.00")
        assert order.expires_at == NOW + timedelta(minutes=10)
        assert order.items[0].unit_price == Decimal("2500.00")
        assert order.items[0].tier_slug == "beta"
        assert world.sold() == 2
        assert order.id in world.orders.rows
        assert db.commits == 1

    @pytest.mark.asyncio
    async def test_multi_tier_with_zero_quantities_dropped(self, world) -> None:
        order = await world.create({"alpha": 1, "beta": 1, "ga": 0})
        assert {i.tier_slug for i in order.items} == {"alpha", "beta"}
        assert order.subtotal_amount == Decimal("4500.00")

    @pytest.mark.asyncio
    async def test_discount_applied_and_redeemed(self, world) -> None:
        order = await world.create({"alpha": 2}, "republic26")
        assert order.discount_amount == Decimal("1040.00")
        assert order.total_amount == Decimal("2960.00")
        assert order.discount_code_id == "code-r26"
        assert world.codes.rows["code-r26"].current_uses == 1

    @pytest.mark.asyncio
    async def test_blank_code_means_no_discount(self, world) -> None:
        order = await world.create({"beta": 1}, "  ")
        assert order.discount_code_id is None
        assert order.discount_amount == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_empty_selection(self, world) -> None:
        with pytest.raises(EmptySelectionError):
            await world.create({"beta": 0})

    @pytest.mark.asyncio
    async def test_unknown_tier(self, world) -> None:
        with pytest.raises(UnknownTierError):
            await world.create({"beta": 1, "delta": 1})
        assert world.sold() == 0

    @pytest.mark.asyncio
    async def test_tier_not_on_sale(self, world) -> None:
        with pytest.raises(TierUnavailableError) as exc_info:
            await world.create({"ga": 1})
        assert exc_info.value.tier_name == "GA"

    @pytest.mark.asyncio
    async def test_over_stock_names_tier(self) -> None:
        world = World(NOW, beta_stock=1)
        with pytest.raises(InsufficientStockError) as exc_info:
            await world.create({"beta": 2})
        assert exc_info.value.tier_name == "Beta"
        assert world.orders.rows == {}

    @pytest.mark.asyncio
    async def test_restricted_code_fails_whole_order(self, world) -> None:
        db = FakeSession()
        with pytest.raises(DiscountInvalidError) as exc_info:
            await world.engine.create_order(db, {"beta": 2}, make_attendee(), "REPUBLIC26", now=NOW)
        assert exc_info.value.reason == "tier-restricted"
        assert world.sold() == 0
        assert world.orders.rows == {}
        assert world.codes.rows["code-r26"].current_uses == 0
        assert db.rollbacks == 1

    @pytest.mark.asyncio
    async def test_failure_after_reserve_rolls_back_stock(self, world) -> None:
        async def exhausted(db, code_id):
            return None

        world.codes.increment_uses = exhausted
        with pytest.raises(DiscountInvalidError):
            await world.create({"beta": 3}, "ONCE")
        assert world.sold() == 0
        assert world.orders.rows == {}


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_parallel_orders_never_oversell(self) -> None:
        world = World(NOW, beta_stock=10)
        results = await asyncio.gather(
            *(world.create({"beta": 2}) for _ in range(8)), return_exceptions=True
        )
        ok = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(ok) == 5
        assert len(failed) == 3
        assert all(isinstance(e, InsufficientStockError) for e in failed)
        assert world.sold() == 10

    @pytest.mark.asyncio
    async def test_single_use_code_redeemed_once(self) -> None:
        world = World(NOW, once_max_uses=1)
        results = await asyncio.gather(
            world.create({"beta": 1}, "ONCE"),
            world.create({"beta": 1}, "ONCE"),
            return_exceptions=True,
        )
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(failed) == 1
        assert isinstance(failed[0], DiscountInvalidError)
        assert failed[0].reason == "exhausted"
        assert world.codes.rows["code-once"].current_uses == 1
        assert world.sold() == 1
        assert len(world.orders.rows) == 1


class TestMarkPaid:
    @pytest.mark.asyncio
    async def test_pay_sets_payment_fields(self, world) -> None:
        order = await world.create({"beta": 2})
        paid = await world.engine.mark_paid(FakeSession(), order.id, "TX-1", now=NOW)
        assert paid.status == "PAID"
        assert paid.paid_at == NOW
        assert paid.payment_method == "PagueloFacil"
        assert world.orders.rows[order.id].payment_id == "TX-1"

    @pytest.mark.asyncio
    async def test_pay_twice_is_idempotent(self, world) -> None:
        order = await world.create({"beta": 2})
        first = await world.engine.mark_paid(FakeSession(), order.id, "TX-1", now=NOW)
        second = await world.engine.mark_paid(
            FakeSession(), order.id, "TX-2", now=NOW + timedelta(minutes=1)
        )
        assert second.status == "PAID"
        assert second.paid_at == first.paid_at
        assert second.payment_id == "TX-1"
        assert second.total_amount == first.total_amount

    @pytest.mark.asyncio
    async def test_pay_from_awaiting_payment(self, world) -> None:
        order = await world.create({"beta": 1})
        await world.engine.move_to_awaiting_payment(FakeSession(), order.id)
        paid = await world.engine.mark_paid(FakeSession(), order.id, "TX-1")
        assert paid.status == "PAID"

    @pytest.mark.asyncio
    async def test_pay_cancelled_is_invalid(self, world) -> None:
        order = await world.create({"beta": 1})
        await world.engine.cancel(FakeSession(), order.id)
        with pytest.raises(InvalidOrderStateError):
            await world.engine.mark_paid(FakeSession(), order.id, "TX-1")

    @pytest.mark.asyncio
    async def test_pay_unknown_order(self, world) -> None:
        with pytest.raises(OrderNotFoundError):
            await world.engine.mark_paid(FakeSession(), "nope", "TX-1")


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_restores_stock(self, world) -> None:
        order = await world.create({"beta": 3})
        assert world.sold() == 3
        cancelled = await world.engine.cancel(FakeSession(), order.id)
        assert cancelled.status == "CANCELLED"
        assert world.sold() == 0
        assert cancelled.items[0].quantity == 3

    @pytest.mark.asyncio
    async def test_cancel_twice_releases_once(self, world) -> None:
        await world.create({"beta": 2})
        order = await world.create({"beta": 3})
        await world.engine.cancel(FakeSession(), order.id)
        again = await world.engine.cancel(FakeSession(), order.id)
        assert again.status == "CANCELLED"
        assert world.sold() == 2

    @pytest.mark.asyncio
    async def test_cancel_keeps_discount_usage(self, world) -> None:
        order = await world.create({"alpha": 1}, "REPUBLIC26")
        await world.engine.cancel(FakeSession(), order.id)
        assert world.codes.rows["code-r26"].current_uses == 1

    @pytest.mark.asyncio
    async def test_cancel_paid_is_invalid(self, world) -> None:
        order = await world.create({"beta": 1})
        await world.engine.mark_paid(FakeSession(), order.id, "TX-1")
        with pytest.raises(InvalidOrderStateError):
            await world.engine.cancel(FakeSession(), order.id)
        assert world.sold() == 1


class TestExpire:
    @pytest.mark.asyncio
    async def test_expire_overdue_then_pay_is_invalid(self, world) -> None:
        order = await world.create({"beta": 2})
        expired = await world.engine.expire(FakeSession(), order.id, now=LATER)
        assert expired.status == "EXPIRED"
        assert world.sold() == 0
        with pytest.raises(InvalidOrderStateError):
            await world.engine.mark_paid(FakeSession(), order.id, "TX-late")

    @pytest.mark.asyncio
    async def test_expire_too_early(self, world) -> None:
        order = await world.create({"beta": 2})
        db = FakeSession()
        with pytest.raises(OrderNotYetExpiredError):
            await world.engine.expire(db, order.id, now=order.expires_at)
        assert world.sold() == 2
        assert db.rollbacks == 1

    @pytest.mark.asyncio
    async def test_expire_paid_is_no_op(self, world) -> None:
        order = await world.create({"beta": 2})
        await world.engine.mark_paid(FakeSession(), order.id, "TX-1")
        result = await world.engine.expire(FakeSession(), order.id, now=LATER)
        assert result.status == "PAID"
        assert world.sold() == 2

    @pytest.mark.asyncio
    async def test_expire_and_pay_race_has_one_winner(self, world) -> None:
        order = await world.create({"beta": 2})
        results = await asyncio.gather(
            world.engine.expire(FakeSession(), order.id, now=LATER),
            world.engine.mark_paid(FakeSession(), order.id, "TX-1"),
            return_exceptions=True,
        )
        final = world.orders.rows[order.id].status
        assert final in ("EXPIRED", "PAID")
        if final == "EXPIRED":
            assert isinstance(results[1], InvalidOrderStateError)
            assert world.sold() == 0
        else:
            assert results[0].status == "PAID"
            assert world.sold() == 2


class TestAttachPaymentLink:
    @pytest.mark.asyncio
    async def test_moves_pending_to_awaiting(self, world) -> None:
        order = await world.create({"beta": 1})
        updated = await world.engine.attach_payment_link(
            FakeSession(), order.id, "LK-1", {"data": {"code": "LK-1"}}
        )
        assert updated.status == "AWAITING_PAYMENT"
        stored = world.orders.rows[order.id]
        assert stored.payment_id == "LK-1"
        assert stored.payment_result == {"data": {"code": "LK-1"}}
        assert stored.paid_at is None

    @pytest.mark.asyncio
    async def test_relink_keeps_awaiting(self, world) -> None:
        order = await world.create({"beta": 1})
        await world.engine.attach_payment_link(FakeSession(), order.id, "LK-1", {})
        again = await world.engine.attach_payment_link(FakeSession(), order.id, "LK-2", {})
        assert again.status == "AWAITING_PAYMENT"
        assert again.payment_id == "LK-2"

    @pytest.mark.asyncio
    async def test_terminal_order_rejected(self, world) -> None:
        order = await world.create({"beta": 1})
        await world.engine.cancel(FakeSession(), order.id)
        with pytest.raises(InvalidOrderStateError):
            await world.engine.attach_payment_link(FakeSession(), order.id, "LK-1", {})


class TestReads:
    @pytest.mark.asyncio
    async def test_get_order_detail(self, world) -> None:
        order = await world.create({"alpha": 1}, "REPUBLIC26")
        detail = await world.engine.get_order(FakeSession(), order.id)
        assert detail.discount_code == "REPUBLIC26"
        assert detail.attendee is not None and detail.attendee.email == "ada@example.com"
        assert detail.items[0].tier_name == "Alpha"

    @pytest.mark.asyncio
    async def test_get_order_missing(self, world) -> None:
        with pytest.raises(OrderNotFoundError):
            await world.engine.get_order(FakeSession(), "nope")

    @pytest.mark.asyncio
    async def test_move_to_awaiting_twice_is_invalid(self, world) -> None:
        order = await world.create({"beta": 1})
        await world.engine.move_to_awaiting_payment(FakeSession(), order.id)
        with pytest.raises(InvalidOrderStateError):
            await world.engine.move_to_awaiting_payment(FakeSession(), order.id)
