# tests/unit/test_order_persistence.py
"""Unit tests for OrderRepository using mocked AsyncSession."""
import json
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tk_order.domain.models import Order, OrderItem
from src.tk_order.infrastructure.persistence import OrderRepository
from tests.unit.fakes import make_attendee

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _order_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "order-1")
    row.status = kwargs.get("status", "PENDING")
    row.subtotal_amount = kwargs.get("subtotal_amount", Decimal("5000.00"))
    row.discount_amount = kwargs.get("discount_amount", Decimal("0.00"))
    row.total_amount = kwargs.get("total_amount", Decimal("5000.00"))
    row.currency = "USD"
    row.discount_code_id = kwargs.get("discount_code_id")
    row.payment_id = kwargs.get("payment_id")
    row.payment_method = kwargs.get("payment_method")
    row.payment_result = kwargs.get("payment_result")
    row.expires_at = NOW + timedelta(minutes=10)
    row.paid_at = kwargs.get("paid_at")
    row.created_at = NOW
    row.updated_at = NOW
    row.discount_code = kwargs.get("discount_code")
    return row


def _item_row() -> MagicMock:
    row = MagicMock()
    row.id = "item-1"
    row.order_id = "order-1"
    row.ticket_tier_id = "tier-beta"
    row.quantity = 2
    row.unit_price = Decimal("2500.00")
    row.total_price = Decimal("5000.00")
    row.tier_name = "Beta"
    row.tier_slug = "beta"
    return row


def _attendee_row() -> MagicMock:
    row = MagicMock()
    for field, value in vars(make_attendee()).items():
        setattr(row, field, value)
    return row


def _result(one: Any = None, many: list[Any] | None = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


def _make_order() -> Order:
    return Order(
        id="order-1",
        status="PENDING",
        subtotal_amount=Decimal("5000.00"),
        discount_amount=Decimal("0.00"),
        total_amount=Decimal("5000.00"),
        currency="USD",
        expires_at=NOW + timedelta(minutes=10),
        items=[
            OrderItem(
                id="item-1", order_id="order-1", ticket_tier_id="tier-beta",
                quantity=2, unit_price=Decimal("2500.00"), total_price=Decimal("5000.00"),
            )
        ],
        attendee=make_attendee(),
    )


class TestOrderRepository:
    @pytest.mark.asyncio
    async def test_save_writes_order_items_and_attendee(self) -> None:
        db = AsyncMock()
        await OrderRepository().save(_make_order(), db)
        assert db.execute.await_count == 3
        tables = [str(c[0][0]) for c in db.execute.call_args_list]
        assert "INSERT INTO orders" in tables[0]
        assert "INSERT INTO order_items" in tables[1]
        assert "INSERT INTO attendees" in tables[2]

    @pytest.mark.asyncio
    async def test_get_by_id_loads_children(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(one=_order_row(payment_result='{"headerStatus": {"code": 200}}')),
            _result(many=[_item_row()]),
            _result(one=_attendee_row()),
        ]
        order = await OrderRepository().get_by_id("order-1", db)
        assert order is not None
        assert order.items[0].tier_slug == "beta"
        assert order.attendee is not None and order.attendee.email == "ada@example.com"
        assert order.payment_result == {"headerStatus": {"code": 200}}

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)
        assert await OrderRepository().get_by_id("nope", db) is None
        db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lock_by_id_locks_order_row(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [_result(one=_order_row()), _result(many=[]), _result(one=None)]
        order = await OrderRepository().lock_by_id("order-1", db)
        assert order is not None and order.attendee is None
        assert "FOR UPDATE OF o" in str(db.execute.call_args_list[0][0][0])

    @pytest.mark.asyncio
    async def test_record_payment_serializes_payload(self) -> None:
        db = AsyncMock()
        await OrderRepository().record_payment(
            "order-1", "TX-1", "PagueloFacil", {"amount": "5000.00"}, NOW, "PAID", db
        )
        params = db.execute.call_args[0][1]
        assert json.loads(params["payment_result"]) == {"amount": "5000.00"}
        assert params["status"] == "PAID"
        assert params["paid_at"] == NOW

    @pytest.mark.asyncio
    async def test_list_overdue_ids(self) -> None:
        db = AsyncMock()
        row = MagicMock()
        row.id = "order-9"
        db.execute.return_value = _result(many=[row])
        ids = await OrderRepository().list_overdue_ids(NOW, 50, db)
        assert ids == ["order-9"]
        assert db.execute.call_args[0][1] == {"now": NOW, "limit": 50}
