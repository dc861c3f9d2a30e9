# src/tk_order/infrastructure/persistence.py
"""OrderRepository - raw SQL persistence implementation.

An order is written as one `orders` row, its `order_items` rows and one
`attendees` row, all on the caller's transaction. `lock_by_id` takes the
order row lock that serializes every state transition of that order.
"""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_order.domain.models import Attendee, Order, OrderItem

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, status, subtotal_amount, discount_amount, total_amount,
        currency, discount_code_id, expires_at)
    VALUES (:id, :status, :subtotal_amount, :discount_amount, :total_amount,
        :currency, :discount_code_id, :expires_at)
""")

_INSERT_ITEM_SQL = text("""
    INSERT INTO order_items (id, order_id, ticket_tier_id, quantity, unit_price, total_price)
    VALUES (:id, :order_id, :ticket_tier_id, :quantity, :unit_price, :total_price)
""")

_INSERT_ATTENDEE_SQL = text("""
    INSERT INTO attendees (order_id, name, email, country, job_title, company,
        industry, org_type, cncf_consent, whatsapp_updates)
    VALUES (:order_id, :name, :email, :country, :job_title, :company,
        :industry, :org_type, :cncf_consent, :whatsapp_updates)
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE orders
    SET status = :status, updated_at = NOW()
    WHERE id = :id
""")

_RECORD_PAYMENT_SQL = text("""
    UPDATE orders
    SET status = :status,
        payment_id = :payment_id,
        payment_method = :payment_method,
        payment_result = CAST(:payment_result AS JSONB),
        paid_at = COALESCE(CAST(:paid_at AS TIMESTAMPTZ), paid_at),
        updated_at = NOW()
    WHERE id = :id
""")

_SELECT_COLUMNS = """
    o.id, o.status, o.subtotal_amount, o.discount_amount, o.total_amount,
    o.currency, o.discount_code_id, o.payment_id, o.payment_method,
    o.payment_result, o.expires_at, o.paid_at, o.created_at, o.updated_at,
    d.code AS discount_code
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders o
    LEFT JOIN discount_codes d ON d.id = o.discount_code_id
    WHERE o.id = :id
""")

_LOCK_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders o
    LEFT JOIN discount_codes d ON d.id = o.discount_code_id
    WHERE o.id = :id
    FOR UPDATE OF o
""")

_GET_ITEMS_SQL = text("""
    SELECT i.id, i.order_id, i.ticket_tier_id, i.quantity, i.unit_price, i.total_price,
           t.name AS tier_name, t.slug AS tier_slug
    FROM order_items i
    JOIN ticket_tiers t ON t.id = i.ticket_tier_id
    WHERE i.order_id = :order_id
    ORDER BY t.sort_order ASC, i.id ASC
""")

_GET_ATTENDEE_SQL = text("""
    SELECT name, email, country, job_title, company, industry, org_type,
           cncf_consent, whatsapp_updates
    FROM attendees
    WHERE order_id = :order_id
""")

_LIST_OVERDUE_SQL = text("""
    SELECT id
    FROM orders
    WHERE status IN ('PENDING', 'AWAITING_PAYMENT')
      AND expires_at < :now
    ORDER BY expires_at ASC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _load_payload(value: Any) -> dict[str, Any] | None:
    # asyncpg hands JSONB back as text unless a codec is registered
    if value is None or isinstance(value, dict):
        return value
    return json.loads(value)


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object (items/attendee loaded separately)."""
    return Order(
        id=row.id,
        status=row.status,
        subtotal_amount=row.subtotal_amount,
        discount_amount=row.discount_amount,
        total_amount=row.total_amount,
        currency=row.currency,
        discount_code_id=row.discount_code_id,
        payment_id=row.payment_id,
        payment_method=row.payment_method,
        payment_result=_load_payload(row.payment_result),
        expires_at=row.expires_at,
        paid_at=row.paid_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        discount_code=row.discount_code,
    )


def _row_to_item(row: Any) -> OrderItem:
    return OrderItem(
        id=row.id,
        order_id=row.order_id,
        ticket_tier_id=row.ticket_tier_id,
        quantity=row.quantity,
        unit_price=row.unit_price,
        total_price=row.total_price,
        tier_name=row.tier_name,
        tier_slug=row.tier_slug,
    )


def _row_to_attendee(row: Any) -> Attendee:
    return Attendee(
        name=row.name,
        email=row.email,
        country=row.country,
        job_title=row.job_title,
        company=row.company,
        industry=row.industry,
        org_type=row.org_type,
        cncf_consent=row.cncf_consent,
        whatsapp_updates=row.whatsapp_updates,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "status": order.status,
                "subtotal_amount": order.subtotal_amount,
                "discount_amount": order.discount_amount,
                "total_amount": order.total_amount,
                "currency": order.currency,
                "discount_code_id": order.discount_code_id,
                "expires_at": order.expires_at,
            },
        )
        for item in order.items:
            await db.execute(
                _INSERT_ITEM_SQL,
                {
                    "id": item.id,
                    "order_id": order.id,
                    "ticket_tier_id": item.ticket_tier_id,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                },
            )
        if order.attendee is not None:
            a = order.attendee
            await db.execute(
                _INSERT_ATTENDEE_SQL,
                {
                    "order_id": order.id,
                    "name": a.name,
                    "email": a.email,
                    "country": a.country,
                    "job_title": a.job_title,
                    "company": a.company,
                    "industry": a.industry,
                    "org_type": a.org_type,
                    "cncf_consent": a.cncf_consent,
                    "whatsapp_updates": a.whatsapp_updates,
                },
            )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        return await self._with_children(_row_to_order(row), db)

    async def lock_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_LOCK_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        return await self._with_children(_row_to_order(row), db)

    async def update_status(self, order_id: str, status: str, db: AsyncSession) -> None:
        await db.execute(_UPDATE_STATUS_SQL, {"id": order_id, "status": status})

    async def record_payment(
        self,
        order_id: str,
        payment_id: str | None,
        payment_method: str,
        payment_result: dict[str, Any] | None,
        paid_at: datetime | None,
        status: str,
        db: AsyncSession,
    ) -> None:
        await db.execute(
            _RECORD_PAYMENT_SQL,
            {
                "id": order_id,
                "status": status,
                "payment_id": payment_id,
                "payment_method": payment_method,
                "payment_result": json.dumps(payment_result) if payment_result is not None else None,
                "paid_at": paid_at,
            },
        )

    async def list_overdue_ids(
        self, now: datetime, limit: int, db: AsyncSession
    ) -> list[str]:
        result = await db.execute(_LIST_OVERDUE_SQL, {"now": now, "limit": limit})
        return [row.id for row in result.fetchall()]

    async def _with_children(self, order: Order, db: AsyncSession) -> Order:
        items_result = await db.execute(_GET_ITEMS_SQL, {"order_id": order.id})
        order.items = [_row_to_item(r) for r in items_result.fetchall()]
        attendee_result = await db.execute(_GET_ATTENDEE_SQL, {"order_id": order.id})
        attendee_row = attendee_result.fetchone()
        order.attendee = _row_to_attendee(attendee_row) if attendee_row else None
        return order
