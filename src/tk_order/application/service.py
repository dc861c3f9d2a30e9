# src/tk_order/application/service.py
"""Order Engine - order creation and lifecycle transitions.

Every public operation is one unit of work on the caller's AsyncSession:
commit on success, rollback on any exception. Transitions are resolved by
the state machine under the order row lock, so concurrent pay/cancel/expire
on the same order serialize and the loser sees the terminal state.
"""
import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_common.datetime_utils import minutes_from, utc_now
from src.tk_common.enums import OrderEvent, OrderStatus, PaymentMethod
from src.tk_common.errors import (
    EmptySelectionError,
    InvalidOrderStateError,
    OrderNotFoundError,
    OrderNotYetExpiredError,
)
from src.tk_common.money import ZERO, to_money
from src.tk_discount.application.service import DiscountLedger
from src.tk_discount.domain.models import ValidatedDiscount
from src.tk_discount.domain.rules import calculate_discount, normalize_code
from src.tk_inventory.application.service import InventoryLedger
from src.tk_order.application.schemas import OrderDetail
from src.tk_order.domain.models import Attendee, Order, OrderItem
from src.tk_order.domain.repository import OrderRepositoryProtocol
from src.tk_order.domain.state_machine import transition
from src.tk_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class OrderEngine:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        inventory: InventoryLedger | None = None,
        discounts: DiscountLedger | None = None,
        reservation_minutes: int | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._inventory = inventory or InventoryLedger()
        self._discounts = discounts or DiscountLedger()
        self._reservation_minutes = (
            reservation_minutes
            if reservation_minutes is not None
            else settings.RESERVATION_WINDOW_MINUTES
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_order(
        self,
        db: AsyncSession,
        selections: dict[str, int],
        attendee: Attendee,
        discount_code: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Validate, price and reserve a new PENDING order.

        Tiers are locked before anything is read, the discount row is locked
        before it is validated, and every write lands in the same
        transaction: either the order, its reservations and the code usage
        are all committed, or none of them are.
        """
        wanted = {slug: qty for slug, qty in selections.items() if qty > 0}
        if not wanted:
            raise EmptySelectionError()
        now = now or utc_now()
        order_id = _new_id()

        try:
            tiers = await self._inventory.lock_tiers_by_slugs(db, list(wanted))

            items: list[OrderItem] = []
            for slug, qty in wanted.items():
                tier = tiers[slug]
                self._inventory.check_available(tier, qty, now)
                unit_price = to_money(tier.price)
                items.append(
                    OrderItem(
                        id=_new_id(),
                        order_id=order_id,
                        ticket_tier_id=tier.id,
                        quantity=qty,
                        unit_price=unit_price,
                        total_price=to_money(unit_price * qty),
                        tier_name=tier.name,
                        tier_slug=tier.slug,
                    )
                )
            subtotal = sum((i.total_price for i in items), ZERO)

            discount: ValidatedDiscount | None = None
            if normalize_code(discount_code):
                discount = await self._discounts.validate(
                    db, discount_code or "", wanted.keys(), now, for_update=True
                )
            calc = calculate_discount(subtotal, discount)

            order = Order(
                id=order_id,
                status=OrderStatus.PENDING.value,
                subtotal_amount=calc.subtotal,
                discount_amount=calc.discount_amount,
                total_amount=calc.total,
                currency=settings.CURRENCY,
                expires_at=minutes_from(now, self._reservation_minutes),
                discount_code_id=discount.code_id if discount else None,
                created_at=now,
                updated_at=now,
                items=items,
                attendee=attendee,
                discount_code=discount.code if discount else None,
            )
            await self._repo.save(order, db)

            for item in items:
                await self._inventory.reserve(db, item.ticket_tier_id, item.quantity, now)
            if discount is not None:
                await self._discounts.redeem(db, discount.code_id)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Order %s created: %d item(s), total %s %s, expires %s",
            order.id, len(items), order.total_amount, order.currency,
            order.expires_at.isoformat(),
        )
        return order

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def move_to_awaiting_payment(self, db: AsyncSession, order_id: str) -> Order:
        try:
            order = await self._lock(db, order_id)
            step = transition(order.id, order.status, OrderEvent.AWAIT_PAYMENT)
            await self._repo.update_status(order.id, step.target.value, db)
            order.status = step.target.value
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Order %s awaiting payment", order.id)
        return order

    async def mark_paid(
        self,
        db: AsyncSession,
        order_id: str,
        payment_id: str | None,
        payment_method: str = PaymentMethod.PAGUELOFACIL.value,
        payment_result: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Idempotent: an order that is already PAID comes back untouched."""
        try:
            order = await self._lock(db, order_id)
            step = transition(order.id, order.status, OrderEvent.PAY)
            if step.applies:
                paid_at = now or utc_now()
                await self._repo.record_payment(
                    order.id,
                    payment_id,
                    payment_method,
                    payment_result,
                    paid_at,
                    step.target.value,
                    db,
                )
                order.status = step.target.value
                order.payment_id = payment_id
                order.payment_method = payment_method
                order.payment_result = payment_result
                order.paid_at = paid_at
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if step.applies:
            logger.info("Order %s paid (payment %s)", order.id, payment_id)
        else:
            logger.debug("Order %s already paid, payment %s ignored", order.id, payment_id)
        return order

    async def cancel(self, db: AsyncSession, order_id: str) -> Order:
        """Cancel a live order and give its tickets back.

        Discount usage is not returned.
        """
        return await self._terminate(db, order_id, OrderEvent.CANCEL, now=None)

    async def expire(
        self, db: AsyncSession, order_id: str, now: datetime | None = None
    ) -> Order:
        """Expire a live order whose reservation window has lapsed.

        Status and time are both evaluated under the order row lock.
        """
        return await self._terminate(db, order_id, OrderEvent.EXPIRE, now=now or utc_now())

    async def attach_payment_link(
        self,
        db: AsyncSession,
        order_id: str,
        token: str | None,
        payload: dict[str, Any] | None,
    ) -> Order:
        """Store the provider correlation token; PENDING moves to AWAITING_PAYMENT."""
        try:
            order = await self._lock(db, order_id)
            if order.is_terminal:
                raise InvalidOrderStateError(
                    order.id, order.status, OrderEvent.AWAIT_PAYMENT.value
                )
            status = order.status
            if status == OrderStatus.PENDING:
                status = transition(order.id, status, OrderEvent.AWAIT_PAYMENT).target.value
            await self._repo.record_payment(
                order.id,
                token,
                PaymentMethod.PAGUELOFACIL.value,
                payload,
                None,
                status,
                db,
            )
            order.status = status
            order.payment_id = token
            order.payment_method = PaymentMethod.PAGUELOFACIL.value
            order.payment_result = payload
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Order %s payment link attached (token %s)", order.id, token)
        return order

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_order(self, db: AsyncSession, order_id: str) -> OrderDetail:
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return OrderDetail.from_domain(order)

    async def load(self, db: AsyncSession, order_id: str) -> Order:
        """Unlocked read of the domain object (payment flow builds its form from it)."""
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def overdue_order_ids(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[str]:
        return await self._repo.list_overdue_ids(now, limit, db)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _lock(self, db: AsyncSession, order_id: str) -> Order:
        order = await self._repo.lock_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _terminate(
        self,
        db: AsyncSession,
        order_id: str,
        event: OrderEvent,
        now: datetime | None,
    ) -> Order:
        try:
            order = await self._lock(db, order_id)
            step = transition(order.id, order.status, event)
            if step.applies:
                if event == OrderEvent.EXPIRE and now is not None and not order.is_overdue(now):
                    raise OrderNotYetExpiredError(order.id)
                if step.releases_inventory:
                    for item in order.items:
                        await self._inventory.release(db, item.ticket_tier_id, item.quantity)
                await self._repo.update_status(order.id, step.target.value, db)
                order.status = step.target.value
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if step.applies:
            logger.info(
                "Order %s %s, released %d ticket(s)",
                order.id, step.target.value.lower(),
                sum(i.quantity for i in order.items),
            )
        else:
            logger.debug("Order %s already %s, %s ignored", order.id, order.status, event.value)
        return order
