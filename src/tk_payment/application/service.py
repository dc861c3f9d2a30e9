"""Payment Reconciler - PagueloFacil payment links and confirmations.

The provider call never runs inside a database transaction: the order is
read without a lock and that read is rolled back before the link is
requested. Only a successful response is written back through
OrderEngine.attach_payment_link. Confirmations are verified (status,
amount) before OrderEngine.mark_paid, which is idempotent, so webhook and
redirect replays converge on the same PAID order.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_common.enums import OrderEvent, OrderStatus, PaymentMethod
from src.tk_common.errors import (
    AmountMismatchError,
    AppError,
    InvalidOrderStateError,
    OrderNotFoundError,
    ProviderError,
)
from src.tk_common.money import parse_money
from src.tk_order.application.service import OrderEngine
from src.tk_payment.domain.models import (
    PaymentConfirmation,
    PaymentLink,
    ReconcileOutcome,
    build_link_form,
    is_approved,
)
from src.tk_payment.domain.provider import PaymentProviderProtocol
from src.tk_payment.infrastructure.paguelofacil import PagueloFacilClient

logger = logging.getLogger(__name__)

MSG_PAID = "Order updated to paid successfully"
MSG_COMPLETED = "Your order has been completed successfully."
MSG_UNVERIFIED = "We could not verify your payment."
MSG_AMOUNT_MISMATCH = "Payment amount does not match the order total."
MSG_ORDER_NOT_FOUND = "Order not found."


class PaymentReconciler:
    def __init__(
        self,
        orders: OrderEngine | None = None,
        provider: PaymentProviderProtocol | None = None,
    ) -> None:
        self._orders = orders or OrderEngine()
        self._provider: PaymentProviderProtocol = provider or PagueloFacilClient()

    async def request_payment_link(self, db: AsyncSession, order_id: str) -> PaymentLink:
        cclw = settings.PAGUELOFACIL_CCLW
        return_url = settings.PAGUELOFACIL_RETURN_URL
        if not cclw or not return_url:
            raise ProviderError(
                "Payment provider is not configured correctly. Please contact support."
            )

        order = await self._orders.load(db, order_id)
        if order.is_terminal:
            raise InvalidOrderStateError(order.id, order.status, OrderEvent.AWAIT_PAYMENT.value)

        form = build_link_form(
            order,
            cclw=cclw,
            return_url=return_url,
            expires_in=settings.PAYMENT_LINK_EXPIRES_IN,
            tax_rate=settings.TAX_RATE,
        )
        # release the read transaction; no connection is held across the provider call
        await db.rollback()
        payload = await self._provider.create_link(form)

        header = payload.get("headerStatus") or {}
        data = payload.get("data") or {}
        url = data.get("url")
        if header.get("code") != 200 or not url:
            detail = (
                header.get("description")
                or payload.get("message")
                or "Payment provider rejected the request"
            )
            logger.warning("Payment link refused for order %s: %s", order.id, detail)
            raise ProviderError(detail)

        token = data.get("code")
        await self._orders.attach_payment_link(
            db, order.id, str(token) if token is not None else None, payload
        )
        logger.info("Payment link issued for order %s", order.id)
        return PaymentLink(order_id=order.id, url=url)

    async def reconcile(
        self, db: AsyncSession, confirmation: PaymentConfirmation
    ) -> ReconcileOutcome:
        """Apply a provider confirmation.

        A non-approved status is reported, not raised, and changes nothing.
        An approved one must name an existing order and carry exactly its
        total; anything else raises before the order is touched.
        """
        if not is_approved(confirmation.status):
            logger.warning(
                "Payment for order %s not approved (status %s)",
                confirmation.order_id, confirmation.status,
            )
            return ReconcileOutcome(
                success=False,
                order_id=confirmation.order_id,
                status=confirmation.status,
                message=f"Payment status: {confirmation.status}",
            )

        order = await self._orders.load(db, confirmation.order_id)
        received = parse_money(confirmation.amount)
        if received is None or received != order.total_amount:
            logger.warning(
                "Amount mismatch for order %s: expected %s, got %r",
                order.id, order.total_amount, confirmation.amount,
            )
            raise AmountMismatchError(
                str(order.total_amount),
                None if confirmation.amount is None else str(confirmation.amount),
            )

        already_paid = order.status == OrderStatus.PAID
        paid = await self._orders.mark_paid(
            db,
            order.id,
            confirmation.provider_transaction_id,
            PaymentMethod.PAGUELOFACIL.value,
            confirmation.raw or None,
        )
        return ReconcileOutcome(
            success=True,
            order_id=paid.id,
            status=paid.status,
            message=MSG_PAID,
            already_paid=already_paid,
        )

    async def reconcile_redirect(
        self,
        db: AsyncSession,
        order_id: str | None,
        oper: str | None,
        status: str | None,
        total_paid: str | None,
    ) -> ReconcileOutcome:
        """Return-URL variant: never raises, always yields a message for the shopper."""
        if not (is_approved(status) and oper and order_id):
            message = f"Payment status: {status}" if status else MSG_UNVERIFIED
            return ReconcileOutcome(
                success=False, order_id=order_id or "", status=status, message=message
            )

        confirmation = PaymentConfirmation(
            order_id=order_id,
            provider_transaction_id=oper,
            status=status,
            amount=total_paid,
            raw={"TotalPagado": total_paid, "Estado": status, "Oper": oper, "orderId": order_id},
        )
        try:
            outcome = await self.reconcile(db, confirmation)
        except OrderNotFoundError:
            message = MSG_ORDER_NOT_FOUND
        except AmountMismatchError:
            message = MSG_AMOUNT_MISMATCH
        except AppError as exc:
            message = exc.message
        else:
            return ReconcileOutcome(
                success=True,
                order_id=outcome.order_id,
                status=outcome.status,
                message=MSG_COMPLETED,
                already_paid=outcome.already_paid,
            )
        return ReconcileOutcome(success=False, order_id=order_id, status=status, message=message)
