"""tk_payment REST endpoints.

POST /payments/webhook              - provider confirmation (always 200 once identified)
GET  /payments/result               - shopper return URL, 303 to the status page
POST /orders/{order_id}/payment-link - request a PagueloFacil link
"""

import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_common.database import get_db_session
from src.tk_common.errors import PAYMENT_NOT_APPROVED, AppError, MissingPaymentIdentifiersError
from src.tk_common.response import ApiResponse, error_response, success_response
from src.tk_payment.application.schemas import (
    PaymentLinkResponse,
    ReconcileResponse,
    WebhookPayload,
)
from src.tk_payment.application.service import PaymentReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])
link_router = APIRouter(prefix="/orders", tags=["payments"])

_reconciler = PaymentReconciler()


@router.post("/webhook")
async def payment_webhook(
    body: WebhookPayload,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if not body.order_id or not body.transaction_id:
        raise MissingPaymentIdentifiersError()

    # Reconciliation failures are answered on HTTP 200 so the provider does not retry.
    try:
        outcome = await _reconciler.reconcile(db, body.to_confirmation())
    except AppError as exc:
        logger.warning("Webhook for order %s rejected: [%d] %s", body.order_id, exc.code, exc.message)
        resp = error_response(exc.code, exc.message)
    else:
        if outcome.success:
            resp = success_response(
                ReconcileResponse.from_outcome(outcome).model_dump(mode="json"),
                outcome.message,
            )
        else:
            resp = error_response(PAYMENT_NOT_APPROVED, outcome.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/result")
async def payment_result(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    total_paid: str | None = Query(None, alias="TotalPagado"),
    estado: str | None = Query(None, alias="Estado"),
    oper: str | None = Query(None, alias="Oper"),
    order_id: str | None = Query(None, alias="orderId"),
) -> RedirectResponse:
    outcome = await _reconciler.reconcile_redirect(db, order_id, oper, estado, total_paid)
    query = urlencode({
        "success": "true" if outcome.success else "false",
        "message": outcome.message,
    })
    return RedirectResponse(f"{settings.PAYMENT_STATUS_URL}?{query}", status_code=303)


@link_router.post("/{order_id}/payment-link")
async def create_payment_link(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    link = await _reconciler.request_payment_link(db, order_id)
    resp = success_response(PaymentLinkResponse.from_domain(link).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
