"""tk_order REST endpoints.

POST /orders                  - create a PENDING order (201)
GET  /orders/{order_id}       - order detail
POST /orders/{order_id}/cancel
POST /orders/{order_id}/expire
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_order.application.schemas import CreateOrderRequest, OrderDetail
from src.tk_order.application.service import OrderEngine

router = APIRouter(prefix="/orders", tags=["orders"])

_engine = OrderEngine()


def _respond(request: Request, detail: OrderDetail, message: str = "success") -> ApiResponse:
    resp = success_response(detail.model_dump(mode="json"), message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _engine.create_order(
        db, body.selections, body.attendee.to_domain(), body.discount_code
    )
    return _respond(request, OrderDetail.from_domain(order), "Order created")


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _respond(request, await _engine.get_order(db, order_id))


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _engine.cancel(db, order_id)
    return _respond(request, OrderDetail.from_domain(order))


@router.post("/{order_id}/expire")
async def expire_order(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _engine.expire(db, order_id)
    return _respond(request, OrderDetail.from_domain(order))
