"""tk_discount REST endpoint.

POST /discounts/validate - eligibility preview; never redeems the code
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_discount.application.schemas import DiscountPreviewRequest
from src.tk_discount.application.service import DiscountService

router = APIRouter(prefix="/discounts", tags=["discounts"])

_service = DiscountService()


@router.post("/validate")
async def validate_discount(
    body: DiscountPreviewRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.preview(db, body.code, body.tier_slugs, body.subtotal)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
