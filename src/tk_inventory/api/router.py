"""tk_inventory REST endpoints.

GET /tiers          - catalogue with effective status
GET /tiers/{slug}   - single tier
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_inventory.application.service import InventoryService

router = APIRouter(prefix="/tiers", tags=["tiers"])

_service = InventoryService()


@router.get("")
async def list_tiers(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.list_tiers(db)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{slug}")
async def get_tier(
    slug: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_tier(db, slug)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
