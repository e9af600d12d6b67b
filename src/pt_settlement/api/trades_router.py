"""Trade history REST API — trades where the caller is buyer or seller."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.cursor import cursor_decode, cursor_encode
from src.pt_common.database import get_db_session
from src.pt_common.response import ApiResponse, request_success
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_settlement.application.trades_schemas import TradeListResponse, TradeResponse
from src.pt_settlement.infrastructure.trades_repository import TradeRepository

router = APIRouter(prefix="/marketplace", tags=["marketplace"])
_repo = TradeRepository()


@router.get("/my-trades")
async def list_my_trades(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    property_id: UUID | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
) -> ApiResponse:
    user_id = str(current_user.id)
    cursor_ts, cursor_id = cursor_decode(cursor)
    views = await _repo.list_by_user(
        db,
        user_id,
        str(property_id) if property_id else None,
        cursor_ts,
        cursor_id,
        limit + 1,
    )
    has_more = len(views) > limit
    page = views[:limit]
    next_cursor = None
    if has_more and page and page[-1].trade.created_at is not None:
        next_cursor = cursor_encode(page[-1].trade.created_at, page[-1].trade.id)
    data = TradeListResponse(
        items=[TradeResponse.from_view(v, user_id) for v in page],
        has_more=has_more,
        next_cursor=next_cursor,
    )
    return request_success(request, data)
