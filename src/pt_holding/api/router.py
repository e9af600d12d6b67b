"""Available-tokens endpoint (feeds the sell form)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.database import get_db_session
from src.pt_common.response import ApiResponse, request_success
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_holding.application.service import HoldingApplicationService

router = APIRouter(prefix="/marketplace", tags=["marketplace"])

_service = HoldingApplicationService()


@router.get("/available-tokens/{property_id}")
async def get_available_tokens(
    property_id: UUID,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_available_tokens(db, str(current_user.id), str(property_id))
    return request_success(request, data)
