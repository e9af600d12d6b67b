"""pt_wallet REST API — read-only, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.database import get_db_session
from src.pt_common.enums import TransactionType
from src.pt_common.response import ApiResponse, request_success
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(current_user.id))
    return request_success(request, data)


@router.get("/transactions")
async def list_transactions(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    transaction_type: TransactionType | None = Query(None, alias="type"),
) -> ApiResponse:
    data = await _service.list_transactions(
        db,
        str(current_user.id),
        cursor,
        limit,
        transaction_type.value if transaction_type else None,
    )
    return request_success(request, data)
