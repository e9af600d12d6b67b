"""Account endpoints: sign-up (opens a wallet), sign-in, access token refresh."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pt_common.database import get_db_session
from src.pt_common.response import ApiResponse, request_success
from src.pt_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.pt_gateway.user.service import UserService
from src.pt_wallet.application.schemas import BalanceResponse

router = APIRouter(prefix="/auth", tags=["auth"])

_service = UserService()
_ACCESS_TTL_SECONDS = settings.JWT_EXPIRE_MINUTES * 60


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    async with db.begin():
        account = await _service.register(db, body.username, body.email, body.password)

    data = RegisterResponse(
        user=UserInfo.from_model(account.user),
        wallet=BalanceResponse.from_domain(account.wallet),
        created_at=account.user.created_at.isoformat(),
    )
    return request_success(request, data, "User registered successfully")


@router.post("/login")
async def login(
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    user, tokens = await _service.login(db, body.username, body.password)
    data = LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=_ACCESS_TTL_SECONDS,
        user=UserInfo.from_model(user),
    )
    return request_success(request, data, "Login successful")


@router.post("/refresh")
async def refresh(body: RefreshRequest, request: Request) -> ApiResponse:
    access_token = await _service.refresh(body.refresh_token)
    data = RefreshResponse(access_token=access_token, expires_in=_ACCESS_TTL_SECONDS)
    return request_success(request, data, "Token refreshed")
