"""Bearer-token dependencies for marketplace routers.

    get_current_user   — token required (create/buy/cancel, wallet, my-*).
    get_optional_user  — anonymous browsing allowed; a token that IS sent
                         must still be a valid access token.
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.database import get_db_session
from src.pt_common.errors import AccountDisabledError, InvalidCredentialsError
from src.pt_gateway.auth.jwt_handler import ACCESS, decode_token
from src.pt_gateway.user.db_models import UserModel

_LOGIN_URL = "/api/v1/auth/login"
_required_bearer = OAuth2PasswordBearer(tokenUrl=_LOGIN_URL)
_optional_bearer = OAuth2PasswordBearer(tokenUrl=_LOGIN_URL, auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject(token: str) -> uuid.UUID:
    try:
        return uuid.UUID(decode_token(token, expected_type=ACCESS)["sub"])
    except (InvalidCredentialsError, KeyError, ValueError):
        raise _unauthorized() from None


async def _active_user(db: AsyncSession, token: str) -> UserModel:
    user = await db.get(UserModel, _subject(token))
    if user is None:
        raise _unauthorized()
    if not user.is_active:
        raise AccountDisabledError()
    return user


async def get_current_user(
    token: Annotated[str, Depends(_required_bearer)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> UserModel:
    return await _active_user(db, token)


async def get_optional_user(
    token: Annotated[str | None, Depends(_optional_bearer)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> UserModel | None:
    return None if token is None else await _active_user(db, token)
