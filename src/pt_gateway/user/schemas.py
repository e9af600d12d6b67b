"""Request/response models for sign-up, sign-in and token refresh."""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.pt_gateway.user.db_models import UserModel
from src.pt_wallet.application.schemas import BalanceResponse

_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "uppercase letter"),
    (re.compile(r"[a-z]"), "lowercase letter"),
    (re.compile(r"\d"), "digit"),
)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    # bcrypt ignores anything past 72 bytes
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        missing = [label for rule, label in _PASSWORD_RULES if not rule.search(v)]
        if missing:
            raise ValueError(f"Password must contain at least one {missing[0]}")
        return v


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    display_code: str
    username: str
    email: str

    @classmethod
    def from_model(cls, user: UserModel) -> "UserInfo":
        return cls(
            user_id=str(user.id),
            display_code=user.display_code,
            username=user.username,
            email=user.email,
        )


class RegisterResponse(BaseModel):
    user: UserInfo
    wallet: BalanceResponse
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int
