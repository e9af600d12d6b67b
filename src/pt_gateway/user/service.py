"""Account onboarding: sign-up opens a wallet, sign-in issues a JWT pair.

The caller owns the transaction; sign-up must run inside `db.begin()` so
the user row and its wallet land together or not at all.
"""

from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.display_code import CodeKind, next_display_code
from src.pt_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.pt_gateway.auth.jwt_handler import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.pt_gateway.auth.password import hash_password, verify_password
from src.pt_gateway.user.db_models import UserModel
from src.pt_wallet.domain.models import Wallet
from src.pt_wallet.domain.repository import WalletRepositoryProtocol
from src.pt_wallet.infrastructure.persistence import WalletRepository


@dataclass
class Account:
    user: UserModel
    wallet: Wallet


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class UserService:
    def __init__(self, wallets: WalletRepositoryProtocol | None = None) -> None:
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()

    async def register(
        self, db: AsyncSession, username: str, email: str, password: str
    ) -> Account:
        """Create the user (USR-* display code) and a zero-balance wallet.

        Username clashes are reported before email clashes. The UNIQUE
        constraints still back this up under concurrent sign-ups.
        """
        await self._ensure_unclaimed(db, username, email)

        user = UserModel(
            display_code=await next_display_code(db, CodeKind.USER),
            username=username,
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()

        wallet = await self._wallets.create_wallet(db, str(user.id))
        return Account(user=user, wallet=wallet)

    async def login(
        self, db: AsyncSession, username: str, password: str
    ) -> tuple[UserModel, TokenPair]:
        user = await self._by_username(db, username)
        # same error for unknown user and bad password
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDisabledError()

        subject = str(user.id)
        return user, TokenPair(create_access_token(subject), create_refresh_token(subject))

    async def refresh(self, refresh_token: str) -> str:
        claims = decode_token(refresh_token, expected_type=REFRESH)
        return create_access_token(str(claims["sub"]))

    async def _by_username(self, db: AsyncSession, username: str) -> UserModel | None:
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        return result.scalar_one_or_none()

    async def _ensure_unclaimed(self, db: AsyncSession, username: str, email: str) -> None:
        result = await db.execute(
            select(UserModel.username, UserModel.email).where(
                or_(UserModel.username == username, UserModel.email == email)
            )
        )
        clashes = result.all()
        if any(row.username == username for row in clashes):
            raise UsernameExistsError()
        if clashes:
            raise EmailExistsError()
