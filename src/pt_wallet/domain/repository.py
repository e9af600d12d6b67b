"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_wallet.domain.models import Wallet, WalletTransaction


class WalletRepositoryProtocol(Protocol):
    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet: ...

    async def get_by_user_id(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def lock_for_update(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def debit(self, db: AsyncSession, user_id: str, amount: Decimal) -> Wallet: ...

    async def credit_sale(self, db: AsyncSession, user_id: str, amount: Decimal) -> Wallet: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        wallet: Wallet,
        transaction_type: str,
        amount: Decimal,
        property_id: str | None,
        description: str,
        reference_id: str | None,
        metadata: dict[str, Any],
    ) -> WalletTransaction: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
        transaction_type: str | None,
    ) -> list[WalletTransaction]: ...
