"""Repository Protocol — dependency inversion for testability."""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_holding.domain.models import Holding


class HoldingRepositoryProtocol(Protocol):
    async def lock_open_holdings(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> list[Holding]: ...

    async def locked_by_holding(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> dict[str, Decimal]: ...

    async def available_tokens(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> Decimal: ...

    async def release_tokens(
        self, db: AsyncSession, holding_id: str, tokens: Decimal
    ) -> Holding: ...

    async def find_open_holding_for_update(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> Holding | None: ...

    async def add_tokens(
        self, db: AsyncSession, holding_id: str, tokens: Decimal, amount: Decimal
    ) -> Holding: ...

    async def create_holding(
        self,
        db: AsyncSession,
        user_id: str,
        property_id: str,
        tokens: Decimal,
        amount: Decimal,
        expected_roi: Decimal | None,
    ) -> Holding: ...
