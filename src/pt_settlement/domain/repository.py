"""Repository Protocol for trades."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_settlement.domain.models import Trade, TradeView


class TradeRepositoryProtocol(Protocol):
    async def insert_trade(
        self,
        db: AsyncSession,
        listing_id: str,
        buyer_id: str,
        seller_id: str,
        property_id: str,
        tokens_bought: Decimal,
        total_usdt: Decimal,
        price_per_token: Decimal,
        buyer_transaction_id: str,
        seller_transaction_id: str,
        metadata: dict[str, Any],
    ) -> Trade: ...

    async def get_by_id(self, db: AsyncSession, trade_id: str) -> Trade | None: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        property_id: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[TradeView]: ...

    async def set_certificate_path(
        self, db: AsyncSession, trade_id: str, certificate_path: str
    ) -> Trade: ...
