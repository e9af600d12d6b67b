"""Repository Protocols for the listing book and the token lock registry."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_listing.domain.models import Listing, ListingView, TokenLock


class ListingRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        seller_id: str,
        property_id: str,
        price_per_token: Decimal,
        total_tokens: Decimal,
        min_order_usdt: Decimal,
        max_order_usdt: Decimal,
    ) -> Listing: ...

    async def get_for_update(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def apply_fill(self, db: AsyncSession, listing_id: str, tokens: Decimal) -> Listing: ...

    async def mark_cancelled(self, db: AsyncSession, listing_id: str) -> Listing: ...

    async def get_view(self, db: AsyncSession, listing_id: str) -> ListingView | None: ...

    async def list_active(
        self,
        db: AsyncSession,
        property_id: str | None,
        exclude_seller_id: str | None,
        sort: str,
        limit: int,
        offset: int,
    ) -> tuple[list[ListingView], int]: ...

    async def list_by_seller(
        self,
        db: AsyncSession,
        seller_id: str,
        status: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[ListingView]: ...


class TokenLockRepositoryProtocol(Protocol):
    async def insert_lock(
        self, db: AsyncSession, holding_id: str, listing_id: str, tokens: Decimal
    ) -> TokenLock: ...

    async def list_for_listing_for_update(
        self, db: AsyncSession, listing_id: str
    ) -> list[TokenLock]: ...

    async def shrink_lock(self, db: AsyncSession, lock_id: str, tokens: Decimal) -> None: ...

    async def delete_lock(self, db: AsyncSession, lock_id: str) -> None: ...

    async def delete_for_listing(self, db: AsyncSession, listing_id: str) -> int: ...
