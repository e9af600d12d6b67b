"""TokenLockRepository — reservations of holding tokens against listings.

Lock rows belong to their listing (ON DELETE CASCADE). A lock never holds
zero tokens: consumption deletes it instead (CHECK locked_tokens > 0).
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.errors import InternalError
from src.pt_listing.domain.models import TokenLock

_INSERT_LOCK_SQL = text("""
    INSERT INTO token_locks (holding_id, listing_id, locked_tokens)
    VALUES (:holding_id, :listing_id, :tokens)
    RETURNING id, holding_id, listing_id, locked_tokens, created_at
""")

_LIST_FOR_LISTING_SQL = text("""
    SELECT id, holding_id, listing_id, locked_tokens, created_at
    FROM token_locks
    WHERE listing_id = :listing_id
    ORDER BY created_at ASC, id ASC
    FOR UPDATE
""")

_SHRINK_LOCK_SQL = text("""
    UPDATE token_locks
    SET locked_tokens = locked_tokens - :tokens
    WHERE id = :lock_id AND locked_tokens > :tokens
    RETURNING id
""")

_DELETE_LOCK_SQL = text("DELETE FROM token_locks WHERE id = :lock_id RETURNING id")

_DELETE_FOR_LISTING_SQL = text("DELETE FROM token_locks WHERE listing_id = :listing_id")


def _row_to_lock(row: Any) -> TokenLock:
    return TokenLock(
        id=str(row.id),
        holding_id=str(row.holding_id),
        listing_id=str(row.listing_id),
        locked_tokens=row.locked_tokens,
        created_at=row.created_at,
    )


class TokenLockRepository:
    async def insert_lock(
        self, db: AsyncSession, holding_id: str, listing_id: str, tokens: Decimal
    ) -> TokenLock:
        result = await db.execute(
            _INSERT_LOCK_SQL,
            {"holding_id": holding_id, "listing_id": listing_id, "tokens": tokens},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Token lock insert returned no rows — this should never happen")
        return _row_to_lock(row)

    async def list_for_listing_for_update(
        self, db: AsyncSession, listing_id: str
    ) -> list[TokenLock]:
        result = await db.execute(_LIST_FOR_LISTING_SQL, {"listing_id": listing_id})
        return [_row_to_lock(row) for row in result.fetchall()]

    async def shrink_lock(self, db: AsyncSession, lock_id: str, tokens: Decimal) -> None:
        result = await db.execute(_SHRINK_LOCK_SQL, {"lock_id": lock_id, "tokens": tokens})
        if result.fetchone() is None:
            raise InternalError(f"Token lock {lock_id} cannot shrink by {tokens}")

    async def delete_lock(self, db: AsyncSession, lock_id: str) -> None:
        result = await db.execute(_DELETE_LOCK_SQL, {"lock_id": lock_id})
        if result.fetchone() is None:
            raise InternalError(f"Token lock {lock_id} vanished during settlement")

    async def delete_for_listing(self, db: AsyncSession, listing_id: str) -> int:
        result = await db.execute(_DELETE_FOR_LISTING_SQL, {"listing_id": listing_id})
        return int(result.rowcount or 0)
