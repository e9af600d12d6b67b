"""HoldingRepository — concrete implementation of HoldingRepositoryProtocol.

"Open" holdings are status confirmed/active. Locks only count against a
holding while their listing is still active; sold/cancelled listings
release their reservation even before their lock rows are cleaned up.

Transaction ownership: the CALLER commits or rolls back.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.display_code import CodeKind, next_display_code
from src.pt_common.enums import HoldingStatus
from src.pt_common.errors import HoldingNotFoundError, InternalError
from src.pt_common.usdt import ZERO
from src.pt_holding.domain.models import Holding

_HOLDING_COLUMNS = """id, display_code, user_id, property_id, tokens_purchased,
              amount_usdt, expected_roi, status, created_at, updated_at"""

_LOCK_OPEN_HOLDINGS_SQL = text(f"""
    SELECT {_HOLDING_COLUMNS}
    FROM holdings
    WHERE user_id = :user_id
      AND property_id = :property_id
      AND status IN ('confirmed', 'active')
    ORDER BY created_at ASC, id ASC
    FOR UPDATE
""")

_LOCKED_BY_HOLDING_SQL = text("""
    SELECT l.holding_id, SUM(l.locked_tokens) AS locked_tokens
    FROM token_locks l
    JOIN marketplace_listings m ON m.id = l.listing_id AND m.status = 'active'
    JOIN holdings h ON h.id = l.holding_id
    WHERE h.user_id = :user_id
      AND h.property_id = :property_id
      AND h.status IN ('confirmed', 'active')
    GROUP BY l.holding_id
""")

_AVAILABLE_TOKENS_SQL = text("""
    SELECT
        COALESCE((
            SELECT SUM(h.tokens_purchased)
            FROM holdings h
            WHERE h.user_id = :user_id
              AND h.property_id = :property_id
              AND h.status IN ('confirmed', 'active')
        ), 0)
        -
        COALESCE((
            SELECT SUM(l.locked_tokens)
            FROM token_locks l
            JOIN marketplace_listings m ON m.id = l.listing_id AND m.status = 'active'
            JOIN holdings h ON h.id = l.holding_id
            WHERE h.user_id = :user_id
              AND h.property_id = :property_id
              AND h.status IN ('confirmed', 'active')
        ), 0) AS available_tokens
""")

# SET expressions all see the pre-update row, so the cost basis released is
# amount × qty / tokens (truncated) and an emptied holding drops to zero.
_RELEASE_TOKENS_SQL = text(f"""
    UPDATE holdings
    SET amount_usdt = CASE
            WHEN tokens_purchased = :tokens THEN 0
            ELSE amount_usdt - TRUNC(amount_usdt * :tokens / tokens_purchased, 6)
        END,
        tokens_purchased = tokens_purchased - :tokens,
        status = CASE
            WHEN tokens_purchased - :tokens <= 0 THEN 'sold'
            ELSE status
        END,
        updated_at = NOW()
    WHERE id = :holding_id AND tokens_purchased >= :tokens
    RETURNING {_HOLDING_COLUMNS}
""")

_FIND_OPEN_HOLDING_SQL = text(f"""
    SELECT {_HOLDING_COLUMNS}
    FROM holdings
    WHERE user_id = :user_id
      AND property_id = :property_id
      AND status IN ('confirmed', 'active')
    ORDER BY created_at ASC, id ASC
    LIMIT 1
    FOR UPDATE
""")

_ADD_TOKENS_SQL = text(f"""
    UPDATE holdings
    SET tokens_purchased = tokens_purchased + :tokens,
        amount_usdt = amount_usdt + :amount,
        updated_at = NOW()
    WHERE id = :holding_id
    RETURNING {_HOLDING_COLUMNS}
""")

_INSERT_HOLDING_SQL = text(f"""
    INSERT INTO holdings
        (display_code, user_id, property_id, tokens_purchased,
         amount_usdt, expected_roi, status)
    VALUES
        (:display_code, :user_id, :property_id, :tokens,
         :amount, :expected_roi, :status)
    RETURNING {_HOLDING_COLUMNS}
""")


def _row_to_holding(row: Any) -> Holding:
    return Holding(
        id=str(row.id),
        display_code=row.display_code,
        user_id=str(row.user_id),
        property_id=str(row.property_id),
        tokens_purchased=row.tokens_purchased,
        amount_usdt=row.amount_usdt,
        expected_roi=row.expected_roi,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class HoldingRepository:
    """Concrete repository — raw SQL, caller-owned transaction."""

    async def lock_open_holdings(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> list[Holding]:
        """Open holdings oldest first, row-locked until the transaction ends."""
        result = await db.execute(
            _LOCK_OPEN_HOLDINGS_SQL, {"user_id": user_id, "property_id": property_id}
        )
        return [_row_to_holding(row) for row in result.fetchall()]

    async def locked_by_holding(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> dict[str, Decimal]:
        result = await db.execute(
            _LOCKED_BY_HOLDING_SQL, {"user_id": user_id, "property_id": property_id}
        )
        return {str(row.holding_id): row.locked_tokens for row in result.fetchall()}

    async def available_tokens(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> Decimal:
        result = await db.execute(
            _AVAILABLE_TOKENS_SQL, {"user_id": user_id, "property_id": property_id}
        )
        value = result.scalar_one_or_none()
        return max(Decimal(value), ZERO) if value is not None else ZERO

    async def release_tokens(
        self, db: AsyncSession, holding_id: str, tokens: Decimal
    ) -> Holding:
        """Take tokens out of a seller holding; marks it sold when emptied."""
        result = await db.execute(
            _RELEASE_TOKENS_SQL, {"holding_id": holding_id, "tokens": tokens}
        )
        row = result.fetchone()
        if row is None:
            raise HoldingNotFoundError(holding_id)
        return _row_to_holding(row)

    async def find_open_holding_for_update(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> Holding | None:
        result = await db.execute(
            _FIND_OPEN_HOLDING_SQL, {"user_id": user_id, "property_id": property_id}
        )
        row = result.fetchone()
        return _row_to_holding(row) if row else None

    async def add_tokens(
        self, db: AsyncSession, holding_id: str, tokens: Decimal, amount: Decimal
    ) -> Holding:
        result = await db.execute(
            _ADD_TOKENS_SQL, {"holding_id": holding_id, "tokens": tokens, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            raise HoldingNotFoundError(holding_id)
        return _row_to_holding(row)

    async def create_holding(
        self,
        db: AsyncSession,
        user_id: str,
        property_id: str,
        tokens: Decimal,
        amount: Decimal,
        expected_roi: Decimal | None,
    ) -> Holding:
        display_code = await next_display_code(db, CodeKind.HOLDING)
        result = await db.execute(
            _INSERT_HOLDING_SQL,
            {
                "display_code": display_code,
                "user_id": user_id,
                "property_id": property_id,
                "tokens": tokens,
                "amount": amount,
                "expected_roi": expected_roi,
                "status": HoldingStatus.CONFIRMED.value,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Holding insert returned no rows — this should never happen")
        return _row_to_holding(row)
