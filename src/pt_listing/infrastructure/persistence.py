"""ListingRepository — concrete implementation of ListingRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
ORDER BY cannot be bound, so each whitelisted sort has its own statement.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.display_code import CodeKind, next_display_code
from src.pt_common.enums import ListingSort
from src.pt_common.errors import InternalError, ListingNotFoundError
from src.pt_listing.domain.models import Listing, ListingView

# ---------------------------------------------------------------------------
# SQL: mutations
# ---------------------------------------------------------------------------

_LISTING_COLUMNS = """id, display_code, seller_id, property_id, price_per_token,
              total_tokens, remaining_tokens, min_order_usdt, max_order_usdt,
              status, created_at, updated_at"""

_INSERT_LISTING_SQL = text(f"""
    INSERT INTO marketplace_listings
        (display_code, seller_id, property_id, price_per_token,
         total_tokens, remaining_tokens, min_order_usdt, max_order_usdt, status)
    VALUES
        (:display_code, :seller_id, :property_id, :price_per_token,
         :total_tokens, :total_tokens, :min_order_usdt, :max_order_usdt, 'active')
    RETURNING {_LISTING_COLUMNS}
""")

_GET_FOR_UPDATE_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM marketplace_listings
    WHERE id = :listing_id
    FOR UPDATE
""")

_APPLY_FILL_SQL = text(f"""
    UPDATE marketplace_listings
    SET remaining_tokens = remaining_tokens - :tokens,
        status = CASE WHEN remaining_tokens - :tokens = 0 THEN 'sold' ELSE status END,
        updated_at = NOW()
    WHERE id = :listing_id
      AND status = 'active'
      AND remaining_tokens >= :tokens
    RETURNING {_LISTING_COLUMNS}
""")

_MARK_CANCELLED_SQL = text(f"""
    UPDATE marketplace_listings
    SET status = 'cancelled',
        updated_at = NOW()
    WHERE id = :listing_id AND status = 'active'
    RETURNING {_LISTING_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_VIEW_SELECT = """
    SELECT m.id, m.display_code, m.seller_id, m.property_id, m.price_per_token,
           m.total_tokens, m.remaining_tokens, m.min_order_usdt, m.max_order_usdt,
           m.status, m.created_at, m.updated_at,
           p.title AS property_title,
           p.expected_roi,
           u.display_code AS seller_display_code
    FROM marketplace_listings m
    JOIN properties p ON p.id = m.property_id
    JOIN users u ON u.id = m.seller_id
"""

_GET_VIEW_SQL = text(_VIEW_SELECT + " WHERE m.id = :listing_id")

_ACTIVE_FILTER = """
    WHERE m.status = 'active'
      AND m.remaining_tokens > 0
      AND (CAST(:property_id AS TEXT) IS NULL OR m.property_id = CAST(:property_id AS UUID))
      AND (CAST(:exclude_seller_id AS TEXT) IS NULL
           OR m.seller_id <> CAST(:exclude_seller_id AS UUID))
"""

_SORT_ORDER: dict[ListingSort, str] = {
    ListingSort.PRICE_ASC: "m.price_per_token ASC, m.created_at DESC",
    ListingSort.PRICE_DESC: "m.price_per_token DESC, m.created_at DESC",
    ListingSort.CREATED_AT_DESC: "m.created_at DESC",
    ListingSort.CREATED_AT_ASC: "m.created_at ASC",
    ListingSort.ROI_DESC: "p.expected_roi DESC NULLS LAST, m.created_at DESC",
}

_LIST_ACTIVE_SQL = {
    sort: text(
        _VIEW_SELECT + _ACTIVE_FILTER + f" ORDER BY {order}, m.id ASC LIMIT :limit OFFSET :offset"
    )
    for sort, order in _SORT_ORDER.items()
}

_COUNT_ACTIVE_SQL = text(
    "SELECT COUNT(*) FROM marketplace_listings m" + _ACTIVE_FILTER
)

_LIST_BY_SELLER_SQL = text(_VIEW_SELECT + """
    WHERE m.seller_id = :seller_id
      AND (CAST(:status AS TEXT) IS NULL OR m.status = CAST(:status AS TEXT))
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR m.created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              m.created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND m.id < CAST(:cursor_id AS UUID)
          )
      )
    ORDER BY m.created_at DESC, m.id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_listing(row: Any) -> Listing:
    return Listing(
        id=str(row.id),
        display_code=row.display_code,
        seller_id=str(row.seller_id),
        property_id=str(row.property_id),
        price_per_token=row.price_per_token,
        total_tokens=row.total_tokens,
        remaining_tokens=row.remaining_tokens,
        min_order_usdt=row.min_order_usdt,
        max_order_usdt=row.max_order_usdt,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_view(row: Any) -> ListingView:
    return ListingView(
        listing=_row_to_listing(row),
        property_title=row.property_title,
        expected_roi=row.expected_roi,
        seller_display_code=row.seller_display_code,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete repository — raw SQL, caller-owned transaction."""

    async def insert(
        self,
        db: AsyncSession,
        seller_id: str,
        property_id: str,
        price_per_token: Decimal,
        total_tokens: Decimal,
        min_order_usdt: Decimal,
        max_order_usdt: Decimal,
    ) -> Listing:
        display_code = await next_display_code(db, CodeKind.LISTING)
        result = await db.execute(
            _INSERT_LISTING_SQL,
            {
                "display_code": display_code,
                "seller_id": seller_id,
                "property_id": property_id,
                "price_per_token": price_per_token,
                "total_tokens": total_tokens,
                "min_order_usdt": min_order_usdt,
                "max_order_usdt": max_order_usdt,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Listing insert returned no rows — this should never happen")
        return _row_to_listing(row)

    async def get_for_update(self, db: AsyncSession, listing_id: str) -> Listing | None:
        """Exclusive row lock; concurrent buyers of the same listing queue here."""
        result = await db.execute(_GET_FOR_UPDATE_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def apply_fill(self, db: AsyncSession, listing_id: str, tokens: Decimal) -> Listing:
        result = await db.execute(_APPLY_FILL_SQL, {"listing_id": listing_id, "tokens": tokens})
        row = result.fetchone()
        if row is None:
            # Caller validated under the row lock; reaching here means the lock was not held
            raise InternalError(f"Listing {listing_id} fill of {tokens} rejected by guard")
        return _row_to_listing(row)

    async def mark_cancelled(self, db: AsyncSession, listing_id: str) -> Listing:
        result = await db.execute(_MARK_CANCELLED_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        if row is None:
            raise ListingNotFoundError(listing_id)
        return _row_to_listing(row)

    async def get_view(self, db: AsyncSession, listing_id: str) -> ListingView | None:
        result = await db.execute(_GET_VIEW_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_view(row) if row else None

    async def list_active(
        self,
        db: AsyncSession,
        property_id: str | None,
        exclude_seller_id: str | None,
        sort: str,
        limit: int,
        offset: int,
    ) -> tuple[list[ListingView], int]:
        """One page of active listings plus the total match count."""
        filters = {"property_id": property_id, "exclude_seller_id": exclude_seller_id}
        result = await db.execute(
            _LIST_ACTIVE_SQL[ListingSort(sort)],
            {**filters, "limit": limit, "offset": offset},
        )
        views = [_row_to_view(row) for row in result.fetchall()]
        total = (await db.execute(_COUNT_ACTIVE_SQL, filters)).scalar_one()
        return views, int(total)

    async def list_by_seller(
        self,
        db: AsyncSession,
        seller_id: str,
        status: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[ListingView]:
        result = await db.execute(
            _LIST_BY_SELLER_SQL,
            {
                "seller_id": seller_id,
                "status": status,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_view(row) for row in result.fetchall()]


