"""TradeRepository — marketplace_trades, one row per successful buy.

Trades are append-only; certificate_path is the only column written after
the insert.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.display_code import CodeKind, next_display_code
from src.pt_common.errors import InternalError, TradeNotFoundError
from src.pt_common.jsonb import dump_jsonb, load_jsonb
from src.pt_settlement.domain.models import Trade, TradeView

_TRADE_COLUMNS = """id, display_code, listing_id, buyer_id, seller_id, property_id,
              tokens_bought, total_usdt, price_per_token,
              buyer_transaction_id, seller_transaction_id,
              metadata, certificate_path, created_at"""

_INSERT_TRADE_SQL = text(f"""
    INSERT INTO marketplace_trades
        (display_code, listing_id, buyer_id, seller_id, property_id,
         tokens_bought, total_usdt, price_per_token,
         buyer_transaction_id, seller_transaction_id, metadata)
    VALUES
        (:display_code, :listing_id, :buyer_id, :seller_id, :property_id,
         :tokens_bought, :total_usdt, :price_per_token,
         :buyer_transaction_id, :seller_transaction_id, CAST(:metadata AS JSONB))
    RETURNING {_TRADE_COLUMNS}
""")

_GET_TRADE_SQL = text(f"""
    SELECT {_TRADE_COLUMNS}
    FROM marketplace_trades
    WHERE id = :trade_id
""")

_SET_CERTIFICATE_SQL = text(f"""
    UPDATE marketplace_trades
    SET certificate_path = :certificate_path
    WHERE id = :trade_id
    RETURNING {_TRADE_COLUMNS}
""")

_LIST_BY_USER_SQL = text("""
    SELECT t.id, t.display_code, t.listing_id, t.buyer_id, t.seller_id, t.property_id,
           t.tokens_bought, t.total_usdt, t.price_per_token,
           t.buyer_transaction_id, t.seller_transaction_id,
           t.metadata, t.certificate_path, t.created_at,
           p.title AS property_title
    FROM marketplace_trades t
    JOIN properties p ON p.id = t.property_id
    WHERE (t.buyer_id = :user_id OR t.seller_id = :user_id)
      AND (CAST(:property_id AS TEXT) IS NULL OR t.property_id = CAST(:property_id AS UUID))
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR t.created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              t.created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND t.id < CAST(:cursor_id AS UUID)
          )
      )
    ORDER BY t.created_at DESC, t.id DESC
    LIMIT :limit
""")


def _opt_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _row_to_trade(row: Any) -> Trade:
    return Trade(
        id=str(row.id),
        display_code=row.display_code,
        listing_id=_opt_str(row.listing_id),
        buyer_id=str(row.buyer_id),
        seller_id=str(row.seller_id),
        property_id=str(row.property_id),
        tokens_bought=row.tokens_bought,
        total_usdt=row.total_usdt,
        price_per_token=row.price_per_token,
        buyer_transaction_id=_opt_str(row.buyer_transaction_id),
        seller_transaction_id=_opt_str(row.seller_transaction_id),
        metadata=load_jsonb(row.metadata),
        certificate_path=row.certificate_path,
        created_at=row.created_at,
    )


class TradeRepository:
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
    ) -> Trade:
        display_code = await next_display_code(db, CodeKind.TRADE)
        result = await db.execute(
            _INSERT_TRADE_SQL,
            {
                "display_code": display_code,
                "listing_id": listing_id,
                "buyer_id": buyer_id,
                "seller_id": seller_id,
                "property_id": property_id,
                "tokens_bought": tokens_bought,
                "total_usdt": total_usdt,
                "price_per_token": price_per_token,
                "buyer_transaction_id": buyer_transaction_id,
                "seller_transaction_id": seller_transaction_id,
                "metadata": dump_jsonb(metadata),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Trade insert returned no rows — this should never happen")
        return _row_to_trade(row)

    async def get_by_id(self, db: AsyncSession, trade_id: str) -> Trade | None:
        result = await db.execute(_GET_TRADE_SQL, {"trade_id": trade_id})
        row = result.fetchone()
        return _row_to_trade(row) if row else None

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        property_id: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[TradeView]:
        """Trades where the user is buyer or seller, newest first."""
        result = await db.execute(
            _LIST_BY_USER_SQL,
            {
                "user_id": user_id,
                "property_id": property_id,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [
            TradeView(trade=_row_to_trade(row), property_title=row.property_title)
            for row in result.fetchall()
        ]

    async def set_certificate_path(
        self, db: AsyncSession, trade_id: str, certificate_path: str
    ) -> Trade:
        result = await db.execute(
            _SET_CERTIFICATE_SQL,
            {"trade_id": trade_id, "certificate_path": certificate_path},
        )
        row = result.fetchone()
        if row is None:
            raise TradeNotFoundError(trade_id)
        return _row_to_trade(row)
