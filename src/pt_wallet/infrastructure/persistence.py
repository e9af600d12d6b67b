"""WalletRepository — concrete implementation of WalletRepositoryProtocol.

Balance mutations are atomic PostgreSQL UPDATE ... RETURNING statements.
During settlement the caller already holds the row lock from
lock_for_update(); the WHERE guard on debit is a second line of defence.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.display_code import CodeKind, next_display_code
from src.pt_common.enums import TransactionStatus
from src.pt_common.errors import InsufficientBalanceError, InternalError, WalletNotFoundError
from src.pt_common.jsonb import dump_jsonb, load_jsonb
from src.pt_wallet.domain.models import Wallet, WalletTransaction

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_WALLET_COLUMNS = "id, user_id, balance_usdt, total_deposited_usdt, version, created_at, updated_at"

_CREATE_WALLET_SQL = text(f"""
    INSERT INTO wallets (user_id, balance_usdt, total_deposited_usdt, version)
    VALUES (:user_id, 0, 0, 0)
    RETURNING {_WALLET_COLUMNS}
""")

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
""")

_LOCK_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
    FOR UPDATE
""")

_DEBIT_SQL = text(f"""
    UPDATE wallets
    SET balance_usdt = balance_usdt - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance_usdt >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

# Sale proceeds count towards total_deposited_usdt
_CREDIT_SALE_SQL = text(f"""
    UPDATE wallets
    SET balance_usdt = balance_usdt + :amount,
        total_deposited_usdt = total_deposited_usdt + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_WALLET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: wallet_transactions
# ---------------------------------------------------------------------------

_TXN_COLUMNS = """id, display_code, user_id, wallet_id, transaction_type,
              amount_usdt, balance_after, status, property_id,
              description, reference_id, metadata, created_at"""

_INSERT_TXN_SQL = text(f"""
    INSERT INTO wallet_transactions
        (display_code, user_id, wallet_id, transaction_type,
         amount_usdt, balance_after, status, property_id,
         description, reference_id, metadata)
    VALUES
        (:display_code, :user_id, :wallet_id, :transaction_type,
         :amount_usdt, :balance_after, :status, :property_id,
         :description, :reference_id, CAST(:metadata AS JSONB))
    RETURNING {_TXN_COLUMNS}
""")

_LIST_TXN_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:transaction_type AS TEXT) IS NULL
           OR transaction_type = CAST(:transaction_type AS TEXT))
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND id < CAST(:cursor_id AS UUID)
          )
      )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


def _row_to_wallet(row: Any) -> Wallet:
    return Wallet(
        id=str(row.id),
        user_id=str(row.user_id),
        balance_usdt=row.balance_usdt,
        total_deposited_usdt=row.total_deposited_usdt,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_transaction(row: Any) -> WalletTransaction:
    return WalletTransaction(
        id=str(row.id),
        display_code=row.display_code,
        user_id=str(row.user_id),
        wallet_id=str(row.wallet_id),
        transaction_type=row.transaction_type,
        amount_usdt=row.amount_usdt,
        balance_after=row.balance_after,
        status=row.status,
        property_id=str(row.property_id) if row.property_id else None,
        description=row.description,
        reference_id=row.reference_id,
        metadata=load_jsonb(row.metadata),
        created_at=row.created_at,
    )


class WalletRepository:
    """Concrete repository — raw SQL, caller-owned transaction."""

    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        result = await db.execute(_CREATE_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            raise InternalError("Wallet insert returned no rows — this should never happen")
        return _row_to_wallet(row)

    async def get_by_user_id(self, db: AsyncSession, user_id: str) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def lock_for_update(self, db: AsyncSession, user_id: str) -> Wallet | None:
        """Pessimistic row lock, held until the transaction ends."""
        result = await db.execute(_LOCK_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def debit(self, db: AsyncSession, user_id: str, amount: Decimal) -> Wallet:
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            wallet = await self.get_by_user_id(db, user_id)
            if wallet is None:
                raise WalletNotFoundError(user_id)
            raise InsufficientBalanceError(amount, wallet.balance_usdt)
        return _row_to_wallet(row)

    async def credit_sale(self, db: AsyncSession, user_id: str, amount: Decimal) -> Wallet:
        result = await db.execute(_CREDIT_SALE_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise WalletNotFoundError(user_id)
        return _row_to_wallet(row)

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
    ) -> WalletTransaction:
        """Append an audit row; balance_after is taken from the mutated wallet."""
        display_code = await next_display_code(db, CodeKind.TRANSACTION)
        result = await db.execute(
            _INSERT_TXN_SQL,
            {
                "display_code": display_code,
                "user_id": wallet.user_id,
                "wallet_id": wallet.id,
                "transaction_type": transaction_type,
                "amount_usdt": amount,
                "balance_after": wallet.balance_usdt,
                "status": TransactionStatus.COMPLETED.value,
                "property_id": property_id,
                "description": description,
                "reference_id": reference_id,
                "metadata": dump_jsonb(metadata),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows — this should never happen")
        return _row_to_transaction(row)

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
        transaction_type: str | None,
    ) -> list[WalletTransaction]:
        result = await db.execute(
            _LIST_TXN_SQL,
            {
                "user_id": user_id,
                "transaction_type": transaction_type,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_transaction(row) for row in result.fetchall()]
