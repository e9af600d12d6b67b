"""WalletApplicationService — read-only composition layer.

Balance mutations happen only inside settlement transactions
(src/pt_settlement/engine/engine.py); this service just reads.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.cursor import cursor_decode, cursor_encode
from src.pt_common.errors import WalletNotFoundError
from src.pt_wallet.application.schemas import (
    BalanceResponse,
    TransactionItem,
    TransactionListResponse,
)
from src.pt_wallet.domain.repository import WalletRepositoryProtocol
from src.pt_wallet.infrastructure.persistence import WalletRepository


class WalletApplicationService:
    def __init__(self, repo: WalletRepositoryProtocol | None = None) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        wallet = await self._repo.get_by_user_id(db, user_id)
        if wallet is None:
            raise WalletNotFoundError(user_id)
        return BalanceResponse.from_domain(wallet)

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        transaction_type: str | None,
    ) -> TransactionListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        txns = await self._repo.list_transactions(
            db, user_id, cursor_ts, cursor_id, limit + 1, transaction_type
        )
        has_more = len(txns) > limit
        page = txns[:limit]

        next_cursor = None
        if has_more and page and page[-1].created_at is not None:
            next_cursor = cursor_encode(page[-1].created_at, page[-1].id)
        return TransactionListResponse(
            items=[TransactionItem.from_domain(t) for t in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
