"""Pydantic schemas for pt_wallet API (read-only)."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from src.pt_common.datetime_utils import to_iso
from src.pt_common.usdt import format_usdt
from src.pt_wallet.domain.models import Wallet, WalletTransaction


class BalanceResponse(BaseModel):
    user_id: str
    balance_usdt: Decimal
    balance_display: str
    total_deposited_usdt: Decimal

    @classmethod
    def from_domain(cls, wallet: Wallet) -> "BalanceResponse":
        return cls(
            user_id=wallet.user_id,
            balance_usdt=wallet.balance_usdt,
            balance_display=format_usdt(wallet.balance_usdt),
            total_deposited_usdt=wallet.total_deposited_usdt,
        )


class TransactionItem(BaseModel):
    id: str
    display_code: str
    transaction_type: str
    amount_usdt: Decimal
    balance_after: Decimal
    status: str
    property_id: str | None
    description: str | None
    reference_id: str | None
    metadata: dict[str, Any]
    created_at: str | None

    @classmethod
    def from_domain(cls, txn: WalletTransaction) -> "TransactionItem":
        return cls(
            id=txn.id,
            display_code=txn.display_code,
            transaction_type=txn.transaction_type,
            amount_usdt=txn.amount_usdt,
            balance_after=txn.balance_after,
            status=txn.status,
            property_id=txn.property_id,
            description=txn.description,
            reference_id=txn.reference_id,
            metadata=txn.metadata,
            created_at=to_iso(txn.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool
