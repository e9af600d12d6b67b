"""Domain models for pt_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass
class Wallet:
    id: str
    user_id: str
    balance_usdt: Decimal
    total_deposited_usdt: Decimal
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class WalletTransaction:
    """Append-only audit row. amount_usdt is signed: debit < 0 < credit."""

    id: str
    display_code: str
    user_id: str
    wallet_id: str
    transaction_type: str            # TransactionType value
    amount_usdt: Decimal
    balance_after: Decimal
    status: str
    property_id: str | None = None
    description: str | None = None
    reference_id: str | None = None  # listing display code for marketplace rows
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
