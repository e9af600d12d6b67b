"""Domain models for pt_settlement — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.pt_holding.domain.models import Holding
from src.pt_listing.domain.models import Listing, TokenLock
from src.pt_property.domain.models import Property
from src.pt_wallet.domain.models import Wallet


@dataclass
class Trade:
    """Immutable record of one buy; only certificate_path is written later."""

    id: str
    display_code: str
    listing_id: str | None
    buyer_id: str
    seller_id: str
    property_id: str
    tokens_bought: Decimal
    total_usdt: Decimal
    price_per_token: Decimal
    buyer_transaction_id: str | None
    seller_transaction_id: str | None
    metadata: dict[str, Any] = field(default_factory=dict)
    certificate_path: str | None = None
    created_at: datetime | None = None


@dataclass
class TradeView:
    trade: Trade
    property_title: str


@dataclass(frozen=True)
class ListingTerms:
    property_id: str
    price_per_token: Decimal
    total_tokens: Decimal
    min_order_usdt: Decimal
    max_order_usdt: Decimal


@dataclass
class ListingPlacement:
    listing: Listing
    locks: list[TokenLock]
    property: Property


@dataclass
class TradeExecution:
    trade: Trade
    listing: Listing
    property: Property
    buyer_wallet: Wallet
    buyer_holding: Holding
    seller_holding_id: str | None


@dataclass
class ListingCancellation:
    listing: Listing
    released_locks: int
