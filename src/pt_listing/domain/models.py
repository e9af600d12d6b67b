"""Domain models for pt_listing — pure dataclasses, no SQLAlchemy dependency.

Listing invariants (also enforced by DB CHECK constraints):
  0 <= remaining_tokens <= total_tokens
  status == 'sold'  <=>  remaining_tokens == 0
  active -> sold / active -> cancelled are the only transitions
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pt_common.enums import ListingStatus


@dataclass
class Listing:
    id: str
    display_code: str
    seller_id: str
    property_id: str
    price_per_token: Decimal
    total_tokens: Decimal
    remaining_tokens: Decimal
    min_order_usdt: Decimal
    max_order_usdt: Decimal
    status: str                      # ListingStatus value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE.value

    @property
    def sold_tokens(self) -> Decimal:
        return self.total_tokens - self.remaining_tokens


@dataclass
class ListingView:
    """Listing joined with what a reader needs: property and seller code."""

    listing: Listing
    property_title: str
    expected_roi: Decimal | None
    seller_display_code: str


@dataclass
class TokenLock:
    id: str
    holding_id: str
    listing_id: str
    locked_tokens: Decimal
    created_at: datetime | None = None
