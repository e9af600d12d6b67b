"""Pydantic request/response schemas for the marketplace listing API.

Amounts are Decimal with at most 6 fractional digits; they are returned as
strings in JSON.
"""

from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from src.pt_common.datetime_utils import to_iso
from src.pt_common.display_code import mask_display_code
from src.pt_listing.domain.models import ListingView, TokenLock
from src.pt_settlement.domain.models import ListingCancellation, TradeExecution

_AMOUNT = {"gt": 0, "max_digits": 18, "decimal_places": 6}


class CreateListingRequest(BaseModel):
    property_id: UUID
    price_per_token: Decimal = Field(..., **_AMOUNT)
    total_tokens: Decimal = Field(..., **_AMOUNT)
    min_order_usdt: Decimal = Field(..., **_AMOUNT)
    max_order_usdt: Decimal = Field(..., **_AMOUNT)

    @model_validator(mode="after")
    def min_not_above_max(self) -> Self:
        if self.min_order_usdt > self.max_order_usdt:
            raise ValueError("min_order_usdt must not exceed max_order_usdt")
        return self


class BuyRequest(BaseModel):
    tokens: Decimal = Field(..., **_AMOUNT)


class ListingResponse(BaseModel):
    id: str
    display_code: str
    seller: str
    is_own: bool
    property_id: str
    property_title: str
    expected_roi: Decimal | None
    price_per_token: Decimal
    total_tokens: Decimal
    remaining_tokens: Decimal
    sold_tokens: Decimal
    min_order_usdt: Decimal
    max_order_usdt: Decimal
    status: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_view(cls, view: ListingView, viewer_id: str | None) -> "ListingResponse":
        """Seller display code is shown in full only to the seller."""
        listing = view.listing
        is_own = viewer_id is not None and viewer_id == listing.seller_id
        return cls(
            id=listing.id,
            display_code=listing.display_code,
            seller=(
                view.seller_display_code if is_own
                else mask_display_code(view.seller_display_code)
            ),
            is_own=is_own,
            property_id=listing.property_id,
            property_title=view.property_title,
            expected_roi=view.expected_roi,
            price_per_token=listing.price_per_token,
            total_tokens=listing.total_tokens,
            remaining_tokens=listing.remaining_tokens,
            sold_tokens=listing.sold_tokens,
            min_order_usdt=listing.min_order_usdt,
            max_order_usdt=listing.max_order_usdt,
            status=listing.status,
            created_at=to_iso(listing.created_at),
            updated_at=to_iso(listing.updated_at),
        )


class ListingListResponse(BaseModel):
    items: list[ListingResponse]
    total: int
    limit: int
    offset: int


class MyListingsResponse(BaseModel):
    items: list[ListingResponse]
    next_cursor: str | None
    has_more: bool


class LockItem(BaseModel):
    id: str
    holding_id: str
    locked_tokens: Decimal

    @classmethod
    def from_domain(cls, lock: TokenLock) -> "LockItem":
        return cls(id=lock.id, holding_id=lock.holding_id, locked_tokens=lock.locked_tokens)


class CreateListingResponse(BaseModel):
    listing: ListingResponse
    locks: list[LockItem]


class BuyResponse(BaseModel):
    trade_id: str
    trade_display_code: str
    listing_id: str
    listing_display_code: str
    property_id: str
    property_title: str
    tokens_bought: Decimal
    price_per_token: Decimal
    total_usdt: Decimal
    listing_remaining_tokens: Decimal
    listing_status: str
    balance_usdt: Decimal
    holding_id: str
    holding_display_code: str
    holding_tokens: Decimal
    created_at: str | None

    @classmethod
    def from_execution(cls, execution: TradeExecution) -> "BuyResponse":
        trade, listing = execution.trade, execution.listing
        return cls(
            trade_id=trade.id,
            trade_display_code=trade.display_code,
            listing_id=listing.id,
            listing_display_code=listing.display_code,
            property_id=execution.property.id,
            property_title=execution.property.title,
            tokens_bought=trade.tokens_bought,
            price_per_token=trade.price_per_token,
            total_usdt=trade.total_usdt,
            listing_remaining_tokens=listing.remaining_tokens,
            listing_status=listing.status,
            balance_usdt=execution.buyer_wallet.balance_usdt,
            holding_id=execution.buyer_holding.id,
            holding_display_code=execution.buyer_holding.display_code,
            holding_tokens=execution.buyer_holding.tokens_purchased,
            created_at=to_iso(trade.created_at),
        )


class CancelListingResponse(BaseModel):
    listing_id: str
    display_code: str
    status: str
    remaining_tokens: Decimal
    released_locks: int

    @classmethod
    def from_cancellation(cls, result: ListingCancellation) -> "CancelListingResponse":
        return cls(
            listing_id=result.listing.id,
            display_code=result.listing.display_code,
            status=result.listing.status,
            remaining_tokens=result.listing.remaining_tokens,
            released_locks=result.released_locks,
        )
