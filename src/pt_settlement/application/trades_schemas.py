"""Pydantic schemas for the trade history API."""

from decimal import Decimal

from pydantic import BaseModel

from src.pt_common.datetime_utils import to_iso
from src.pt_common.enums import TradeSide
from src.pt_settlement.domain.models import TradeView


class TradeResponse(BaseModel):
    id: str
    display_code: str
    side: TradeSide
    listing_id: str | None
    property_id: str
    property_title: str
    tokens_bought: Decimal
    price_per_token: Decimal
    total_usdt: Decimal
    certificate_path: str | None
    created_at: str | None

    @classmethod
    def from_view(cls, view: TradeView, user_id: str) -> "TradeResponse":
        trade = view.trade
        side = TradeSide.BUY if trade.buyer_id == user_id else TradeSide.SELL
        return cls(
            id=trade.id,
            display_code=trade.display_code,
            side=side,
            listing_id=trade.listing_id,
            property_id=trade.property_id,
            property_title=view.property_title,
            tokens_bought=trade.tokens_bought,
            price_per_token=trade.price_per_token,
            total_usdt=trade.total_usdt,
            certificate_path=trade.certificate_path,
            created_at=to_iso(trade.created_at),
        )


class TradeListResponse(BaseModel):
    items: list[TradeResponse]
    has_more: bool
    next_cursor: str | None
