"""Tagged domain events emitted after a settlement transaction commits.

Subscribers (notifications, certificate generation) live outside the
settlement path; anything they do happens after the data is durable.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, ClassVar, Protocol


@dataclass(frozen=True)
class ListingPublished:
    event_type: ClassVar[str] = "marketplace.listing.published"

    listing_id: str
    listing_display_code: str
    seller_id: str
    property_id: str
    property_title: str
    total_tokens: Decimal
    price_per_token: Decimal

    def to_payload(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **_stringify(asdict(self))}


@dataclass(frozen=True)
class TradeCompleted:
    event_type: ClassVar[str] = "marketplace.trade.completed"

    trade_id: str
    trade_display_code: str
    listing_id: str
    buyer_id: str
    seller_id: str
    property_id: str
    property_title: str
    tokens_bought: Decimal
    total_usdt: Decimal
    buyer_holding_id: str
    seller_holding_id: str | None

    def to_payload(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **_stringify(asdict(self))}


DomainEvent = ListingPublished | TradeCompleted


class EventPublisher(Protocol):
    async def publish(self, event: DomainEvent) -> None: ...


def _stringify(values: dict[str, Any]) -> dict[str, Any]:
    # Decimal -> str; JSON consumers get exact amounts
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in values.items()}
