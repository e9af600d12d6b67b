"""Subscribers wired to settlement events, and the bus factory."""

from src.pt_notify.event_bus import EventBus
from src.pt_notify.notifier import Notification, NotificationQueue
from src.pt_notify.trade_events import TradeEventPublisher
from src.pt_settlement.domain.events import ListingPublished, TradeCompleted


def listing_published_notification(event: ListingPublished) -> Notification:
    return Notification(
        user_id=event.seller_id,
        title="Listing Published",
        message=f"Your listing for {event.property_title} has been published on the marketplace",
        data={
            "type": "marketplace",
            "listing_id": event.listing_id,
            "display_code": event.listing_display_code,
            "property_id": event.property_id,
            "property_title": event.property_title,
        },
    )


def purchase_notification(event: TradeCompleted) -> Notification:
    return Notification(
        user_id=event.buyer_id,
        title="Purchase Successful",
        message=(
            f"You successfully purchased {event.tokens_bought} tokens of {event.property_title}"
        ),
        data={
            "type": "marketplace",
            "trade_id": event.trade_id,
            "display_code": event.trade_display_code,
            "property_id": event.property_id,
            "property_title": event.property_title,
            "tokens_bought": str(event.tokens_bought),
        },
    )


def sale_notification(event: TradeCompleted) -> Notification:
    return Notification(
        user_id=event.seller_id,
        title="Tokens Sold",
        message=(
            f"You sold {event.tokens_bought} tokens of {event.property_title}"
            f" for {event.total_usdt} USDT"
        ),
        data={
            "type": "marketplace",
            "trade_id": event.trade_id,
            "display_code": event.trade_display_code,
            "property_id": event.property_id,
            "property_title": event.property_title,
            "tokens_sold": str(event.tokens_bought),
            "amount_received": str(event.total_usdt),
        },
    )


def build_event_bus(
    queue: NotificationQueue | None = None,
    trade_events: TradeEventPublisher | None = None,
) -> EventBus:
    queue = queue or NotificationQueue()
    trade_events = trade_events or TradeEventPublisher()
    bus = EventBus()

    async def on_listing_published(event: ListingPublished) -> None:
        await queue.queue_notification(listing_published_notification(event))

    async def on_trade_certificate(event: TradeCompleted) -> None:
        await trade_events.publish_trade_completed(event)

    async def on_trade_notifications(event: TradeCompleted) -> None:
        await queue.queue_notification(purchase_notification(event))
        await queue.queue_notification(sale_notification(event))

    bus.subscribe(ListingPublished, on_listing_published)
    bus.subscribe(TradeCompleted, on_trade_certificate)
    bus.subscribe(TradeCompleted, on_trade_notifications)
    return bus
