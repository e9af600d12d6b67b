"""Unit tests for post-commit event delivery: bus, queue, channel, subscribers."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

from src.pt_notify.event_bus import EventBus
from src.pt_notify.notifier import Notification, NotificationQueue
from src.pt_notify.subscribers import (
    build_event_bus,
    listing_published_notification,
    purchase_notification,
    sale_notification,
)
from src.pt_notify.trade_events import TradeEventPublisher
from src.pt_settlement.domain.events import ListingPublished, TradeCompleted


def _trade_event() -> TradeCompleted:
    return TradeCompleted(
        trade_id="trade-1",
        trade_display_code="TRD-000001",
        listing_id="lst-1",
        buyer_id="buyer-1",
        seller_id="seller-1",
        property_id="prop-1",
        property_title="Marina Heights",
        tokens_bought=Decimal("100"),
        total_usdt=Decimal("200.000000"),
        buyer_holding_id="h-b",
        seller_holding_id="h-s",
    )


def _listing_event() -> ListingPublished:
    return ListingPublished(
        listing_id="lst-1",
        listing_display_code="MKT-000001",
        seller_id="seller-1",
        property_id="prop-1",
        property_title="Marina Heights",
        total_tokens=Decimal("1000"),
        price_per_token=Decimal("2.000000"),
    )


def _redis_factory(redis: AsyncMock) -> AsyncMock:
    return AsyncMock(return_value=redis)


class TestEventPayload:
    def test_trade_payload_is_json_safe(self) -> None:
        payload = _trade_event().to_payload()
        assert payload["event_type"] == "marketplace.trade.completed"
        assert payload["total_usdt"] == "200.000000"
        assert payload["tokens_bought"] == "100"
        assert payload["seller_holding_id"] == "h-s"
        json.dumps(payload)

    def test_listing_payload(self) -> None:
        payload = _listing_event().to_payload()
        assert payload["event_type"] == "marketplace.listing.published"
        assert payload["price_per_token"] == "2.000000"


class TestEventBus:
    async def test_dispatches_by_event_class(self) -> None:
        bus = EventBus()
        on_trade = AsyncMock()
        on_listing = AsyncMock()
        bus.subscribe(TradeCompleted, on_trade)
        bus.subscribe(ListingPublished, on_listing)

        event = _trade_event()
        await bus.publish(event)

        on_trade.assert_awaited_once_with(event)
        on_listing.assert_not_awaited()

    async def test_failing_handler_does_not_block_others(self) -> None:
        bus = EventBus()
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        bus.subscribe(TradeCompleted, broken)
        bus.subscribe(TradeCompleted, healthy)

        await bus.publish(_trade_event())

        healthy.assert_awaited_once()

    async def test_no_handlers_is_noop(self) -> None:
        await EventBus().publish(_trade_event())


class TestNotificationQueue:
    async def test_lpush_json_job(self) -> None:
        redis = AsyncMock()
        queue = NotificationQueue(_redis_factory(redis), queue_key="q:test", max_attempts=5)

        ok = await queue.queue_notification(
            Notification("user-1", "Tokens Sold", "msg", {"trade_id": "t1"})
        )

        assert ok is True
        key, raw = redis.lpush.call_args.args
        job = json.loads(raw)
        assert key == "q:test"
        assert job["user_id"] == "user-1"
        assert job["attempts"] == 0
        assert job["max_attempts"] == 5
        assert job["data"] == {"trade_id": "t1"}

    async def test_redis_failure_returns_false(self) -> None:
        redis = AsyncMock()
        redis.lpush.side_effect = ConnectionError("redis down")
        queue = NotificationQueue(_redis_factory(redis), queue_key="q:test")

        assert await queue.queue_notification(Notification("u", "t", "m")) is False


class TestTradeEventPublisher:
    async def test_publishes_payload_on_channel(self) -> None:
        redis = AsyncMock()
        redis.publish.return_value = 2
        publisher = TradeEventPublisher(_redis_factory(redis), channel="trades:test")

        receivers = await publisher.publish_trade_completed(_trade_event())

        assert receivers == 2
        channel, raw = redis.publish.call_args.args
        assert channel == "trades:test"
        assert json.loads(raw)["trade_id"] == "trade-1"

    async def test_no_subscribers_returns_zero(self) -> None:
        redis = AsyncMock()
        redis.publish.return_value = 0
        publisher = TradeEventPublisher(_redis_factory(redis), channel="trades:test")

        assert await publisher.publish_trade_completed(_trade_event()) == 0


class TestSubscribers:
    def test_notification_texts(self) -> None:
        event = _trade_event()
        purchase = purchase_notification(event)
        sale = sale_notification(event)
        listed = listing_published_notification(_listing_event())

        assert purchase.user_id == "buyer-1"
        assert purchase.title == "Purchase Successful"
        assert purchase.message == "You successfully purchased 100 tokens of Marina Heights"
        assert sale.user_id == "seller-1"
        assert sale.title == "Tokens Sold"
        assert sale.data["amount_received"] == "200.000000"
        assert listed.title == "Listing Published"
        assert listed.data["display_code"] == "MKT-000001"

    async def test_trade_completed_wiring(self) -> None:
        queue = AsyncMock()
        trade_events = AsyncMock()
        bus = build_event_bus(queue=queue, trade_events=trade_events)

        await bus.publish(_trade_event())

        trade_events.publish_trade_completed.assert_awaited_once()
        titles = [c.args[0].title for c in queue.queue_notification.await_args_list]
        assert titles == ["Purchase Successful", "Tokens Sold"]

    async def test_certificate_failure_still_notifies(self) -> None:
        queue = AsyncMock()
        trade_events = AsyncMock()
        trade_events.publish_trade_completed.side_effect = ConnectionError("redis down")
        bus = build_event_bus(queue=queue, trade_events=trade_events)

        await bus.publish(_trade_event())

        assert queue.queue_notification.await_count == 2

    async def test_listing_published_wiring(self) -> None:
        queue = AsyncMock()
        bus = build_event_bus(queue=queue, trade_events=AsyncMock())

        await bus.publish(_listing_event())

        (call,) = queue.queue_notification.await_args_list
        assert call.args[0].user_id == "seller-1"
