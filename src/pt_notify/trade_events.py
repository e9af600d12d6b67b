"""Publishes completed trades on a Redis channel for the certificate service.

The certificate service renders the PDF and writes certificate_path back via
TradeRepository.set_certificate_path, outside the settlement transaction.
"""

import json
import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis

from config.settings import settings
from src.pt_common.redis_client import get_redis
from src.pt_settlement.domain.events import TradeCompleted

logger = logging.getLogger(__name__)


class TradeEventPublisher:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        channel: str | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._channel = channel or settings.TRADE_EVENTS_CHANNEL

    async def publish_trade_completed(self, event: TradeCompleted) -> int:
        """Returns the number of subscribers that received the message."""
        redis = await self._redis_factory()
        receivers = await redis.publish(self._channel, json.dumps(event.to_payload()))
        if not receivers:
            logger.warning(
                "Trade %s published on %s with no subscribers",
                event.trade_display_code,
                self._channel,
            )
        return int(receivers or 0)
