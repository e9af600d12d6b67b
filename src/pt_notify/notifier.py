"""Notification queue producer — Redis list, consumed at-least-once elsewhere.

Each job is a JSON document LPUSHed onto NOTIFICATION_QUEUE_KEY; the worker
BRPOPs it and re-queues with attempts+1 until max_attempts. Delivery
(push / email) is outside this service.
"""

import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import redis.asyncio as aioredis

from config.settings import settings
from src.pt_common.datetime_utils import utc_now
from src.pt_common.redis_client import get_redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    user_id: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


class NotificationQueue:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        queue_key: str | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._queue_key = queue_key or settings.NOTIFICATION_QUEUE_KEY
        self._max_attempts = max_attempts or settings.NOTIFICATION_MAX_ATTEMPTS

    def build_job(self, notification: Notification) -> dict[str, Any]:
        return {
            "id": str(uuid.uuid4()),
            "user_id": notification.user_id,
            "title": notification.title,
            "message": notification.message,
            "data": notification.data,
            "attempts": 0,
            "max_attempts": self._max_attempts,
            "queued_at": utc_now().isoformat(),
        }

    async def queue_notification(self, notification: Notification) -> bool:
        """Enqueue one notification. Returns False (and logs) on failure."""
        job = self.build_job(notification)
        try:
            redis = await self._redis_factory()
            await redis.lpush(self._queue_key, json.dumps(job, default=str))
        except Exception:
            logger.exception(
                "Failed to queue notification %r for user %s",
                notification.title,
                notification.user_id,
            )
            return False
        logger.debug(
            "Queued notification %s (%s) for user %s",
            job["id"],
            notification.title,
            notification.user_id,
        )
        return True
