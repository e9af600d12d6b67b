"""In-process event bus for post-commit domain events.

Handlers are keyed by event class. Every handler runs in isolation: one
failing subscriber is logged and the rest still run. publish() never raises
because of a handler.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_cls: type, handler: Handler) -> None:
        self._handlers[event_cls].append(handler)

    def handlers_for(self, event_cls: type) -> list[Handler]:
        return list(self._handlers.get(event_cls, []))

    async def publish(self, event: Any) -> None:
        for handler in self.handlers_for(type(event)):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s",
                    getattr(handler, "__qualname__", repr(handler)),
                    getattr(event, "event_type", type(event).__name__),
                )
