"""In-process fan-out channel for booking and weather notifications.

Each subscriber owns a bounded queue. Publishing never blocks: a subscriber
whose queue is full loses its oldest pending message and the loss is counted.
"""

import asyncio
import json
import logging
from typing import Any

from weatherguard.config import settings

logger = logging.getLogger(__name__)


class Subscription:
    def __init__(self, bus: "NotificationBus", maxsize: int):
        self._bus = bus
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def _offer(self, message: str) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(message)

    async def get(self) -> str:
        return await self._queue.get()

    def get_nowait(self) -> str:
        return self._queue.get_nowait()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._bus.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        return await self.get()


class NotificationBus:
    def __init__(self, buffer_size: int | None = None):
        self.buffer_size = buffer_size or settings.notification_buffer_size
        self._subscribers: set[Subscription] = set()

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self.buffer_size)
        self._subscribers.add(sub)
        logger.debug(f"Subscriber added ({len(self._subscribers)} active)")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        self._subscribers.discard(sub)
        if sub.dropped:
            logger.info(f"Subscriber closed after dropping {sub.dropped} messages")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, message: str) -> int:
        """Deliver a message to every subscriber. Returns the number reached."""
        for sub in list(self._subscribers):
            sub._offer(message)
        return len(self._subscribers)

    def publish_json(self, payload: dict[str, Any]) -> int:
        return self.publish(json.dumps(payload, default=str))


# Singleton
notification_bus = NotificationBus()
