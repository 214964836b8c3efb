"""In-process TTL cache for generated reschedule suggestions.

Readers share the lock; writers (set, lazy eviction, sweeps) hold it alone.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from weatherguard.config import settings
from weatherguard.schemas.reschedule import RescheduleResponse
from weatherguard.utils import utcnow

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """asyncio reader-writer lock; waiting writers block new readers."""

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._writers_waiting == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self):
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class CacheEntry:
    response: RescheduleResponse
    created_at: datetime


def cache_key(booking_id: UUID | str, scheduled_date: datetime) -> str:
    return f"{booking_id}_{int(scheduled_date.timestamp())}"


class SuggestionCache:
    def __init__(
        self,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = ttl or timedelta(hours=settings.suggestion_cache_ttl_hours)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()

    def _expired(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.created_at >= self.ttl

    async def get(self, key: str) -> RescheduleResponse | None:
        """Return a live entry, evicting it if it has expired."""
        now = self._clock()
        async with self._lock.read():
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._expired(entry, now):
                return entry.response

        async with self._lock.write():
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry, now):
                del self._entries[key]
        return None

    async def set(self, key: str, response: RescheduleResponse) -> None:
        async with self._lock.write():
            self._entries[key] = CacheEntry(response=response, created_at=self._clock())

    async def clear_expired(self) -> int:
        now = self._clock()
        async with self._lock.write():
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info(f"Suggestion cache: {len(stale)} expired entries removed")
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


# Singleton
suggestion_cache = SuggestionCache()
