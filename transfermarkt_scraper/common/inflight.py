"""Per-key mutual exclusion for concurrent scrapes of the same entity."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class SingleFlight:
    """At most one holder per key.

    ``hold`` yields ``True`` when the caller had to wait for another holder of the same
    key. Such a caller re-reads the store before scraping; the previous holder has
    usually just written what it needs. Locks are dropped once nobody holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[bool]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        waited = lock.locked()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield waited
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def in_flight(self, key: Hashable) -> bool:
        return key in self._locks


__all__ = ["SingleFlight"]
