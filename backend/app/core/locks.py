"""
In-process keyed locks.

Serializes lifecycle operations per journey id and per truck id inside one
worker process. Cross-process safety comes from the database (truck lock
unique index, journey version column); these locks keep the common
single-process case free of spurious conflicts.

Lock order is always journey -> truck.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable


class KeyedLock:
    """
    A map of ``asyncio.Lock`` objects keyed by id.

    A key's lock is created on first use and dropped again once nobody holds
    or waits for it, so the map only ever contains ids in active use.
    """

    def __init__(self, name: str):
        self.name = name
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._locks

    def clear(self):
        self._locks.clear()
        self._users.clear()


journey_locks = KeyedLock("journey")
truck_locks = KeyedLock("truck")
