"""In-memory expiring store used for development and testing."""
from __future__ import annotations

import asyncio
import math
import time
from typing import Callable


class InMemoryExpiringStore:
    """Dictionary backed store honouring TTLs against an injectable clock.

    Mutations are serialised with an :class:`asyncio.Lock` so conditional
    writes behave atomically under concurrent tasks, like their Redis
    counterparts.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    def _live(self, key: str) -> tuple[str, float] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._data[key]
            return None
        return entry

    def _deadline(self, ttl_seconds: int) -> float:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        return self._clock() + ttl_seconds

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._data[key] = (value, self._deadline(ttl_seconds))

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        async with self._lock:
            if self._live(key) is not None:
                return False
            self._data[key] = (value, self._deadline(ttl_seconds))
            return True

    async def set_if_present(self, key: str, value: str, ttl_seconds: int) -> bool:
        async with self._lock:
            if self._live(key) is None:
                return False
            self._data[key] = (value, self._deadline(ttl_seconds))
            return True

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return False
            self._data[key] = (entry[0], self._deadline(ttl_seconds))
            return True

    async def ttl(self, key: str) -> int | None:
        entry = self._live(key)
        if entry is None:
            return None
        return math.ceil(entry[1] - self._clock())

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._data.pop(key, None) is not None

    async def aclose(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return sum(1 for key in list(self._data) if self._live(key) is not None)


__all__ = ["InMemoryExpiringStore"]
