"""Common types for expiring key-value stores."""
from __future__ import annotations

from typing import Protocol


class StoreUnavailableError(RuntimeError):
    """Raised when the backing store cannot serve a request."""


class ExpiringStore(Protocol):
    """Narrow async interface over a key-value store with per-key TTLs.

    Every method is a single round trip to the backend and is atomic on its
    own. Callers must not assume anything about the state of a key between two
    calls.
    """

    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or ``None`` when absent."""

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` unconditionally with a TTL."""

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store ``value`` only when ``key`` does not exist.

        Returns ``True`` when this call created the key.
        """

    async def set_if_present(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Replace the value of an existing ``key`` and reset its TTL.

        Returns ``False`` without writing when the key does not exist.
        """

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        """Reset the TTL of ``key``. Returns ``False`` when the key is absent."""

    async def ttl(self, key: str) -> int | None:
        """Return the remaining TTL in whole seconds or ``None`` when absent."""

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns ``True`` when something was deleted."""

    async def aclose(self) -> None:
        """Release any connection held by the store."""


__all__ = ["ExpiringStore", "StoreUnavailableError"]
