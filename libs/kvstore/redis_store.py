"""Redis implementation of :class:`~libs.kvstore.base.ExpiringStore`."""
from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .base import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _translate_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(func)
    async def wrapper(self: "RedisExpiringStore", key: str, *args: Any) -> T:
        try:
            return await func(self, key, *args)
        except RedisError as exc:
            logger.error(
                "redis command failed",
                extra={"operation": func.__name__, "error": str(exc)},
            )
            raise StoreUnavailableError(f"redis {func.__name__} failed") from exc

    return wrapper


class RedisExpiringStore:
    """Store backed by ``redis.asyncio`` using native ``SET`` flags."""

    def __init__(self, client: Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str, *, timeout_seconds: float = 5.0) -> "RedisExpiringStore":
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client)

    @_translate_errors
    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    @_translate_errors
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.set(key, value, ex=ttl_seconds)

    @_translate_errors
    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        # SET NX EX returns None when the key already exists
        return bool(await self._redis.set(key, value, ex=ttl_seconds, nx=True))

    @_translate_errors
    async def set_if_present(self, key: str, value: str, ttl_seconds: int) -> bool:
        return bool(await self._redis.set(key, value, ex=ttl_seconds, xx=True))

    @_translate_errors
    async def expire(self, key: str, ttl_seconds: int) -> bool:
        return bool(await self._redis.expire(key, ttl_seconds))

    @_translate_errors
    async def ttl(self, key: str) -> int | None:
        remaining = await self._redis.ttl(key)
        # -2: missing key, -1: key without expiry
        if remaining == -2:
            return None
        return int(remaining)

    @_translate_errors
    async def delete(self, key: str) -> bool:
        return bool(await self._redis.delete(key))

    async def aclose(self) -> None:
        await self._redis.aclose()


__all__ = ["RedisExpiringStore"]
