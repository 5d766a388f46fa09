"""Expiring key-value stores shared by the token services."""

from .base import ExpiringStore, StoreUnavailableError
from .memory import InMemoryExpiringStore
from .redis_store import RedisExpiringStore

__all__ = [
    "ExpiringStore",
    "InMemoryExpiringStore",
    "RedisExpiringStore",
    "StoreUnavailableError",
]
