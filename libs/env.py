"""Environment helpers for resolving connection URLs.

Services derive the Redis connection string the same way whether they run in
Docker or natively on the host. ``REDIS_URL`` wins; otherwise a default that
adapts to ``ENVIRONMENT=native`` is returned.
"""
from __future__ import annotations

import os

DEFAULT_REDIS_URL_DOCKER = "redis://redis:6379/0"
DEFAULT_REDIS_URL_NATIVE = "redis://localhost:6379/0"


def get_environment(default: str = "dev") -> str:
    """Return the active environment name, normalised to lowercase."""

    return os.getenv("ENVIRONMENT", default).strip().lower()


def is_native_environment(env: str | None = None) -> bool:
    """Return ``True`` when the environment corresponds to ``native``."""

    env_name = env if env is not None else get_environment()
    return env_name.lower() == "native"


def get_redis_url() -> str:
    """Return ``REDIS_URL`` or the environment aware default."""

    value = os.getenv("REDIS_URL")
    if value:
        return value
    return DEFAULT_REDIS_URL_NATIVE if is_native_environment() else DEFAULT_REDIS_URL_DOCKER


__all__ = [
    "DEFAULT_REDIS_URL_DOCKER",
    "DEFAULT_REDIS_URL_NATIVE",
    "get_environment",
    "get_redis_url",
    "is_native_environment",
]
