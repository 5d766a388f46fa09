"""Environment configuration for the token service."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from libs.env import get_redis_url

DEFAULT_PURCHASE_TTL_SECONDS = 7200
DEFAULT_VIEW_TTL_SECONDS = 30 * 24 * 60 * 60


class Settings(BaseSettings):
    """Settings loaded once from environment variables and never mutated."""

    store_backend: Literal["redis", "memory"] = Field(
        "redis", description="Backend holding tokens and payment mappings"
    )
    redis_url: str = Field(default_factory=get_redis_url, description="URL of the Redis server")
    admin_secret: str = Field(
        "changeme", description="Shared secret expected in X-Admin-Secret", repr=False
    )
    public_setup_url: str = Field(
        "http://localhost:8080/setup.html",
        description="Setup page receiving purchase tokens in the URL fragment",
    )
    public_view_url: str = Field(
        "http://localhost:8080/view.html",
        description="Viewer page receiving view tokens as a query parameter",
    )
    razorpay_key_id: str = Field("", description="Razorpay API key id")
    razorpay_key_secret: str = Field("", description="Razorpay API key secret", repr=False)
    razorpay_webhook_secret: str = Field(
        "", description="Secret used to validate Razorpay webhook signatures", repr=False
    )
    razorpay_api_base: str = Field("https://api.razorpay.com/v1", description="Razorpay API root")
    claim_return_base: str = Field(
        "http://localhost:8000", description="Public base URL of this service for provider redirects"
    )
    purchase_ttl_seconds: int = Field(
        DEFAULT_PURCHASE_TTL_SECONDS, description="Lifetime of purchase tokens and payment mappings"
    )
    view_ttl_seconds: int = Field(DEFAULT_VIEW_TTL_SECONDS, description="Lifetime of view tokens")
    http_timeout_seconds: float = Field(10.0, gt=0, description="Timeout for outbound HTTP calls")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    service_name: str = Field("token-service", description="Service identifier used for logging")

    class Config:
        case_sensitive = False
        frozen = True

    @field_validator("purchase_ttl_seconds", mode="before")
    @classmethod
    def _fallback_purchase_ttl(cls, value: Any) -> int:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return DEFAULT_PURCHASE_TTL_SECONDS
        if not math.isfinite(seconds) or int(seconds) <= 0:
            return DEFAULT_PURCHASE_TTL_SECONDS
        return int(seconds)

    @field_validator("view_ttl_seconds")
    @classmethod
    def _positive_view_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("view_ttl_seconds must be positive")
        return value

    @property
    def razorpay_configured(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""

    return Settings()
