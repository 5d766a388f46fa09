from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from libs.kvstore import InMemoryExpiringStore
from services.token_service.app.claims import ClaimResolver
from services.token_service.app.config import Settings
from services.token_service.app.main import create_app
from services.token_service.app.tokens import PurchaseTokenEngine
from services.token_service.app.views import ViewTokenManager

WEBHOOK_SECRET = "s"
ADMIN_SECRET = "admin-secret"
SETUP_URL = "https://gifts.test/setup.html"
VIEW_URL = "https://gifts.test/view.html"


class FakeClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> InMemoryExpiringStore:
    return InMemoryExpiringStore(clock=clock)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        store_backend="memory",
        admin_secret=ADMIN_SECRET,
        public_setup_url=SETUP_URL,
        public_view_url=VIEW_URL,
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        razorpay_webhook_secret=WEBHOOK_SECRET,
        razorpay_api_base="https://razorpay.test/v1",
        claim_return_base="https://tokens.test/",
        purchase_ttl_seconds=7200,
        view_ttl_seconds=30 * 24 * 3600,
    )


@pytest.fixture()
def engine(store: InMemoryExpiringStore) -> PurchaseTokenEngine:
    return PurchaseTokenEngine(store, ttl_seconds=7200)


@pytest.fixture()
def views(store: InMemoryExpiringStore) -> ViewTokenManager:
    return ViewTokenManager(store, ttl_seconds=30 * 24 * 3600)


@pytest.fixture()
def claims(engine: PurchaseTokenEngine) -> ClaimResolver:
    return ClaimResolver(engine, setup_base_url=SETUP_URL)


@pytest.fixture()
def app(settings: Settings, store: InMemoryExpiringStore) -> FastAPI:
    return create_app(settings, store=store)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
