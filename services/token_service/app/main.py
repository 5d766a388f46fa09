"""FastAPI application issuing and redeeming purchase and view tokens."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from libs.kvstore import (
    ExpiringStore,
    InMemoryExpiringStore,
    RedisExpiringStore,
    StoreUnavailableError,
)
from libs.observability.logging import RequestContextMiddleware, configure_logging
from libs.observability.metrics import setup_metrics

from .claims import ClaimResolver, extract_payment_id, setup_url
from .config import Settings, get_settings
from .deps import (
    get_app_settings,
    get_claims,
    get_engine,
    get_razorpay,
    get_views,
    presented_bearer,
    presented_token,
)
from .errors import TokenServiceError, install_error_handlers, invalid_or_expired, missing_token
from .razorpay import RazorpayClient, extract_webhook_payment_id
from .schemas import (
    AdminIssueRequest,
    AdminIssueResponse,
    GenerateRequest,
    GenerateResponse,
    PaymentLinkRequest,
    PurchaseVerification,
    ViewPayload,
)
from .security import verify_admin_secret, verify_razorpay_signature
from .tokens import PurchaseTokenEngine, now_ms
from .views import ViewTokenManager, view_url

configure_logging("token-service")

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> ExpiringStore:
    if settings.store_backend == "memory":
        return InMemoryExpiringStore()
    return RedisExpiringStore.from_url(settings.redis_url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        "token service starting",
        extra={
            "purchase_ttl_seconds": settings.purchase_ttl_seconds,
            "view_ttl_seconds": settings.view_ttl_seconds,
            "store_backend": settings.store_backend,
        },
    )
    try:
        yield
    finally:
        if app.state.razorpay is not None:
            await app.state.razorpay.close()
        await app.state.store.aclose()


def create_app(settings: Settings | None = None, *, store: ExpiringStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Token Service", version="0.1.0", lifespan=lifespan)

    store = store if store is not None else create_store(settings)
    engine = PurchaseTokenEngine(store, ttl_seconds=settings.purchase_ttl_seconds)
    app.state.settings = settings
    app.state.store = store
    app.state.engine = engine
    app.state.views = ViewTokenManager(store, ttl_seconds=settings.view_ttl_seconds)
    app.state.claims = ClaimResolver(engine, setup_base_url=settings.public_setup_url)
    app.state.razorpay = (
        RazorpayClient(
            settings.razorpay_key_id,
            settings.razorpay_key_secret,
            base_url=settings.razorpay_api_base,
            timeout=settings.http_timeout_seconds,
        )
        if settings.razorpay_configured
        else None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware, service_name=settings.service_name)
    setup_metrics(app, service_name=settings.service_name)
    install_error_handlers(app)
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.post("/admin/issue-token", response_model=AdminIssueResponse)
    async def admin_issue_token(
        request: Request,
        payload: AdminIssueRequest | None = Body(None),
        settings: Settings = Depends(get_app_settings),
        engine: PurchaseTokenEngine = Depends(get_engine),
    ) -> AdminIssueResponse:
        verify_admin_secret(settings.admin_secret, request.headers.get("X-Admin-Secret"))
        payload = payload or AdminIssueRequest()
        metadata: dict[str, Any] = dict(payload.model_extra or {})
        metadata["paymentId"] = payload.payment_id or f"manual_{now_ms()}"

        result = await engine.issue(metadata)
        return AdminIssueResponse(
            token=result.token,
            claim_url=setup_url(settings.public_setup_url, result.token),
            expires_in_sec=engine.ttl_seconds,
        )

    @app.post("/razorpay-webhook")
    async def razorpay_webhook(
        request: Request,
        settings: Settings = Depends(get_app_settings),
        engine: PurchaseTokenEngine = Depends(get_engine),
    ) -> dict[str, Any]:
        body = await request.body()
        verify_razorpay_signature(
            settings.razorpay_webhook_secret, request.headers.get("X-Razorpay-Signature"), body
        )
        try:
            event = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TokenServiceError(status.HTTP_400_BAD_REQUEST, "invalid_payload") from exc
        if not isinstance(event, dict):
            raise TokenServiceError(status.HTTP_400_BAD_REQUEST, "invalid_payload")

        payment_id = extract_webhook_payment_id(event)
        existing = await engine.canonical_token(payment_id)
        if existing:
            logger.info("webhook reusing existing mapping", extra={"payment_id": payment_id})
            return {
                "ok": True,
                "claimUrl": setup_url(settings.public_setup_url, existing),
                "reused": True,
            }

        result = await engine.issue({"paymentId": payment_id, "event": event.get("event")})
        canonical = result.token
        if not result.created_mapping:
            # lost the race to a concurrent delivery, or the mapping write failed
            try:
                canonical = await engine.canonical_token(payment_id) or result.token
            except StoreUnavailableError as exc:
                logger.warning(
                    "webhook mapping re-read failed",
                    extra={"payment_id": payment_id, "error": str(exc)},
                )
        outcome = "created" if canonical == result.token else "reused"
        logger.info("webhook handled", extra={"payment_id": payment_id, "outcome": outcome})
        return {"ok": True, "claimUrl": setup_url(settings.public_setup_url, canonical), outcome: True}

    @app.get("/claim-return")
    async def claim_return(request: Request, claims: ClaimResolver = Depends(get_claims)):
        payment_id = extract_payment_id(request.query_params)
        if not payment_id:
            logger.warning(
                "claim-return missing payment id", extra={"query_keys": sorted(request.query_params)}
            )
            raise TokenServiceError(status.HTTP_400_BAD_REQUEST, "missing_payment_id")

        outcome = await claims.resolve(payment_id)
        if outcome.redirect_url is None:
            return JSONResponse(
                status_code=status.HTTP_410_GONE,
                content={
                    "error": "link_expired",
                    "message": "Link expired or not found for this payment.",
                },
            )
        return RedirectResponse(outcome.redirect_url, status_code=status.HTTP_302_FOUND)

    @app.post("/create-payment-link")
    async def create_payment_link(
        payload: PaymentLinkRequest | None = Body(None),
        settings: Settings = Depends(get_app_settings),
        razorpay: RazorpayClient | None = Depends(get_razorpay),
    ) -> dict[str, Any]:
        if razorpay is None:
            raise TokenServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, "razorpay_not_configured")
        payload = payload or PaymentLinkRequest()
        try:
            return await razorpay.create_payment_link(
                amount_rupees=payload.amount,
                callback_url=f"{settings.claim_return_base.rstrip('/')}/claim-return",
            )
        except httpx.HTTPStatusError as exc:
            logger.error(
                "razorpay rejected payment link",
                extra={"status_code": exc.response.status_code, "detail": exc.response.text},
            )
            raise TokenServiceError(status.HTTP_502_BAD_GATEWAY, "payment_link_failed") from exc
        except httpx.HTTPError as exc:
            logger.error("razorpay unreachable", extra={"error": repr(exc)})
            raise TokenServiceError(status.HTTP_502_BAD_GATEWAY, "payment_link_failed") from exc

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        purchase_token: str | None = Depends(presented_bearer),
        settings: Settings = Depends(get_app_settings),
        engine: PurchaseTokenEngine = Depends(get_engine),
        views: ViewTokenManager = Depends(get_views),
    ) -> GenerateResponse:
        if not purchase_token:
            raise TokenServiceError(status.HTTP_401_UNAUTHORIZED, "missing_token")
        meta = await engine.verify(purchase_token)
        if meta is None:
            raise invalid_or_expired(status.HTTP_403_FORBIDDEN)

        result = await views.exchange(meta, payload.setup_payload, payload.view_token)
        return GenerateResponse(
            view_token=result.token,
            view_url=view_url(settings.public_view_url, result.token),
            updated=result.updated,
            expires_in_sec=views.ttl_seconds,
        )

    @app.get("/verify-purchase", response_model=PurchaseVerification)
    async def verify_purchase(
        token: str | None = Depends(presented_token),
        engine: PurchaseTokenEngine = Depends(get_engine),
    ) -> PurchaseVerification:
        if not token:
            raise missing_token()
        meta = await engine.verify(token)
        if meta is None:
            raise invalid_or_expired()
        return PurchaseVerification(meta=meta)

    @app.get("/validate-view", response_model=ViewPayload)
    async def validate_view(
        token: str | None = None,
        views: ViewTokenManager = Depends(get_views),
    ) -> ViewPayload:
        if not token:
            raise missing_token()
        setup_payload = await views.resolve(token)
        if setup_payload is None:
            raise invalid_or_expired()
        return ViewPayload(setup_payload=setup_payload)

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health() -> dict[str, str]:
        return {"status": "ok"}


app = create_app()


__all__ = ["app", "create_app", "create_store"]
