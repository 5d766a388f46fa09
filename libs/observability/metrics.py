"""Prometheus metrics helpers for the token services."""

from __future__ import annotations

import time

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

_REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    labelnames=("service", "method", "path", "status"),
)
_REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds",
    labelnames=("service", "method", "path"),
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
TOKEN_EVENTS = Counter(
    "token_lifecycle_events_total",
    "Token lifecycle operations grouped by outcome",
    labelnames=("event", "outcome"),
)


def record_token_event(event: str, outcome: str) -> None:
    """Increment the lifecycle counter for ``event`` with ``outcome``."""

    TOKEN_EVENTS.labels(event, outcome).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect basic request metrics for Prometheus."""

    def __init__(self, app: ASGIApp, *, service_name: str) -> None:
        super().__init__(app)
        self._service_name = service_name

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        method = request.method.upper()
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._observe(request, method, "500", time.perf_counter() - start)
            raise
        status_code = str(getattr(response, "status_code", 500))
        self._observe(request, method, status_code, time.perf_counter() - start)
        return response

    def _observe(self, request: Request, method: str, status_code: str, duration: float) -> None:
        # route is only resolved once the router ran; fall back to the raw path
        route = request.scope.get("route")
        path_template: str = getattr(route, "path", request.url.path)
        _REQUEST_COUNTER.labels(self._service_name, method, path_template, status_code).inc()
        _REQUEST_LATENCY.labels(self._service_name, method, path_template).observe(duration)


def setup_metrics(app: FastAPI, *, service_name: str) -> None:
    """Attach Prometheus metrics middleware and endpoint."""

    if getattr(app.state, "_metrics_configured", False):
        return

    app.add_middleware(MetricsMiddleware, service_name=service_name)

    async def metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.add_api_route(
        "/metrics",
        metrics_endpoint,
        methods=["GET"],
        include_in_schema=False,
        name="metrics",
    )
    app.state._metrics_configured = True
