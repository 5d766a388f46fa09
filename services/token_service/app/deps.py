"""Dependency wiring for the token service."""

from __future__ import annotations

from fastapi import Header, Query, Request

from .claims import ClaimResolver
from .config import Settings
from .razorpay import RazorpayClient
from .security import bearer_token
from .tokens import PurchaseTokenEngine
from .views import ViewTokenManager


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> PurchaseTokenEngine:
    return request.app.state.engine


def get_views(request: Request) -> ViewTokenManager:
    return request.app.state.views


def get_claims(request: Request) -> ClaimResolver:
    return request.app.state.claims


def get_razorpay(request: Request) -> RazorpayClient | None:
    return request.app.state.razorpay


def presented_token(
    token: str | None = Query(None),
    authorization: str | None = Header(None),
) -> str | None:
    """Token from the ``token`` query parameter, else from a bearer header."""

    return token or bearer_token(authorization)


def presented_bearer(authorization: str | None = Header(None)) -> str | None:
    return bearer_token(authorization)
