"""Error types surfaced by the token service HTTP layer."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from libs.errors import ServiceError, install_service_error_handler
from libs.kvstore import StoreUnavailableError

logger = logging.getLogger(__name__)


class TokenServiceError(ServiceError):
    """Token lifecycle failure reported to the client by code."""


def missing_token() -> TokenServiceError:
    return TokenServiceError(status.HTTP_400_BAD_REQUEST, "missing_token")


def invalid_or_expired(status_code: int = status.HTTP_404_NOT_FOUND) -> TokenServiceError:
    return TokenServiceError(status_code, "invalid_or_expired")


async def _store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("token store unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"error": "store_unavailable"}
    )


def install_error_handlers(app: FastAPI) -> None:
    install_service_error_handler(app)
    app.add_exception_handler(StoreUnavailableError, _store_unavailable_handler)


__all__ = [
    "TokenServiceError",
    "install_error_handlers",
    "invalid_or_expired",
    "missing_token",
]
