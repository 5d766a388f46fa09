"""HTTP errors rendered as ``{"error": <code>}`` by every service."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse


class ServiceError(HTTPException):
    """HTTP error carrying a machine readable ``code``."""

    def __init__(self, status_code: int, code: str) -> None:
        super().__init__(status_code=status_code, detail=code)
        self.code = code


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})


def install_service_error_handler(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)


__all__ = ["ServiceError", "install_service_error_handler"]
