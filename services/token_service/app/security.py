"""Signature and shared-secret checks for inbound requests."""

from __future__ import annotations

import hmac
import logging
from hashlib import sha256

from fastapi import status

from .errors import TokenServiceError

logger = logging.getLogger(__name__)


def compute_razorpay_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, sha256).hexdigest()


def verify_razorpay_signature(secret: str, signature_header: str | None, body: bytes) -> None:
    """Validate a Razorpay webhook: hex HMAC-SHA256 of the raw body."""

    if not secret:
        logger.warning("razorpay webhook secret not set, skipping signature verification")
        return
    expected = compute_razorpay_signature(secret, body)
    if not signature_header or not hmac.compare_digest(
        expected.encode("utf-8"), signature_header.encode("utf-8")
    ):
        logger.warning("razorpay signature mismatch")
        raise TokenServiceError(status.HTTP_400_BAD_REQUEST, "invalid_signature")


def verify_admin_secret(expected: str, provided: str | None) -> None:
    if not expected or not provided:
        raise TokenServiceError(status.HTTP_401_UNAUTHORIZED, "unauthorized")
    if not hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8")):
        raise TokenServiceError(status.HTTP_401_UNAUTHORIZED, "unauthorized")


def bearer_token(authorization: str | None) -> str | None:
    """Return the credential of a ``Bearer`` authorization header."""

    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer ") :].strip() or None


__all__ = [
    "bearer_token",
    "compute_razorpay_signature",
    "verify_admin_secret",
    "verify_razorpay_signature",
]
