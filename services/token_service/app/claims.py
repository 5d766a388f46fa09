"""Resolve the payment provider's browser redirect back to a purchase token."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping
from urllib.parse import quote

from libs.observability import record_token_event, token_hint

from .tokens import PurchaseTokenEngine

logger = logging.getLogger(__name__)

PAYMENT_ID_ALIASES: tuple[str, ...] = (
    "payment_id",
    "paymentId",
    "payment",
    "razorpay_payment_id",
    "razorpay_paymentId",
    "razorpay_payment_link_id",
    "razorpay_payment_link_reference_id",
)


def extract_payment_id(params: Mapping[str, str]) -> str | None:
    """Return the first non-empty payment identifier among the known aliases."""

    for alias in PAYMENT_ID_ALIASES:
        value = params.get(alias)
        if value:
            return value
    return None


def setup_url(base_url: str, token: str) -> str:
    """Build the setup page link; the token travels in the fragment."""

    return f"{base_url}#token={quote(token, safe='')}"


@dataclass(frozen=True, slots=True)
class ClaimOutcome:
    redirect_url: str | None

    @property
    def found(self) -> bool:
        return self.redirect_url is not None


class ClaimResolver:
    """Read-only lookup of the payment mapping.

    This path never mints a token and never extends a TTL: once the mapping
    expires the claim link is dead.
    """

    def __init__(self, engine: PurchaseTokenEngine, *, setup_base_url: str) -> None:
        self._engine = engine
        self._setup_base_url = setup_base_url

    async def resolve(self, payment_id: str) -> ClaimOutcome:
        token = await self._engine.canonical_token(payment_id)
        if not token:
            logger.warning("claim mapping missing or expired", extra={"payment_id": payment_id})
            record_token_event("claim", "expired")
            return ClaimOutcome(redirect_url=None)
        logger.info(
            "claim resolved", extra={"payment_id": payment_id, "token_hint": token_hint(token)}
        )
        record_token_event("claim", "redirect")
        return ClaimOutcome(redirect_url=setup_url(self._setup_base_url, token))


__all__ = [
    "ClaimOutcome",
    "ClaimResolver",
    "PAYMENT_ID_ALIASES",
    "extract_payment_id",
    "setup_url",
]
