"""Purchase token issuance and verification.

Purchase tokens are random UUID4 strings stored under ``purchase:<token>``
with a JSON record. A payment identifier maps to at most one token through
``payment:<paymentId>``, written with a single set-if-absent so redelivered or
concurrent webhooks converge on the first winner.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from libs.kvstore import ExpiringStore, StoreUnavailableError
from libs.observability import record_token_event, token_hint

logger = logging.getLogger(__name__)

PURCHASE_PREFIX = "purchase:"
PAYMENT_PREFIX = "payment:"


def purchase_key(token: str) -> str:
    return f"{PURCHASE_PREFIX}{token}"


def payment_key(payment_id: str) -> str:
    return f"{PAYMENT_PREFIX}{payment_id}"


def now_ms() -> int:
    return int(time.time() * 1000)


def new_token() -> str:
    return str(uuid.uuid4())


def load_record(raw: str | None) -> dict[str, Any] | None:
    """Decode a stored JSON object, treating anything else as absent."""

    if not raw:
        return None
    try:
        record = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return record if isinstance(record, dict) else None


@dataclass(frozen=True, slots=True)
class IssueResult:
    token: str
    created_mapping: bool


class PurchaseTokenEngine:
    """Mint, deduplicate and verify purchase tokens."""

    def __init__(self, store: ExpiringStore, *, ttl_seconds: int) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds

    async def issue(self, metadata: Mapping[str, Any] | None = None) -> IssueResult:
        """Store a fresh purchase token carrying ``metadata``.

        When ``metadata`` has a ``paymentId`` the payment mapping is created
        only if absent. Failing to write the mapping never fails issuance.
        """

        meta = dict(metadata or {})
        token = new_token()
        record = {"createdAt": now_ms(), **meta}
        await self._store.set(purchase_key(token), json.dumps(record), self.ttl_seconds)
        logger.info(
            "purchase token issued",
            extra={"token_hint": token_hint(token), "ttl_seconds": self.ttl_seconds},
        )
        record_token_event("issue", "ok")

        payment_id = meta.get("paymentId")
        if not payment_id:
            return IssueResult(token=token, created_mapping=False)

        created = False
        try:
            created = await self._store.set_if_absent(
                payment_key(str(payment_id)), token, self.ttl_seconds
            )
        except StoreUnavailableError:
            logger.warning(
                "failed to set payment mapping",
                extra={"payment_id": payment_id, "token_hint": token_hint(token)},
                exc_info=True,
            )
            record_token_event("mapping", "error")
            return IssueResult(token=token, created_mapping=False)

        logger.info(
            "payment mapping %s",
            "created" if created else "already existed",
            extra={"payment_id": payment_id, "token_hint": token_hint(token)},
        )
        record_token_event("mapping", "created" if created else "exists")
        return IssueResult(token=token, created_mapping=created)

    async def canonical_token(self, payment_id: str) -> str | None:
        """Return the token the payment mapping points to, if any."""

        if not payment_id:
            return None
        return await self._store.get(payment_key(payment_id))

    async def verify(self, token: str | None) -> dict[str, Any] | None:
        """Return the stored metadata for ``token`` or ``None`` to reject it."""

        if not token:
            return None
        record = load_record(await self._store.get(purchase_key(token)))
        record_token_event("verify", "ok" if record is not None else "rejected")
        return record


__all__ = [
    "IssueResult",
    "PAYMENT_PREFIX",
    "PURCHASE_PREFIX",
    "PurchaseTokenEngine",
    "load_record",
    "new_token",
    "now_ms",
    "payment_key",
    "purchase_key",
]
