"""View tokens binding uploaded content to a shareable link."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlencode

from libs.kvstore import ExpiringStore
from libs.observability import record_token_event, token_hint

from .tokens import load_record, new_token, now_ms

logger = logging.getLogger(__name__)

VIEW_PREFIX = "view:"


def view_key(token: str) -> str:
    return f"{VIEW_PREFIX}{token}"


def view_url(base_url: str, token: str) -> str:
    """Build the shareable viewer link; the token travels as a query parameter."""

    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


@dataclass(frozen=True, slots=True)
class ExchangeResult:
    token: str
    updated: bool


class ViewTokenManager:
    """Exchange verified purchases for view tokens and resolve them back.

    A purchase token may produce or update any number of view tokens until it
    expires, so buyers can iterate on their content.
    """

    def __init__(self, store: ExpiringStore, *, ttl_seconds: int) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds

    async def exchange(
        self,
        purchase_meta: Mapping[str, Any],
        setup_payload: Mapping[str, Any],
        existing_view_token: str | None = None,
    ) -> ExchangeResult:
        if existing_view_token:
            if await self._update(existing_view_token, setup_payload):
                record_token_event("exchange", "updated")
                return ExchangeResult(token=existing_view_token, updated=True)
            logger.info(
                "view token not found, minting a new one",
                extra={"token_hint": token_hint(existing_view_token)},
            )

        token = new_token()
        record = {
            "setupPayload": dict(setup_payload),
            "orderMeta": dict(purchase_meta),
            "createdAt": now_ms(),
        }
        await self._store.set(view_key(token), json.dumps(record), self.ttl_seconds)
        logger.info("view token created", extra={"token_hint": token_hint(token)})
        record_token_event("exchange", "created")
        return ExchangeResult(token=token, updated=False)

    async def _update(self, token: str, setup_payload: Mapping[str, Any]) -> bool:
        key = view_key(token)
        existing = load_record(await self._store.get(key))
        if existing is None:
            return False
        existing["setupPayload"] = dict(setup_payload)
        existing["updatedAt"] = now_ms()
        # XX write: a record that expired since the read stays expired
        return await self._store.set_if_present(key, json.dumps(existing), self.ttl_seconds)

    async def resolve(self, token: str | None) -> dict[str, Any] | None:
        """Return the setup payload bound to ``token`` or ``None``."""

        if not token:
            return None
        record = load_record(await self._store.get(view_key(token)))
        if record is None or not isinstance(record.get("setupPayload"), dict):
            record_token_event("resolve_view", "rejected")
            return None
        record_token_event("resolve_view", "ok")
        return record["setupPayload"]


__all__ = ["ExchangeResult", "VIEW_PREFIX", "ViewTokenManager", "view_key", "view_url"]
