"""Client for the Razorpay payment-link API and webhook payload helpers."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from .tokens import now_ms


class RazorpayClient:
    """Minimal Razorpay REST client creating payment links."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            auth=httpx.BasicAuth(key_id, key_secret),
            headers={"Content-Type": "application/json", "User-Agent": "token-service"},
            timeout=timeout,
        )
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def create_payment_link(
        self,
        *,
        amount_rupees: float,
        callback_url: str,
        description: str = "Valentines gift",
    ) -> dict[str, Any]:
        payload = {
            "amount": amount_to_paise(amount_rupees),
            "currency": "INR",
            "accept_partial": False,
            "description": description,
            "reference_id": f"ref_{now_ms()}",
            "callback_url": callback_url,
            "callback_method": "get",
        }
        response = await self._client.post("/payment_links", json=payload)
        response.raise_for_status()
        return response.json()


def amount_to_paise(amount_rupees: float) -> int:
    return max(1, round(amount_rupees * 100))


def extract_webhook_payment_id(event: Mapping[str, Any]) -> str:
    """Return the payment (or payment link) id of a webhook event.

    Events without either id get a synthetic ``razorpay_<ms>`` identifier.
    """

    payload = event.get("payload")
    if isinstance(payload, dict):
        for entity_name in ("payment", "payment_link"):
            wrapper = payload.get(entity_name)
            entity = wrapper.get("entity") if isinstance(wrapper, dict) else None
            if isinstance(entity, dict) and entity.get("id"):
                return str(entity["id"])
    return f"razorpay_{now_ms()}"


__all__ = ["RazorpayClient", "amount_to_paise", "extract_webhook_payment_id"]
