"""Request and response payloads of the token service."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AdminIssueRequest(BaseModel):
    """Manual issuance; extra fields are stored as token metadata."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    payment_id: str | None = Field(None, alias="paymentId")


class AdminIssueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str
    claim_url: str = Field(alias="claimUrl")
    expires_in_sec: int = Field(alias="expiresInSec")


class PurchaseVerification(BaseModel):
    valid: bool = True
    meta: dict[str, Any]


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    setup_payload: dict[str, Any] = Field(alias="setupPayload")
    view_token: str | None = Field(None, alias="viewToken")


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    view_token: str = Field(alias="viewToken")
    view_url: str = Field(alias="viewUrl")
    updated: bool
    expires_in_sec: int = Field(alias="expiresInSec")


class ViewPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    setup_payload: dict[str, Any] = Field(alias="setupPayload")


class PaymentLinkRequest(BaseModel):
    amount: float = Field(1, gt=0, description="Amount in rupees")


__all__ = [
    "AdminIssueRequest",
    "AdminIssueResponse",
    "GenerateRequest",
    "GenerateResponse",
    "PaymentLinkRequest",
    "PurchaseVerification",
    "ViewPayload",
]
