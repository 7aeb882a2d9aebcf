"""
schemas/webhooks.py — Pydantic models for the Make.com webhook payloads

Field names on the wire are camelCase (as Make.com sends them); Python
attributes are snake_case.

Business Rules:
- xeroContactId, name and email are required and non-blank
- Balances are decimals; negative balances (credit notes) are allowed,
  bounded by what a Numeric(12, 2) column holds
- log-activity accepts call, sms, email, suspension only; payment
  activities come from update-payment

Called by: routers/webhooks.py
Depends on: pydantic
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.clients import MONEY_MAX


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _not_blank(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


# ── Client sync ──────────────────────────────────────────────────────


class XeroClient(_CamelModel):
    xero_contact_id: str = Field(..., alias="xeroContactId")
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    current_balance: Decimal = Field(..., alias="currentBalance", ge=-MONEY_MAX, le=MONEY_MAX)

    @field_validator("xero_contact_id")
    @classmethod
    def contact_id_not_blank(cls, v: str) -> str:
        return _not_blank(v, "xeroContactId")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Client name")


class SyncClientsRequest(BaseModel):
    clients: list[XeroClient]


# ── Payments ─────────────────────────────────────────────────────────


class UpdatePaymentRequest(_CamelModel):
    xero_contact_id: str = Field(..., alias="xeroContactId")
    new_balance: Decimal = Field(..., alias="newBalance", ge=-MONEY_MAX, le=MONEY_MAX)
    payment_amount: Decimal = Field(..., alias="paymentAmount", ge=-MONEY_MAX, le=MONEY_MAX)

    @field_validator("xero_contact_id")
    @classmethod
    def contact_id_not_blank(cls, v: str) -> str:
        return _not_blank(v, "xeroContactId")


# ── Contact activity ─────────────────────────────────────────────────


class LogActivityRequest(_CamelModel):
    xero_contact_id: str = Field(..., alias="xeroContactId")
    activity_type: Literal["call", "sms", "email", "suspension"] = Field(
        ..., alias="activityType"
    )
    outcome: str | None = None
    recording_url: str | None = Field(None, alias="recordingUrl", max_length=1000)
    notes: str | None = None

    @field_validator("xero_contact_id")
    @classmethod
    def contact_id_not_blank(cls, v: str) -> str:
        return _not_blank(v, "xeroContactId")
