"""
schemas/responses.py — Response models for OpenAPI documentation

Webhook and sync responses keep the camelCase keys Make.com and the
dashboard already consume; read queries use snake_case rows.

Called by: routers/*.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _CamelResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── Webhooks ────────────────────────────────────────────────────────────


class SuccessResponse(BaseModel):
    success: bool = True


class SyncClientsResponse(SuccessResponse):
    count: int = 0


# ── Sync ────────────────────────────────────────────────────────────────


class SyncTriggerResponse(_CamelResponse):
    success: bool = True
    message: str
    started_at: str = Field(..., alias="startedAt")


class SyncCompleteResponse(_CamelResponse):
    success: bool = True
    message: str
    last_sync: str = Field(..., alias="lastSync")


class LastSyncResponse(_CamelResponse):
    last_sync: str | None = Field(None, alias="lastSync")


class SyncStatusResponse(_CamelResponse):
    state: Literal["pending", "completed", "timed_out"]
    last_sync: str | None = Field(None, alias="lastSync")
    started_at: str = Field(..., alias="startedAt")


# ── Clients ─────────────────────────────────────────────────────────────


class ClientListItem(BaseModel, extra="allow"):
    id: int
    xero_contact_id: str
    name: str
    email: str
    current_balance: float = 0
    streak_days: int = 0
    status: str


class ClientDetailResponse(ClientListItem):
    activity_log: list[dict] = Field(default_factory=list)
    weekly_snapshots: list[dict] = Field(default_factory=list)


class ClientStatsResponse(BaseModel):
    total_outstanding: float = 0
    total_clients: int = 0
    at_risk: int = 0
    suspended: int = 0
    collection_rate: float = 0
