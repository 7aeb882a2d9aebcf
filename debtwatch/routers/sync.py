"""Xero sync API — trigger, completion callback, last-sync marker."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_webhook_secret
from ..rate_limit import limiter
from ..schemas.responses import (
    LastSyncResponse,
    SyncCompleteResponse,
    SyncStatusResponse,
    SyncTriggerResponse,
)
from ..services.sync_service import get_last_sync, get_sync_status, record_sync_completion, trigger_sync

router = APIRouter(tags=["sync"])


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


@router.post("/api/sync/trigger", response_model=SyncTriggerResponse)
async def trigger(db: Session = Depends(get_db)):
    """Start a Xero sync on Make.com. Poll /api/sync/status with startedAt."""
    result = await trigger_sync(db)
    return {
        "success": True,
        "message": result["message"],
        "startedAt": _iso(result["started_at"]),
    }


@router.post(
    "/api/sync/complete",
    response_model=SyncCompleteResponse,
    dependencies=[Depends(require_webhook_secret)],
)
@router.post(
    "/api/webhooks/sync-complete",
    response_model=SyncCompleteResponse,
    dependencies=[Depends(require_webhook_secret)],
)
@limiter.limit(settings.rate_limit_webhooks)
async def complete(request: Request, db: Session = Depends(get_db)):
    """Make.com callback when the sync finishes. Any (or no) JSON body is accepted."""
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {"body": payload}
    last_sync = record_sync_completion(db, payload)
    return {
        "success": True,
        "message": "Sync completion recorded",
        "lastSync": _iso(last_sync),
    }


@router.get("/api/sync/last", response_model=LastSyncResponse)
def last_sync(db: Session = Depends(get_db)):
    return {"lastSync": _iso(get_last_sync(db))}


@router.get("/api/sync/status", response_model=SyncStatusResponse)
def sync_status(
    started_at: datetime = Query(..., description="Time the caller triggered the sync"),
    db: Session = Depends(get_db),
):
    """pending / completed / timed_out for a sync started at ``started_at``."""
    status = get_sync_status(db, started_at)
    return {
        "state": status["state"],
        "lastSync": _iso(status["last_sync"]),
        "startedAt": _iso(status["started_at"]),
    }
