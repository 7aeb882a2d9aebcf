"""Sync service — trigger the Make.com Xero sync and detect its completion.

Flow:
    1. trigger_sync() POSTs {"timestamp": ...} to the Make.com scenario webhook
       and returns the time the sync was started.
    2. Make.com runs the Xero sync, then calls /api/sync/complete, which
       runs record_sync_completion() and overwrites the marker.
    3. The caller polls the marker (wait_for_sync / SyncWatch, or
       /api/sync/status) until it moves past its own start time, or gives
       up after the window (5 min by default).

Business Rules:
- Completion only counts if the marker is strictly later than the start
  time recorded for this trigger; an older or equal marker is a previous
  sync, not this one
- The completion callback always overwrites the marker with now, whether
  or not a trigger was issued
- A timed-out window is a terminal "still running" state, not an error;
  the Make.com job may still finish and move the marker later
- No retries: Make.com or the operator retries a failed trigger
- A failed trigger commits nothing; only a successful one is written to
  sync_logs

Called by: routers/sync.py
Depends on: http_client.py, config.py, models/sync.py
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

import httpx
from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..database import utcnow
from ..exceptions import ConfigurationError, UpstreamError
from ..http_client import http
from ..models import SyncLog, SyncMarker
from ..models.sync import MARKER_ID

PENDING = "pending"
COMPLETED = "completed"
TIMED_OUT = "timed_out"


# ═══════════════════════════════════════════════════════════════════════
#  TRIGGER
# ═══════════════════════════════════════════════════════════════════════


async def trigger_sync(db: Session) -> dict:
    """Start a Xero balance sync on Make.com.

    Raises ConfigurationError if no webhook URL is set, UpstreamError if the
    call fails or Make.com answers with a non-2xx status. A failed trigger
    writes nothing to the database; the error is logged.
    """
    url = settings.make_sync_webhook_url
    if not url:
        raise ConfigurationError("MAKE_SYNC_WEBHOOK_URL is not configured")

    started_at = utcnow()
    try:
        resp = await http.post(
            url,
            json={"timestamp": started_at.isoformat()},
            timeout=settings.upstream_timeout_seconds,
        )
    except httpx.HTTPError as e:
        logger.error("Make.com sync webhook unreachable: {}", e)
        raise UpstreamError(f"Failed to trigger sync: {e or type(e).__name__}") from e

    if not resp.is_success:
        logger.error("Make.com sync webhook returned {}", resp.status_code)
        raise UpstreamError(
            f"Failed to trigger sync: webhook returned status {resp.status_code}",
            upstream_status=resp.status_code,
        )

    db.add(SyncLog(event="triggered", status="ok", started_at=started_at))
    db.commit()
    logger.info("Xero sync triggered at {}", started_at.isoformat())
    return {"success": True, "message": "Sync started", "started_at": started_at}


# ═══════════════════════════════════════════════════════════════════════
#  MARKER
# ═══════════════════════════════════════════════════════════════════════


def record_sync_completion(db: Session, payload: dict | None = None) -> datetime:
    """Overwrite the last-sync marker with now. Called by the Make.com callback."""
    now = utcnow()
    marker = db.get(SyncMarker, MARKER_ID)
    if marker is None:
        marker = SyncMarker(id=MARKER_ID)
        db.add(marker)
    marker.last_sync_at = now

    db.add(
        SyncLog(
            event="completed",
            status="ok",
            started_at=now,
            finished_at=now,
            detail=payload or None,
        )
    )
    db.commit()
    logger.info("Sync completed at {} (payload keys: {})", now.isoformat(), sorted(payload or {}))
    return now


def get_last_sync(db: Session) -> datetime | None:
    """Time of the last completed sync, or None if there never was one."""
    marker = db.get(SyncMarker, MARKER_ID)
    return marker.last_sync_at if marker else None


# ═══════════════════════════════════════════════════════════════════════
#  COMPLETION DETECTION
# ═══════════════════════════════════════════════════════════════════════


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def is_sync_complete(last_sync: datetime | None, started_at: datetime) -> bool:
    """True only if the marker moved strictly past this session's start time."""
    if last_sync is None:
        return False
    return _aware(last_sync) > _aware(started_at)


class SyncWatch:
    """Completion-detection window for one triggered sync.

    Feed it marker values with observe(); the state goes from "pending" to
    "completed" or "timed_out" and then stays there.
    """

    def __init__(self, started_at: datetime, timeout: float | None = None):
        self.started_at = _aware(started_at)
        self.timeout = timedelta(
            seconds=settings.sync_timeout_seconds if timeout is None else timeout
        )
        self.state = PENDING
        self.completed_at: datetime | None = None

    @property
    def deadline(self) -> datetime:
        return self.started_at + self.timeout

    @property
    def done(self) -> bool:
        return self.state != PENDING

    def observe(self, last_sync: datetime | None, now: datetime | None = None) -> str:
        if self.done:
            return self.state
        if is_sync_complete(last_sync, self.started_at):
            self.state = COMPLETED
            self.completed_at = _aware(last_sync)
        elif _aware(now or utcnow()) >= self.deadline:
            self.state = TIMED_OUT
        return self.state


async def wait_for_sync(
    fetch_last_sync: Callable[[], Awaitable[datetime | None]],
    started_at: datetime,
    interval: float | None = None,
    timeout: float | None = None,
) -> SyncWatch:
    """Poll the marker until the sync completes or the window closes."""
    interval = settings.sync_poll_interval_seconds if interval is None else interval
    watch = SyncWatch(started_at, timeout=timeout)
    while True:
        state = watch.observe(await fetch_last_sync())
        if watch.done:
            break
        await asyncio.sleep(interval)
    if state == TIMED_OUT:
        logger.warning("Sync started at {} is taking longer than expected", watch.started_at.isoformat())
    return watch


def get_sync_status(db: Session, started_at: datetime, now: datetime | None = None) -> dict:
    """Server-side reconciliation of the marker against a caller's start time."""
    last_sync = get_last_sync(db)
    watch = SyncWatch(started_at)
    state = watch.observe(last_sync, now=now)
    return {"state": state, "last_sync": last_sync, "started_at": watch.started_at}
