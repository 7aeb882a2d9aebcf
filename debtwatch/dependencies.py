"""
dependencies.py — Shared FastAPI Dependencies

Business Rules:
- Webhook callers (Make.com) authenticate with the X-Webhook-Secret header
  when WEBHOOK_SECRET is configured; with no secret configured the
  webhooks are open
- Secret comparison is timing-safe

Called by: routers/webhooks.py, routers/sync.py
Depends on: config
"""

import hmac

from fastapi import HTTPException, Request
from loguru import logger

from .config import settings


def require_webhook_secret(request: Request) -> None:
    """Dependency: raises 401 if the webhook secret header doesn't match."""
    expected = settings.webhook_secret
    if not expected:
        return
    supplied = request.headers.get("x-webhook-secret", "")
    # Headers are latin-1 decoded and may hold non-ASCII; compare as bytes
    if not hmac.compare_digest(expected.encode(), supplied.encode()):
        logger.warning("Rejected webhook call to {} (bad secret)", request.url.path)
        raise HTTPException(401, "Invalid webhook secret")
