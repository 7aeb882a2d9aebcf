"""Make.com webhooks — client sync, payment updates, contact activity."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_webhook_secret
from ..rate_limit import limiter
from ..schemas.responses import SuccessResponse, SyncClientsResponse
from ..schemas.webhooks import LogActivityRequest, SyncClientsRequest, UpdatePaymentRequest
from ..services.client_service import upsert_clients
from ..services.collection_service import apply_payment, log_activity

router = APIRouter(
    prefix="/api/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(require_webhook_secret)],
)


@router.post("/sync-clients", response_model=SyncClientsResponse)
@limiter.limit(settings.rate_limit_webhooks)
def sync_clients(
    body: SyncClientsRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Upsert the client list pushed by the Xero sync scenario."""
    count = upsert_clients(db, body.clients)
    return {"success": True, "count": count}


@router.post("/update-payment", response_model=SuccessResponse)
@limiter.limit(settings.rate_limit_webhooks)
def update_payment(
    body: UpdatePaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """New balance for one contact; resets the streak when the balance went down."""
    apply_payment(db, body.xero_contact_id, body.new_balance, body.payment_amount)
    return {"success": True}


@router.post("/log-activity", response_model=SuccessResponse)
@limiter.limit(settings.rate_limit_webhooks)
def log_contact_activity(
    body: LogActivityRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    log_activity(
        db,
        body.xero_contact_id,
        body.activity_type,
        outcome=body.outcome,
        recording_url=body.recording_url,
        notes=body.notes,
    )
    return {"success": True}
