"""Collection service — payment streaks, status classification, contact log.

Every write that touches a client's balance goes through apply_payment(),
which holds a row lock on the client for the whole read-modify-write so
two payment reports for the same contact cannot interleave.

Business Rules:
- Status is a pure function of streak_days (classify_streak); the two are
  always written together
- A reported balance lower than the stored one is a payment: streak resets
  to 0. Any other balance leaves the streak alone (the daily streak job
  increments it, not this service)
- previous_balance / week_change always describe the last reported change
- Contact activities never clear a recorded call outcome

Usage:
    from debtwatch.services.collection_service import apply_payment, classify_streak, log_activity

Called by: routers/webhooks.py
Depends on: models, services/client_service.py
"""

from __future__ import annotations

from decimal import Decimal

from loguru import logger
from sqlalchemy.orm import Session

from ..database import utcnow
from ..exceptions import NotFoundError, ValidationError
from ..models import ActivityLog, ActivityType, Client, ClientStatus
from .client_service import record_weekly_snapshot, to_money

WARNING_MAX_DAYS = 14
CRITICAL_MAX_DAYS = 21

CONTACT_ACTIVITY_TYPES = frozenset(
    {ActivityType.CALL, ActivityType.SMS, ActivityType.EMAIL, ActivityType.SUSPENSION}
)


# ═══════════════════════════════════════════════════════════════════════
#  STREAK → STATUS
# ═══════════════════════════════════════════════════════════════════════


def classify_streak(streak_days: int) -> ClientStatus:
    """Map days without payment to a collection status.

    0 → current, 1-14 → warning, 15-21 → critical, 22+ → suspended.
    """
    if streak_days < 0:
        raise ValueError(f"streak_days must be >= 0, got {streak_days}")
    if streak_days == 0:
        return ClientStatus.CURRENT
    if streak_days <= WARNING_MAX_DAYS:
        return ClientStatus.WARNING
    if streak_days <= CRITICAL_MAX_DAYS:
        return ClientStatus.CRITICAL
    return ClientStatus.SUSPENDED


def _lock_client(db: Session, xero_contact_id: str) -> Client:
    client = (
        db.query(Client)
        .filter(Client.xero_contact_id == xero_contact_id)
        .with_for_update()
        .first()
    )
    if not client:
        raise NotFoundError(f"Client not found: {xero_contact_id}")
    return client


# ═══════════════════════════════════════════════════════════════════════
#  PAYMENTS
# ═══════════════════════════════════════════════════════════════════════


def apply_payment(
    db: Session,
    xero_contact_id: str,
    new_balance: Decimal | float | int,
    payment_amount: Decimal | float | int,
) -> Client:
    """Record a new balance reported by Xero and update collection state.

    Raises NotFoundError (nothing written) for an unknown contact.
    """
    new_balance = to_money(new_balance)
    payment_amount = to_money(payment_amount)

    client = _lock_client(db, xero_contact_id)
    old_balance = to_money(client.current_balance)
    reduced = new_balance < old_balance

    streak = 0 if reduced else (client.streak_days or 0)
    status = classify_streak(streak)
    now = utcnow()

    client.previous_balance = old_balance
    client.current_balance = new_balance
    client.week_change = new_balance - old_balance
    client.streak_days = streak
    client.status = status.value
    client.last_balance_check_date = now
    client.last_payment_date = now

    db.add(
        ActivityLog(
            client_id=client.id,
            activity_type=ActivityType.PAYMENT.value,
            outcome=f"Payment of ${payment_amount:.2f} received",
            created_at=now,
        )
    )
    record_weekly_snapshot(db, client, payment_made=reduced, as_of=now)
    db.commit()

    logger.info(
        "Payment for {}: {} → {} (streak {}, status {})",
        xero_contact_id, old_balance, new_balance, streak, status.value,
    )
    return client


# ═══════════════════════════════════════════════════════════════════════
#  CONTACT ACTIVITY
# ═══════════════════════════════════════════════════════════════════════


def log_activity(
    db: Session,
    xero_contact_id: str,
    activity_type: str,
    outcome: str | None = None,
    recording_url: str | None = None,
    notes: str | None = None,
) -> ActivityLog:
    """Append a call/sms/email/suspension event and refresh last-contact fields."""
    try:
        kind = ActivityType(activity_type)
    except ValueError:
        raise ValidationError(f"Unknown activity type: {activity_type}") from None
    if kind not in CONTACT_ACTIVITY_TYPES:
        raise ValidationError("Payment activities are recorded via update-payment")

    client = _lock_client(db, xero_contact_id)
    now = utcnow()

    activity = ActivityLog(
        client_id=client.id,
        activity_type=kind.value,
        outcome=outcome,
        recording_url=recording_url,
        notes=notes,
        created_at=now,
    )
    db.add(activity)

    client.last_contact_date = now
    if outcome is not None:
        client.last_call_outcome = outcome
    db.commit()

    logger.info("Logged {} for {} (outcome={})", kind.value, xero_contact_id, outcome)
    return activity
