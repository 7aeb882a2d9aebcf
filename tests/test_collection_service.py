"""
test_collection_service.py — Tests for streak classification, payments
and contact activity logging.

Covers:
- classify_streak() boundaries and monotonicity
- apply_payment(): reset on reduction, unchanged otherwise, balances,
  activity entry, weekly snapshot, unknown contact
- log_activity(): insert, last-contact fields, outcome preservation,
  rejected activity types

Called by: pytest
Depends on: debtwatch/services/collection_service.py, conftest.py
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from debtwatch.exceptions import NotFoundError, ValidationError
from debtwatch.models import ActivityLog, Client, ClientStatus, WeeklySnapshot
from debtwatch.services.collection_service import (
    apply_payment,
    classify_streak,
    log_activity,
)

_SEVERITY = [
    ClientStatus.CURRENT,
    ClientStatus.WARNING,
    ClientStatus.CRITICAL,
    ClientStatus.SUSPENDED,
]


# ── classify_streak ──────────────────────────────────────────────────


class TestClassifyStreak:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, ClientStatus.CURRENT),
            (1, ClientStatus.WARNING),
            (14, ClientStatus.WARNING),
            (15, ClientStatus.CRITICAL),
            (21, ClientStatus.CRITICAL),
            (22, ClientStatus.SUSPENDED),
            (365, ClientStatus.SUSPENDED),
        ],
    )
    def test_boundaries(self, days, expected):
        assert classify_streak(days) is expected

    def test_monotonic_in_severity(self):
        ranks = [_SEVERITY.index(classify_streak(d)) for d in range(0, 60)]
        assert ranks == sorted(ranks)

    def test_negative_streak_rejected(self):
        with pytest.raises(ValueError):
            classify_streak(-1)


# ── apply_payment ────────────────────────────────────────────────────


class TestApplyPayment:
    def test_payment_reducing_balance(self, db_session: Session, test_client_row: Client):
        apply_payment(db_session, "xero-acme-001", 500, 300)

        c = db_session.get(Client, test_client_row.id)
        assert c.streak_days == 0
        assert c.status == "current"
        assert c.previous_balance == Decimal("800.00")
        assert c.current_balance == Decimal("500.00")
        assert c.week_change == Decimal("-300.00")
        assert c.last_balance_check_date is not None
        assert c.last_payment_date is not None

        logs = db_session.query(ActivityLog).filter_by(client_id=c.id).all()
        assert len(logs) == 1
        assert logs[0].activity_type == "payment"
        assert logs[0].outcome == "Payment of $300.00 received"

    @pytest.mark.parametrize("streak", [3, 14, 18, 40])
    def test_reduction_resets_any_streak(self, db_session: Session, make_client, streak):
        make_client("xero-late", current_balance=Decimal("1000"), streak_days=streak)
        c = apply_payment(db_session, "xero-late", Decimal("999.99"), Decimal("0.01"))
        assert c.streak_days == 0
        assert c.status == "current"

    @pytest.mark.parametrize("new_balance", [Decimal("1000"), Decimal("1250.50")])
    def test_no_reduction_keeps_streak(self, db_session: Session, make_client, new_balance):
        make_client("xero-late", current_balance=Decimal("1000"), streak_days=18)
        c = apply_payment(db_session, "xero-late", new_balance, Decimal("0"))
        assert c.streak_days == 18
        assert c.status == "critical"
        assert c.previous_balance == Decimal("1000.00")
        assert c.current_balance == new_balance
        assert c.week_change == new_balance - Decimal("1000")

    def test_status_tracks_unchanged_streak(self, db_session: Session, make_client):
        # status is recomputed from the streak, even if it was stored stale
        c = make_client("xero-stale", current_balance=Decimal("50"), streak_days=30)
        c.status = "warning"
        db_session.commit()
        apply_payment(db_session, "xero-stale", 60, 0)
        assert db_session.get(Client, c.id).status == "suspended"

    def test_unknown_contact_writes_nothing(self, db_session: Session, test_client_row: Client):
        with pytest.raises(NotFoundError):
            apply_payment(db_session, "xero-missing", 10, 10)
        db_session.rollback()

        assert db_session.query(ActivityLog).count() == 0
        assert db_session.query(WeeklySnapshot).count() == 0
        c = db_session.get(Client, test_client_row.id)
        assert c.current_balance == Decimal("800.00")
        assert c.last_payment_date is None

    def test_records_weekly_snapshot(self, db_session: Session, test_client_row: Client):
        apply_payment(db_session, "xero-acme-001", 500, 300)
        apply_payment(db_session, "xero-acme-001", 650, 0)

        snaps = db_session.query(WeeklySnapshot).filter_by(client_id=test_client_row.id).all()
        assert len(snaps) == 1
        assert snaps[0].balance == Decimal("650.00")
        assert snaps[0].payment_made is True
        assert snaps[0].week_start.weekday() == 0

    def test_successive_payments_chain_balances(self, db_session: Session, test_client_row: Client):
        apply_payment(db_session, "xero-acme-001", 500, 300)
        c = apply_payment(db_session, "xero-acme-001", 200, 300)
        assert c.previous_balance == Decimal("500.00")
        assert c.current_balance == Decimal("200.00")
        assert c.week_change == Decimal("-300.00")
        assert db_session.query(ActivityLog).count() == 2


# ── log_activity ─────────────────────────────────────────────────────


class TestLogActivity:
    def test_call_with_outcome(self, db_session: Session, test_client_row: Client):
        activity = log_activity(
            db_session,
            "xero-acme-001",
            "call",
            outcome="Promised to pay Friday",
            recording_url="https://recordings.example.com/abc.mp3",
            notes="Spoke to accounts",
        )
        assert activity.id is not None
        assert activity.activity_type == "call"
        assert activity.recording_url.endswith("abc.mp3")

        c = db_session.get(Client, test_client_row.id)
        assert c.last_contact_date is not None
        assert c.last_call_outcome == "Promised to pay Friday"

    def test_missing_outcome_keeps_previous(self, db_session: Session, test_client_row: Client):
        log_activity(db_session, "xero-acme-001", "call", outcome="No answer")
        log_activity(db_session, "xero-acme-001", "sms")

        c = db_session.get(Client, test_client_row.id)
        assert c.last_call_outcome == "No answer"
        assert db_session.query(ActivityLog).count() == 2

    @pytest.mark.parametrize("kind", ["call", "sms", "email", "suspension"])
    def test_contact_types_accepted(self, db_session: Session, test_client_row: Client, kind):
        assert log_activity(db_session, "xero-acme-001", kind).activity_type == kind

    def test_payment_type_rejected(self, db_session: Session, test_client_row: Client):
        with pytest.raises(ValidationError):
            log_activity(db_session, "xero-acme-001", "payment")
        assert db_session.query(ActivityLog).count() == 0

    def test_unknown_type_rejected(self, db_session: Session, test_client_row: Client):
        with pytest.raises(ValidationError):
            log_activity(db_session, "xero-acme-001", "fax")

    def test_unknown_contact(self, db_session: Session):
        with pytest.raises(NotFoundError):
            log_activity(db_session, "xero-missing", "email")
