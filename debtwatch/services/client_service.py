"""Client service — Xero upserts, dashboard queries, weekly snapshots.

Usage:
    from debtwatch.services.client_service import list_clients, get_stats, get_client_detail
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from loguru import logger
from sqlalchemy import case, func, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..database import utcnow
from ..exceptions import NotFoundError, ValidationError
from ..models import Client, ClientStatus, WeeklySnapshot
from ..models.clients import MONEY_MAX

AT_RISK_MIN_DAYS = 1
AT_RISK_MAX_DAYS = 21

_CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a number to a 2dp Decimal (floats go through str to avoid binary noise).

    Raises ValidationError for non-numeric values or amounts too large for
    a money column.
    """
    if value is None:
        return Decimal("0.00")
    try:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        value = value.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value}") from None
    if abs(value) > MONEY_MAX:
        raise ValidationError(f"Amount out of range: {value}")
    return value


def _iso(dt: datetime | date | None) -> str | None:
    return dt.isoformat() if dt else None


def _num(value) -> float:
    return float(value) if value is not None else 0.0


# ── Serializers ──────────────────────────────────────────────────────


def client_to_dict(c: Client) -> dict:
    return {
        "id": c.id,
        "xero_contact_id": c.xero_contact_id,
        "name": c.name,
        "email": c.email,
        "phone": c.phone,
        "company": c.company,
        "current_balance": _num(c.current_balance),
        "previous_balance": _num(c.previous_balance),
        "week_change": _num(c.week_change),
        "streak_days": c.streak_days or 0,
        "status": c.status,
        "last_balance_check_date": _iso(c.last_balance_check_date),
        "last_payment_date": _iso(c.last_payment_date),
        "last_contact_date": _iso(c.last_contact_date),
        "last_call_outcome": c.last_call_outcome,
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }


def activity_to_dict(a) -> dict:
    return {
        "id": a.id,
        "client_id": a.client_id,
        "activity_type": a.activity_type,
        "outcome": a.outcome,
        "recording_url": a.recording_url,
        "notes": a.notes,
        "created_at": _iso(a.created_at),
    }


def snapshot_to_dict(s: WeeklySnapshot) -> dict:
    return {
        "id": s.id,
        "client_id": s.client_id,
        "week_start": _iso(s.week_start),
        "balance": _num(s.balance),
        "payment_made": bool(s.payment_made),
        "created_at": _iso(s.created_at),
    }


# ═══════════════════════════════════════════════════════════════════════
#  XERO UPSERT
# ═══════════════════════════════════════════════════════════════════════


def _insert_for(db: Session):
    """Dialect insert() that supports ON CONFLICT (PostgreSQL, SQLite)."""
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def upsert_clients(db: Session, clients: list) -> int:
    """Insert or update each client by xero_contact_id. Returns the count received.

    The row is claimed with INSERT ... ON CONFLICT DO NOTHING before it is
    updated, so two batches creating the same contact at once both succeed.
    Optional fields (phone, company) that are omitted leave the stored
    value untouched on update.
    """
    insert = _insert_for(db)
    created = updated = 0
    for payload in clients:
        now = utcnow()
        result = db.execute(
            insert(Client.__table__)
            .values(
                xero_contact_id=payload.xero_contact_id,
                name=payload.name,
                email=payload.email,
                current_balance=to_money(payload.current_balance),
                streak_days=0,
                status=ClientStatus.CURRENT.value,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["xero_contact_id"])
        )
        if result.rowcount:
            created += 1
        else:
            updated += 1

        client = (
            db.query(Client)
            .filter(Client.xero_contact_id == payload.xero_contact_id)
            .with_for_update()
            .one()
        )
        client.name = payload.name
        client.email = payload.email
        if payload.phone is not None:
            client.phone = payload.phone
        if payload.company is not None:
            client.company = payload.company
        client.current_balance = to_money(payload.current_balance)
        client.updated_at = now
        # Same contact id may appear twice in one batch
        db.flush()

    db.commit()
    logger.info("Xero client sync: {} created, {} updated", created, updated)
    return len(clients)


# ═══════════════════════════════════════════════════════════════════════
#  QUERIES
# ═══════════════════════════════════════════════════════════════════════


def list_clients(
    db: Session,
    status: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Client]:
    """Clients ordered by streak (longest first), optionally filtered.

    ``status`` of None, "" or "all" means no status filter. ``search`` is a
    case-insensitive substring match on name, company or email. ``limit`` and
    ``offset`` page through the filtered, ordered list.
    """
    query = db.query(Client)

    if status and status != "all":
        try:
            status = ClientStatus(status).value
        except ValueError:
            raise ValidationError(f"Unknown status filter: {status}") from None
        query = query.filter(Client.status == status)

    if search and search.strip():
        safe = search.strip().replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe}%"
        query = query.filter(
            or_(
                Client.name.ilike(pattern, escape="\\"),
                Client.company.ilike(pattern, escape="\\"),
                Client.email.ilike(pattern, escape="\\"),
            )
        )

    query = query.order_by(Client.streak_days.desc(), Client.name, Client.id)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_stats(db: Session) -> dict:
    """Dashboard totals across all clients."""
    total_outstanding, total, at_risk, suspended, paid = db.query(
        func.coalesce(func.sum(Client.current_balance), 0),
        func.count(Client.id),
        func.coalesce(
            func.sum(
                case(
                    (Client.streak_days.between(AT_RISK_MIN_DAYS, AT_RISK_MAX_DAYS), 1),
                    else_=0,
                )
            ),
            0,
        ),
        func.coalesce(
            func.sum(case((Client.status == ClientStatus.SUSPENDED.value, 1), else_=0)), 0
        ),
        func.coalesce(
            func.sum(case((Client.current_balance < Client.previous_balance, 1), else_=0)), 0
        ),
    ).one()

    collection_rate = (paid / total) * 100 if total else 0.0
    return {
        "total_outstanding": float(to_money(total_outstanding)),
        "total_clients": total,
        "at_risk": int(at_risk),
        "suspended": int(suspended),
        "collection_rate": float(collection_rate),
    }


def get_client_detail(db: Session, client_id: int) -> dict:
    """One client with its full activity log and snapshot history."""
    client = db.get(Client, client_id)
    if not client:
        raise NotFoundError(f"Client not found: {client_id}")
    data = client_to_dict(client)
    data["activity_log"] = [activity_to_dict(a) for a in client.activities]
    data["weekly_snapshots"] = [snapshot_to_dict(s) for s in client.snapshots]
    return data


# ═══════════════════════════════════════════════════════════════════════
#  WEEKLY SNAPSHOTS
# ═══════════════════════════════════════════════════════════════════════


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def record_weekly_snapshot(
    db: Session,
    client: Client,
    payment_made: bool = False,
    as_of: datetime | None = None,
) -> WeeklySnapshot:
    """Upsert this week's balance snapshot for a client (caller commits).

    payment_made is sticky within a week: once set it stays set.
    """
    week_start = week_start_for((as_of or utcnow()).date())
    snap = (
        db.query(WeeklySnapshot)
        .filter(
            WeeklySnapshot.client_id == client.id,
            WeeklySnapshot.week_start == week_start,
        )
        .first()
    )
    if snap is None:
        snap = WeeklySnapshot(
            client_id=client.id, week_start=week_start, payment_made=False
        )
        db.add(snap)
    snap.balance = to_money(client.current_balance)
    snap.payment_made = bool(snap.payment_made) or payment_made
    return snap
