"""Collection models — Clients, Activity Log, Weekly Snapshots."""

import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from .base import Base

# Largest magnitude a Numeric(12, 2) money column holds
MONEY_MAX = Decimal("9999999999.99")


class ClientStatus(str, enum.Enum):
    """Collection status, derived from streak_days only."""
    CURRENT = "current"
    WARNING = "warning"
    CRITICAL = "critical"
    SUSPENDED = "suspended"


class ActivityType(str, enum.Enum):
    CALL = "call"
    SMS = "sms"
    EMAIL = "email"
    PAYMENT = "payment"
    SUSPENSION = "suspension"


class Client(Base):
    """One debtor account, keyed externally by its Xero contact id."""

    __tablename__ = "clients"
    id = Column(Integer, primary_key=True)
    xero_contact_id = Column(String(255), nullable=False, unique=True, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(100))
    company = Column(String(255))

    current_balance = Column(Numeric(12, 2), nullable=False, default=0)
    previous_balance = Column(Numeric(12, 2), nullable=False, default=0)
    week_change = Column(Numeric(12, 2), nullable=False, default=0)

    streak_days = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=ClientStatus.CURRENT.value)
    last_balance_check_date = Column(UTCDateTime)
    last_payment_date = Column(UTCDateTime)
    last_contact_date = Column(UTCDateTime)
    last_call_outcome = Column(Text)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    activities = relationship(
        "ActivityLog", back_populates="client", cascade="all, delete-orphan"
    )
    snapshots = relationship(
        "WeeklySnapshot", back_populates="client", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_clients_status", "status"),
        Index("ix_clients_streak", "streak_days"),
    )


class ActivityLog(Base):
    """Append-only contact/payment event against a client."""

    __tablename__ = "activity_log"
    id = Column(Integer, primary_key=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    activity_type = Column(String(20), nullable=False)  # call, sms, email, payment, suspension
    outcome = Column(Text)
    recording_url = Column(String(1000))
    notes = Column(Text)
    created_at = Column(UTCDateTime, default=utcnow)

    client = relationship("Client", back_populates="activities")

    __table_args__ = (
        Index("ix_activity_client_created", "client_id", "created_at"),
    )


class WeeklySnapshot(Base):
    """Balance as of the start of a week."""

    __tablename__ = "weekly_snapshots"
    id = Column(Integer, primary_key=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    week_start = Column(Date, nullable=False)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    payment_made = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow)

    client = relationship("Client", back_populates="snapshots")

    __table_args__ = (
        UniqueConstraint("client_id", "week_start", name="uq_snapshot_client_week"),
    )
