"""Sync models — last-sync marker and the sync event log."""

from sqlalchemy import JSON, Column, Index, Integer, String

from ..database import UTCDateTime, utcnow
from .base import Base

MARKER_ID = 1


class SyncMarker(Base):
    """Single row holding the time of the last completed Xero sync."""

    __tablename__ = "sync_markers"
    id = Column(Integer, primary_key=True, default=MARKER_ID)
    last_sync_at = Column(UTCDateTime)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)


class SyncLog(Base):
    """Log of each sync trigger and completion callback."""

    __tablename__ = "sync_logs"
    id = Column(Integer, primary_key=True)
    event = Column(String(20), nullable=False)  # triggered, completed
    status = Column(String(20), nullable=False)  # ok
    started_at = Column(UTCDateTime, nullable=False)
    finished_at = Column(UTCDateTime)
    detail = Column(JSON)
    created_at = Column(UTCDateTime, default=utcnow)

    __table_args__ = (Index("ix_sync_event_time", "event", "started_at"),)
