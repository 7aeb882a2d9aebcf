"""Database models — re-exports all models.

Import from here:  from debtwatch.models import Client, ActivityLog, ...
Or from submodules: from debtwatch.models.clients import Client
"""

from .base import Base  # noqa: F401

# Clients, contact history, balance history
from .clients import (  # noqa: F401
    ActivityLog,
    ActivityType,
    Client,
    ClientStatus,
    WeeklySnapshot,
)

# Xero sync bookkeeping
from .sync import SyncLog, SyncMarker  # noqa: F401
