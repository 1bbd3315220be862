"""DuckDB storage for captured event logs and the derived point snapshot.

This package provides:
- Database: connection, schema bootstrap and batch transactions
- EventLogRepository: append-only `event_logs` table
- PointStore: upsert-only `points` table
"""

from azind.storage.database import Database, open_database
from azind.storage.event_logs import EventLogRepository
from azind.storage.points import PointStore

__all__ = [
    "Database",
    "open_database",
    "EventLogRepository",
    "PointStore",
]
