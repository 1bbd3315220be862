from __future__ import annotations

import logging
from collections.abc import Iterable

from azind.core.models import RawLogEntry
from azind.storage import sql_queries
from azind.storage.database import Database

logger = logging.getLogger(__name__)


class EventLogRepository:
    """Append-only `event_logs` table.

    Rows are never modified except for `is_processed`, which only ever goes
    from false to true.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def save(self, entry: RawLogEntry) -> None:
        """Append one entry. A duplicate (block_number, log_index) raises StorageError."""
        logger.debug("saving log %r", entry)
        self.db.execute(sql_queries.INSERT_EVENT_LOG_QUERY, entry.to_row())

    def save_many(self, entries: Iterable[RawLogEntry]) -> int:
        """Append many entries atomically."""
        n = 0
        with self.db.transaction():
            for entry in entries:
                self.save(entry)
                n += 1
        logger.info("saved %d event logs", n)
        return n

    def count_unprocessed(self) -> int:
        return int(self.db.scalar(sql_queries.COUNT_UNPROCESSED_QUERY))

    def fetch_unprocessed(self, limit: int) -> list[RawLogEntry]:
        """Oldest-first unprocessed entries, at most `limit`."""
        rows = self.db.fetchall(sql_queries.FETCH_UNPROCESSED_QUERY, [limit])
        return [
            RawLogEntry(
                block_number=int(r[0]),
                block_hash=r[1],
                tx_hash=r[2],
                log_index=int(r[3]),
                contract_address=r[4],
                topic0=r[5],
                topic1=r[6],
                topic2=r[7],
                data=bytes(r[8]),
                is_processed=bool(r[9]),
            )
            for r in rows
        ]

    def mark_processed(self, entry: RawLogEntry) -> None:
        self.db.execute(
            sql_queries.MARK_PROCESSED_QUERY,
            {"block_number": entry.block_number, "log_index": entry.log_index},
        )
