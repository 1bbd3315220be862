from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import List, Protocol, runtime_checkable

from azind.core.models import Effect, RawLogEntry


# ---------------------------------------------------------------------------
# IEventLogRepository
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventLogRepository(Protocol):
    """
    Append-only store of captured contract logs.

    Domain expectations:
    - Entries are only ever appended; the sole mutation is flipping
      `is_processed` from false to true.
    - Unprocessed entries are returned in (block_number, log_index) order.
    """

    def save(self, entry: RawLogEntry) -> None:
        """Append one entry. Raises StorageError if the write fails."""
        ...

    def save_many(self, entries: Iterable[RawLogEntry]) -> int:
        """Append many entries in one transaction; return how many were written."""
        ...

    def count_unprocessed(self) -> int:
        ...

    def fetch_unprocessed(self, limit: int) -> List[RawLogEntry]:
        """
        Return up to `limit` unprocessed entries, ordered by
        (block_number, log_index) ascending.
        """
        ...

    def mark_processed(self, entry: RawLogEntry) -> None:
        ...


# ---------------------------------------------------------------------------
# IPointStore
# ---------------------------------------------------------------------------

@runtime_checkable
class IPointStore(Protocol):
    """
    Sink for compiled effects.

    Domain expectations:
    - Every statement is an upsert keyed by azimuth_number.
    - The store never reads before writing; effects carry final values.
    """

    def apply(self, effect: Effect) -> None:
        ...


# ---------------------------------------------------------------------------
# ITransactionManager
# ---------------------------------------------------------------------------

@runtime_checkable
class ITransactionManager(Protocol):
    """
    Scope for all-or-nothing batches.

    Implementations commit when the block exits normally and roll back (then
    re-raise) when it exits with an exception.
    """

    def transaction(self) -> AbstractContextManager[None]:
        ...
