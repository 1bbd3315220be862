"""Point snapshot store.

Writes go through `apply(effect)` only; every effect statement is an upsert
keyed by `azimuth_number`. Reads return `Point` objects or a pandas
DataFrame for export.
"""

from __future__ import annotations

import logging

import pandas as pd

from azind.core.models import POINT_COLUMNS, Effect, Point
from azind.storage import sql_queries
from azind.storage.database import Database

logger = logging.getLogger(__name__)


def _row_to_point(row: tuple) -> Point:
    values = dict(zip(POINT_COLUMNS, row))
    for flag in ("is_active", "has_sponsor", "is_escape_requested"):
        values[flag] = bool(values[flag])
    return Point(**values)


class PointStore:
    """DuckDB-backed `points` table."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def apply(self, effect: Effect) -> None:
        """Execute an effect's upsert. No-op effects are ignored."""
        if effect.is_noop:
            return
        self.db.execute(effect.statement, effect.params())

    def get(self, azimuth_number: int) -> Point | None:
        rows = self.db.fetchall(sql_queries.FETCH_POINT_QUERY, [azimuth_number])
        return _row_to_point(rows[0]) if rows else None

    def all(self) -> list[Point]:
        return [_row_to_point(r) for r in self.db.fetchall(sql_queries.FETCH_POINTS_QUERY)]

    def count(self) -> int:
        return int(self.db.scalar(sql_queries.COUNT_POINTS_QUERY))

    def to_frame(self) -> pd.DataFrame:
        """All points ordered by number, one column per field."""
        return self.db.execute(sql_queries.FETCH_POINTS_QUERY).df()
