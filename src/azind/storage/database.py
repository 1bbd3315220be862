"""DuckDB connection management, schema bootstrap and batch transactions."""

from __future__ import annotations

import logging
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb

from azind.core.errors import StorageError
from azind.storage import sql_queries

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class Database:
    """A single DuckDB connection shared by the event-log and point repositories.

    Parameters
    ----------
    path : str | Path
        Database file, or ":memory:".
    threads : int
        DuckDB worker threads.
    memory_limit : str
        DuckDB memory cap, e.g. "2GB".
    """

    def __init__(self, path: str | Path = MEMORY, *, threads: int = 4, memory_limit: str = "2GB") -> None:
        self.path = str(path)
        if self.path != MEMORY:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self.con = duckdb.connect(self.path)
            self.con.execute(f"PRAGMA threads={int(threads)}")
            self.con.execute(f"PRAGMA memory_limit='{memory_limit}'")
        except duckdb.Error as e:
            raise StorageError(f"cannot open database {self.path}: {e}") from e
        self._in_transaction = False

    # ---- lifecycle ----

    def init_schema(self) -> None:
        """Create `event_logs` and `points` if they do not exist."""
        for ddl in sql_queries.SCHEMA:
            self.execute(ddl)

    def close(self) -> None:
        self.con.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---- statements ----

    def execute(self, sql: str, params: Sequence[Any] | dict[str, Any] | None = None) -> duckdb.DuckDBPyConnection:
        """Run one statement, wrapping driver failures as StorageError."""
        try:
            if params is None:
                return self.con.execute(sql)
            return self.con.execute(sql, params)
        except duckdb.Error as e:
            raise StorageError(str(e)) from e

    def fetchall(self, sql: str, params: Sequence[Any] | None = None) -> list[tuple[Any, ...]]:
        return self.execute(sql, params).fetchall()

    def scalar(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        row = self.execute(sql, params).fetchone()
        return row[0] if row else None

    # ---- transactions ----

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Commit on normal exit; roll back and re-raise on any exception.

        Transactions do not nest.
        """
        if self._in_transaction:
            raise StorageError("transaction already open")
        try:
            self.con.begin()
        except duckdb.Error as e:
            raise StorageError(f"begin failed: {e}") from e
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self._rollback()
            raise
        else:
            try:
                self.con.commit()
            except duckdb.Error as e:
                # DuckDB aborts the transaction itself when a commit fails
                raise StorageError(f"commit failed: {e}") from e
        finally:
            self._in_transaction = False

    def _rollback(self) -> None:
        try:
            self.con.rollback()
        except duckdb.Error as e:
            raise StorageError(f"rollback failed: {e}") from e
        logger.debug("rolled back transaction on %s", self.path)


@contextmanager
def open_database(
    path: str | Path = MEMORY,
    *,
    threads: int = 4,
    memory_limit: str = "2GB",
) -> Generator[Database, None, None]:
    """Context manager yielding a schema-initialized database."""
    db = Database(path, threads=threads, memory_limit=memory_limit)
    try:
        db.init_schema()
        yield db
    finally:
        db.close()
