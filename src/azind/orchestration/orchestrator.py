"""Replay orchestrator: wire DuckDB storage into the replay use case.

This module provides two layers:

1) `run_replay(...)`:
   - Pure application-layer call over already-built repositories.
   - Does NOT open or close connections.

2) `replay_all(config)` (convenience wrapper):
   - Opens the DuckDB database named by the config, builds the catalog once,
     runs the replay, and retries storage failures at batch granularity.
   - Decode failures are never retried: the same batch would fail the same way.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from azind.core.config import ReplayConfig
from azind.core.errors import StorageError
from azind.core.models import ReplayStats
from azind.core.use_cases.replay import ReplayPlan, ReplayService
from azind.decoding.catalog import EventCatalog, build_catalog
from azind.decoding.effects import EffectCompiler
from azind.storage.database import Database, open_database
from azind.storage.event_logs import EventLogRepository
from azind.storage.points import PointStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output DTO
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class ReplayOutput:
    """High-level output of the orchestrator."""
    stats: ReplayStats
    attempts: int
    db_path: Path


# ---------------------------------------------------------------------------
# 1) Pure application use case
# ---------------------------------------------------------------------------


def run_replay(
    db: Database,
    *,
    catalog: EventCatalog,
    batch_size: int,
    on_batch: Callable[[int], None] | None = None,
) -> ReplayStats:
    """Replay every unprocessed log in `db` and return the run counters."""
    service = ReplayService(
        logs=EventLogRepository(db),
        points=PointStore(db),
        tx=db,
        compiler=EffectCompiler(catalog),
    )
    return service.run(ReplayPlan(batch_size=batch_size), on_batch=on_batch)


# ---------------------------------------------------------------------------
# 2) Convenience wrapper
# ---------------------------------------------------------------------------


def replay_all(
    config: ReplayConfig,
    *,
    catalog: EventCatalog | None = None,
    on_batch: Callable[[int], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ReplayOutput:
    """Drain the configured database, retrying storage errors.

    Batches committed by a failed attempt stay committed, so a retry resumes
    at the batch that failed. The returned stats count the final attempt.
    """
    if catalog is None:
        catalog = build_catalog()
    tries = 0
    while True:
        tries += 1
        try:
            with open_database(
                config.db_path,
                threads=config.threads,
                memory_limit=config.memory_limit,
            ) as db:
                stats = run_replay(
                    db,
                    catalog=catalog,
                    batch_size=config.batch_size,
                    on_batch=on_batch,
                )
            break
        except StorageError as e:
            if tries >= config.max_storage_retries:
                logger.error("giving up after %d attempts: %s", tries, e)
                raise
            logger.warning("storage error on attempt %d, retrying: %s", tries, e)
            sleep(config.retry_backoff_s * tries)

    return ReplayOutput(stats=stats, attempts=tries, db_path=Path(config.db_path))
