from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from azind.core.errors import ReplayError
from azind.core.interfaces import IEventLogRepository, IPointStore, ITransactionManager
from azind.core.models import RawLogEntry, ReplayStats
from azind.decoding.effects import EffectCompiler

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


# ---------------------------------------------------------------------------
# Domain configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReplayPlan:
    """Domain-level knobs for the replay loop (no paths, no connection details)."""

    batch_size: int = DEFAULT_BATCH_SIZE


# ---------------------------------------------------------------------------
# Domain service – ReplayService
# ---------------------------------------------------------------------------


class ReplayService:
    """
    Drain unprocessed event logs into the point snapshot.

    Batches are applied strictly one after another, oldest first. Each batch
    runs in one transaction: every effect is applied and every entry is
    marked processed, or nothing from the batch survives.

    It depends only on abstract repositories and a transaction manager, so
    the same loop runs against DuckDB or an in-memory fake.
    """

    def __init__(
        self,
        *,
        logs: IEventLogRepository,
        points: IPointStore,
        tx: ITransactionManager,
        compiler: EffectCompiler,
    ) -> None:
        self._logs = logs
        self._points = points
        self._tx = tx
        self._compiler = compiler

    def run(
        self,
        plan: ReplayPlan = ReplayPlan(),
        *,
        on_batch: Callable[[int], None] | None = None,
    ) -> ReplayStats:
        """
        Apply every unprocessed entry; stop when a fetch returns nothing.

        Parameters
        ----------
        plan : ReplayPlan
            Batch size.
        on_batch : callable, optional
            Called with the number of entries after each committed batch.

        Raises
        ------
        ReplayError
            Located at the failing entry. The failing batch has been rolled
            back; batches committed before it stay committed.
        """
        stats = ReplayStats()
        while True:
            batch = self._logs.fetch_unprocessed(plan.batch_size)
            if not batch:
                break
            batch_stats = self.apply_batch(batch)
            stats.merge(batch_stats)
            logger.info(
                "committed batch of %d logs ending at (%d, %d)",
                len(batch),
                batch[-1].block_number,
                batch[-1].log_index,
            )
            if on_batch is not None:
                on_batch(len(batch))

        logger.info(
            "replay finished: batches=%d entries=%d effects=%d noops=%d",
            stats.batches,
            stats.entries,
            stats.effects_applied,
            stats.noops,
        )
        return stats

    def apply_batch(self, batch: list[RawLogEntry]) -> ReplayStats:
        """Apply one ordered batch inside a single transaction."""
        stats = ReplayStats(batches=1)
        current: RawLogEntry | None = None
        try:
            with self._tx.transaction():
                for current in batch:
                    effect = self._compiler.compile(current)
                    if effect.is_noop:
                        stats.noops += 1
                    else:
                        self._points.apply(effect)
                        stats.effects_applied += 1
                    self._logs.mark_processed(current)
                    stats.entries += 1
                    stats.rows_by_event[effect.event] += 1
                # Commit failures belong to the batch, not to its last entry
                current = None
        except ReplayError as e:
            if current is not None:
                e.at(current.block_number, current.log_index, current.topic0)
            logger.error("replay halted, batch rolled back: %s", e)
            raise
        return stats
