from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ReplayConfig:
    """Configuration for draining the event log into the point snapshot."""

    db_path: Path = Path("./data/azimuth.duckdb")
    batch_size: int = 500
    # Storage failures are retried per run; decode failures never are
    max_storage_retries: int = 3
    retry_backoff_s: float = 0.8
    threads: int = 4
    memory_limit: str = "2GB"

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.max_storage_retries < 1:
            raise ValueError("max_storage_retries must be >= 1")
