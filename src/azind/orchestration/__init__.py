"""Orchestration: run the replay use case against a DuckDB database.

This package provides:
- replay_all: open the configured database and drain it, retrying storage errors
- run_replay: replay over an already-open database
"""

from azind.orchestration.orchestrator import ReplayOutput, replay_all, run_replay

__all__ = [
    "ReplayOutput",
    "replay_all",
    "run_replay",
]
