from __future__ import annotations

from .core.config import ReplayConfig
from .core.errors import DecodeError, MalformedPayloadError, ReplayError, StorageError, UnknownEventError
from .core.models import Effect, Point, RawLogEntry, ReplayStats
from .decoding.catalog import EventCatalog, build_catalog
from .decoding.effects import EffectCompiler, compile_effect
from .orchestration.orchestrator import replay_all
from .storage.database import Database, open_database
from .storage.event_logs import EventLogRepository
from .storage.points import PointStore

__all__ = [
    "ReplayConfig",
    "DecodeError",
    "MalformedPayloadError",
    "ReplayError",
    "StorageError",
    "UnknownEventError",
    "Effect",
    "Point",
    "RawLogEntry",
    "ReplayStats",
    "EventCatalog",
    "build_catalog",
    "EffectCompiler",
    "compile_effect",
    "replay_all",
    "Database",
    "open_database",
    "EventLogRepository",
    "PointStore",
]
