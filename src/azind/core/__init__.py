"""Core data models, configuration, errors and interfaces.

This package provides:
- Data models (RawLogEntry, Point, Effect, ReplayStats)
- Configuration (ReplayConfig)
- Error taxonomy (ReplayError and subclasses)
"""

from azind.core.config import ReplayConfig
from azind.core.errors import (
    DecodeError,
    MalformedPayloadError,
    ReplayError,
    StorageError,
    UnknownEventError,
)
from azind.core.models import Effect, Point, RawLogEntry, ReplayStats

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
]
