"""Core data models for the point snapshot.

This module defines:
- `RawLogEntry`: one captured contract log, as stored in `event_logs`.
- `Point`: the derived row for one identity number, as stored in `points`.
- `Effect`: the compiled mutation for one log entry (possibly a no-op).
- `ReplayStats`: counters reported by a replay run.

Design notes
------------
- Hashes, topics, addresses and 32-byte keys are lowercase 0x-hex strings.
- `data` is kept as raw bytes; it is packed as 32-byte ABI words.
- `(block_number, log_index)` is both the ordering key and the identity of a
  log entry.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, fields
from typing import Any, Literal

ZERO_ADDRESS = "0x" + "00" * 20
ZERO_WORD = "0x" + "00" * 32

GALAXY_LIMIT = 0x100
STAR_LIMIT = 0x10000

Tier = Literal["galaxy", "star", "planet"]


def point_tier(number: int) -> Tier:
    """Classify an identity number by magnitude."""
    if number < GALAXY_LIMIT:
        return "galaxy"
    if number < STAR_LIMIT:
        return "star"
    return "planet"


def original_sponsor(number: int) -> int:
    """Sponsor assigned on first activation: a galaxy for stars, a star for planets."""
    if number < STAR_LIMIT:
        return number % GALAXY_LIMIT
    return number % STAR_LIMIT


# === Raw log ===


@dataclass(slots=True, frozen=True)
class RawLogEntry:
    """A captured contract log. Immutable apart from `is_processed` in storage."""

    block_number: int
    block_hash: str
    tx_hash: str
    log_index: int
    contract_address: str
    topic0: str
    topic1: str | None = None
    topic2: str | None = None
    data: bytes = b""
    is_processed: bool = False

    @property
    def key(self) -> tuple[int, int]:
        """Total order and identity of the entry."""
        return (self.block_number, self.log_index)

    def to_row(self) -> dict[str, Any]:
        """Named parameters for the `event_logs` insert."""
        return {
            "block_number": self.block_number,
            "block_hash": self.block_hash,
            "tx_hash": self.tx_hash,
            "log_index": self.log_index,
            "contract_address": self.contract_address,
            "topic0": self.topic0,
            "topic1": self.topic1,
            "topic2": self.topic2,
            "data": self.data,
            "is_processed": self.is_processed,
        }


# === Derived point ===


@dataclass(slots=True)
class Point:
    """Current ownership, delegation, sponsorship and key state of one identity."""

    azimuth_number: int
    owner_address: str = ZERO_ADDRESS
    spawn_address: str = ZERO_ADDRESS
    transfer_address: str = ZERO_ADDRESS
    management_address: str = ZERO_ADDRESS
    voting_address: str = ZERO_ADDRESS
    is_active: bool = False
    has_sponsor: bool = False
    sponsor: int = 0
    is_escape_requested: bool = False
    escape_requested_to: int = 0
    rift: int = 0
    encryption_key: str = ZERO_WORD
    auth_key: str = ZERO_WORD
    crypto_suite_version: int = 0
    life: int = 0

    @property
    def tier(self) -> Tier:
        return point_tier(self.azimuth_number)


POINT_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(Point))


# === Compiled effect ===


@dataclass(slots=True, frozen=True)
class Effect:
    """Zero-or-one upsert against `points` for a single log entry.

    A no-op effect has no statement; it is the result for events whose
    decoding is deliberately deferred.
    """

    event: str
    statement: str | None = None
    azimuth_number: int | None = None
    values: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def noop(event: str) -> Effect:
        return Effect(event=event)

    @property
    def is_noop(self) -> bool:
        return self.statement is None

    def params(self) -> dict[str, Any]:
        """Named parameters bound to `statement`."""
        return {"azimuth_number": self.azimuth_number, **self.values}


# === Run counters ===


@dataclass(kw_only=True)
class ReplayStats:
    """Counters for committed batches of a replay run."""

    batches: int = 0
    entries: int = 0
    effects_applied: int = 0
    noops: int = 0
    rows_by_event: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def merge(self, other: ReplayStats) -> None:
        self.batches += other.batches
        self.entries += other.entries
        self.effects_applied += other.effects_applied
        self.noops += other.noops
        for name, n in other.rows_by_event.items():
            self.rows_by_event[name] += n
