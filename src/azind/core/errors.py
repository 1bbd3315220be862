"""Error taxonomy for decoding and replaying event logs.

- `DecodeError` and its subclasses mean the catalog and the contract disagree.
  They are deterministic: retrying the same batch fails the same way.
- `StorageError` wraps failures of the underlying database. A batch that
  failed this way has been rolled back and is safe to re-attempt.
"""

from __future__ import annotations


class ReplayError(Exception):
    """Base error; optionally located at the log entry that triggered it."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        block_number: int | None = None,
        log_index: int | None = None,
        topic0: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.block_number = block_number
        self.log_index = log_index
        self.topic0 = topic0

    @property
    def located(self) -> bool:
        return self.block_number is not None and self.log_index is not None

    def at(self, block_number: int, log_index: int, topic0: str | None) -> ReplayError:
        """Attach the failing entry's location (first location wins) and return self."""
        if not self.located:
            self.block_number = block_number
            self.log_index = log_index
            self.topic0 = topic0
        return self

    def __str__(self) -> str:
        if not self.located:
            return self.message
        return (
            f"{self.message} "
            f"(block_number={self.block_number}, log_index={self.log_index}, topic0={self.topic0})"
        )


class DecodeError(ReplayError):
    """A log entry could not be turned into an effect."""


class UnknownEventError(DecodeError):
    """topic0 matches no cataloged event fingerprint."""


class MalformedPayloadError(DecodeError):
    """Topics or data do not have the layout the event's rule requires."""


class StorageError(ReplayError):
    """The database rejected a read, write, commit or rollback."""

    retryable = True
