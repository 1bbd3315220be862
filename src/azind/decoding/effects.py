"""Effect compiler: raw log entry -> upsert against the point snapshot.

Each cataloged event has exactly one rule in `EFFECT_RULES`. A rule is a pure
function of the entry; everything it writes comes from the entry's own
topics and data, never from the current state of the store.

Adding an event type means adding its signature to the catalog and one rule
here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from azind.core.errors import ReplayError, UnknownEventError
from azind.core.models import Effect, RawLogEntry, original_sponsor
from azind.decoding.catalog import EventCatalog
from azind.decoding.utils import (
    require_words,
    topic_to_address,
    topic_to_azimuth_number,
    topic_to_uint32,
    word_at,
    word_to_hex,
    word_to_uint32,
)
from azind.storage import sql_queries

logger = logging.getLogger(__name__)

EffectRule = Callable[[RawLogEntry], Effect]


# ---------- rules ----------


def _point(entry: RawLogEntry) -> int:
    return topic_to_azimuth_number(entry.topic1, what="topic1")


def _spawned(entry: RawLogEntry) -> Effect:
    # topic1 is the prefix (parent); the new identity is in topic2
    child = topic_to_azimuth_number(entry.topic2, what="topic2")
    return Effect("Spawned", sql_queries.INSERT_POINT_QUERY, child)


def _activated(entry: RawLogEntry) -> Effect:
    n = _point(entry)
    return Effect(
        "Activated",
        sql_queries.UPSERT_ACTIVATED_QUERY,
        n,
        {"is_active": True, "has_sponsor": True, "sponsor": original_sponsor(n)},
    )


def _address_rule(event: str, statement: str, column: str) -> EffectRule:
    """Rule for the `<event>(uint32 indexed point, address indexed ...)` family."""

    def rule(entry: RawLogEntry) -> Effect:
        return Effect(
            event,
            statement,
            _point(entry),
            {column: topic_to_address(entry.topic2, what="topic2")},
        )

    return rule


def _escape_requested(entry: RawLogEntry) -> Effect:
    return Effect(
        "EscapeRequested",
        sql_queries.UPSERT_ESCAPE_QUERY,
        _point(entry),
        {
            "is_escape_requested": True,
            "escape_requested_to": topic_to_azimuth_number(entry.topic2, what="topic2"),
        },
    )


def _escape_canceled(entry: RawLogEntry) -> Effect:
    return Effect(
        "EscapeCanceled",
        sql_queries.UPSERT_ESCAPE_QUERY,
        _point(entry),
        {"is_escape_requested": False, "escape_requested_to": 0},
    )


def _escape_accepted(entry: RawLogEntry) -> Effect:
    return Effect(
        "EscapeAccepted",
        sql_queries.UPSERT_ESCAPE_ACCEPTED_QUERY,
        _point(entry),
        {
            "is_escape_requested": False,
            "escape_requested_to": 0,
            "has_sponsor": True,
            "sponsor": topic_to_azimuth_number(entry.topic2, what="topic2"),
        },
    )


def _lost_sponsor(entry: RawLogEntry) -> Effect:
    return Effect(
        "LostSponsor",
        sql_queries.UPSERT_SPONSORSHIP_QUERY,
        _point(entry),
        {"has_sponsor": False},
    )


def _broke_continuity(entry: RawLogEntry) -> Effect:
    return Effect(
        "BrokeContinuity",
        sql_queries.UPSERT_RIFT_QUERY,
        _point(entry),
        {"rift": topic_to_uint32(entry.topic2, what="topic2")},
    )


def _changed_keys(entry: RawLogEntry) -> Effect:
    # Four words: encryption key, auth key, suite version, key revision (life)
    require_words(entry.data, 4, event="ChangedKeys")
    data = entry.data
    return Effect(
        "ChangedKeys",
        sql_queries.UPSERT_KEYS_QUERY,
        _point(entry),
        {
            "encryption_key": word_to_hex(word_at(data, 0)),
            "auth_key": word_to_hex(word_at(data, 1)),
            "crypto_suite_version": word_to_uint32(word_at(data, 2)),
            "life": word_to_uint32(word_at(data, 3)),
        },
    )


def _changed_dns(entry: RawLogEntry) -> Effect:
    # No DNS columns in the snapshot yet
    return Effect.noop("ChangedDns")


EFFECT_RULES: Mapping[str, EffectRule] = {
    "Spawned": _spawned,
    "Activated": _activated,
    "OwnerChanged": _address_rule("OwnerChanged", sql_queries.UPSERT_OWNER_QUERY, "owner_address"),
    "ChangedSpawnProxy": _address_rule(
        "ChangedSpawnProxy", sql_queries.UPSERT_SPAWN_PROXY_QUERY, "spawn_address"
    ),
    "ChangedTransferProxy": _address_rule(
        "ChangedTransferProxy", sql_queries.UPSERT_TRANSFER_PROXY_QUERY, "transfer_address"
    ),
    "ChangedManagementProxy": _address_rule(
        "ChangedManagementProxy", sql_queries.UPSERT_MANAGEMENT_PROXY_QUERY, "management_address"
    ),
    "ChangedVotingProxy": _address_rule(
        "ChangedVotingProxy", sql_queries.UPSERT_VOTING_PROXY_QUERY, "voting_address"
    ),
    "EscapeRequested": _escape_requested,
    "EscapeCanceled": _escape_canceled,
    "EscapeAccepted": _escape_accepted,
    "LostSponsor": _lost_sponsor,
    "BrokeContinuity": _broke_continuity,
    "ChangedKeys": _changed_keys,
    "ChangedDns": _changed_dns,
}


# ---------- compiler ----------


class EffectCompiler:
    """Dispatch a log entry to its rule by exact topic0 match."""

    def __init__(
        self,
        catalog: EventCatalog,
        rules: Mapping[str, EffectRule] = EFFECT_RULES,
    ) -> None:
        missing = [name for name in catalog.names if name not in rules]
        if missing:
            raise ValueError(f"No effect rule for cataloged events: {', '.join(missing)}")
        self._catalog = catalog
        self._rules: dict[str, EffectRule] = {
            catalog.topic0(name): rules[name] for name in catalog.names
        }

    @property
    def catalog(self) -> EventCatalog:
        return self._catalog

    def compile(self, entry: RawLogEntry) -> Effect:
        """Return the entry's effect.

        Raises
        ------
        UnknownEventError
            topic0 is not cataloged.
        MalformedPayloadError
            topics or data do not match the rule's layout.
        """
        rule = self._rules.get(entry.topic0.lower())
        try:
            if rule is None:
                raise UnknownEventError(f"unknown event fingerprint {entry.topic0}")
            effect = rule(entry)
        except ReplayError as e:
            raise e.at(entry.block_number, entry.log_index, entry.topic0)
        logger.debug(
            "compiled %s for point %s at (%d, %d)",
            effect.event,
            effect.azimuth_number,
            entry.block_number,
            entry.log_index,
        )
        return effect


def compile_effect(entry: RawLogEntry, *, catalog: EventCatalog) -> Effect:
    """One-shot convenience wrapper around `EffectCompiler`."""
    return EffectCompiler(catalog).compile(entry)
