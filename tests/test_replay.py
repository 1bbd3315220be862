import itertools
from unittest.mock import MagicMock

import pytest

from azind.core.errors import MalformedPayloadError, StorageError, UnknownEventError
from azind.core.use_cases.replay import ReplayPlan, ReplayService
from azind.storage.database import Database
from azind.storage.event_logs import EventLogRepository
from azind.storage.points import PointStore

from conftest import address_topic, word

ALICE = "0x00000000000000000000000000000000000a11ce"
BOB = "0x0000000000000000000000000000000000000b0b"


def _service(db, compiler, points=None):
    return ReplayService(
        logs=EventLogRepository(db),
        points=points or PointStore(db),
        tx=db,
        compiler=compiler,
    )


def _fresh_db():
    db = Database()
    db.init_schema()
    return db


class FailingPointStore(PointStore):
    """Raises a storage error on the n-th applied effect."""

    def __init__(self, db, fail_on):
        super().__init__(db)
        self.fail_on = fail_on
        self.calls = 0

    def apply(self, effect):
        self.calls += 1
        if self.calls == self.fail_on:
            raise StorageError("disk full")
        super().apply(effect)


def test_empty_store_terminates_without_touching_points(compiler):
    logs = MagicMock()
    logs.fetch_unprocessed.return_value = []
    points = MagicMock()
    tx = MagicMock()

    stats = ReplayService(logs=logs, points=points, tx=tx, compiler=compiler).run()

    assert stats.batches == 0 and stats.entries == 0
    logs.fetch_unprocessed.assert_called_once_with(500)
    points.apply.assert_not_called()
    tx.transaction.assert_not_called()
    logs.mark_processed.assert_not_called()


def test_full_lifecycle(db, logs, points, compiler, make_log):
    keys = word(0xE) + word(0xA) + word(1) + word(1)
    logs.save_many(
        [
            make_log("Spawned", 10, 0, topic1=0x42, topic2=0x10042),
            make_log("Activated", 10, 1, topic1=0x10042),
            make_log("OwnerChanged", 10, 2, topic1=0x10042, topic2=address_topic(ALICE)),
            make_log("ChangedKeys", 11, 0, topic1=0x10042, data=keys),
            make_log("EscapeRequested", 12, 0, topic1=0x10042, topic2=0x43),
            make_log("EscapeAccepted", 13, 0, topic1=0x10042, topic2=0x43),
            make_log("ChangedDns", 14, 0),
            make_log("OwnerChanged", 15, 0, topic1=0x10042, topic2=address_topic(BOB)),
        ]
    )

    stats = _service(db, compiler).run()

    assert stats.batches == 1
    assert stats.entries == 8
    assert stats.effects_applied == 7
    assert stats.noops == 1
    assert stats.rows_by_event["OwnerChanged"] == 2
    assert logs.count_unprocessed() == 0

    p = points.get(0x10042)
    assert p.is_active
    assert p.has_sponsor and p.sponsor == 0x43
    assert not p.is_escape_requested and p.escape_requested_to == 0
    assert p.owner_address == BOB
    assert p.life == 1 and p.crypto_suite_version == 1
    assert points.count() == 1


def test_escape_request_then_cancel_clears_request(db, logs, points, compiler, make_log):
    logs.save(make_log("EscapeRequested", 1, 0, topic1=0x10100, topic2=0x200))
    logs.save(make_log("EscapeCanceled", 2, 0, topic1=0x10100, topic2=0x200))

    _service(db, compiler).run()

    p = points.get(0x10100)
    assert not p.is_escape_requested
    assert p.escape_requested_to == 0


def test_cancel_then_request_leaves_request_open(db, logs, points, compiler, make_log):
    logs.save(make_log("EscapeCanceled", 1, 0, topic1=0x10100, topic2=0x200))
    logs.save(make_log("EscapeRequested", 2, 0, topic1=0x10100, topic2=0x200))

    _service(db, compiler).run()

    p = points.get(0x10100)
    assert p.is_escape_requested
    assert p.escape_requested_to == 0x200


def test_storage_order_does_not_override_causal_order(db, logs, points, compiler, make_log):
    # Saved out of order; applied by (block_number, log_index)
    logs.save(make_log("OwnerChanged", 7, 1, topic1=0x42, topic2=address_topic(BOB)))
    logs.save(make_log("OwnerChanged", 7, 0, topic1=0x42, topic2=address_topic(ALICE)))

    _service(db, compiler).run(ReplayPlan(batch_size=1))

    assert points.get(0x42).owner_address == BOB


def test_disjoint_identities_commute(compiler, make_log):
    a = [
        make_log("Activated", 1, 0, topic1=0x42),
        make_log("OwnerChanged", 2, 0, topic1=0x42, topic2=address_topic(ALICE)),
        make_log("BrokeContinuity", 3, 0, topic1=0x42, topic2=4),
    ]
    b = [
        make_log("Activated", 1, 1, topic1=0x20005),
        make_log("EscapeRequested", 2, 1, topic1=0x20005, topic2=0x6),
        make_log("ChangedSpawnProxy", 3, 1, topic1=0x20005, topic2=address_topic(BOB)),
    ]

    snapshots = []
    for order in (a + b, b + a, list(itertools.chain(*zip(b, a)))):
        db = _fresh_db()
        # Renumber so each interleaving is also the replay order
        repo = EventLogRepository(db)
        for i, e in enumerate(order):
            repo.save(make_log(e.topic0, 100 + i, 0, topic1=e.topic1, topic2=e.topic2, data=e.data))
        _service(db, compiler).run()
        snapshots.append(PointStore(db).all())
        db.close()

    assert snapshots[0] == snapshots[1] == snapshots[2]
    assert len(snapshots[0]) == 2


def test_replaying_again_is_idempotent(db, logs, points, compiler, make_log):
    logs.save_many(
        [
            make_log("Spawned", 1, 0, topic1=0x42, topic2=0x10042),
            make_log("Activated", 1, 1, topic1=0x10042),
            make_log("LostSponsor", 2, 0, topic1=0x10042, topic2=0x42),
            make_log("ChangedManagementProxy", 3, 0, topic1=0x10042, topic2=address_topic(ALICE)),
        ]
    )
    _service(db, compiler).run()
    once = points.all()

    # Simulate a crash after effects were applied but before flags were committed
    db.execute("UPDATE event_logs SET is_processed = false")
    _service(db, compiler).run()

    assert points.all() == once
    assert not once[0].has_sponsor


def test_batches_are_sequential(db, logs, compiler, make_log):
    logs.save_many([make_log("Activated", b, 0, topic1=0x100 + b) for b in range(5)])
    seen = []

    stats = _service(db, compiler).run(ReplayPlan(batch_size=2), on_batch=seen.append)

    assert seen == [2, 2, 1]
    assert stats.batches == 3
    assert stats.entries == 5


def test_storage_failure_rolls_back_whole_batch(db, logs, points, compiler, make_log):
    logs.save_many([make_log("Activated", i, 0, topic1=0x100 + i) for i in range(500)])
    failing = FailingPointStore(db, fail_on=250)

    with pytest.raises(StorageError) as exc:
        _service(db, compiler, points=failing).run(ReplayPlan(batch_size=500))

    assert (exc.value.block_number, exc.value.log_index) == (249, 0)
    assert logs.count_unprocessed() == 500
    assert points.count() == 0

    # A retry of the same batch succeeds once the store recovers
    stats = _service(db, compiler).run(ReplayPlan(batch_size=500))
    assert stats.entries == 500
    assert points.count() == 500


def test_unknown_event_halts_and_keeps_earlier_batches(db, logs, points, compiler, make_log):
    logs.save_many(
        [
            make_log("Activated", 1, 0, topic1=0x42),
            make_log("Activated", 2, 0, topic1=0x43),
            make_log("Activated", 3, 0, topic1=0x44),
            make_log("0x" + "ee" * 32, 4, 0, topic1=0x45),
        ]
    )

    with pytest.raises(UnknownEventError) as exc:
        _service(db, compiler).run(ReplayPlan(batch_size=2))

    assert (exc.value.block_number, exc.value.log_index, exc.value.topic0) == (4, 0, "0x" + "ee" * 32)
    assert [e.key for e in logs.fetch_unprocessed(10)] == [(3, 0), (4, 0)]
    assert points.get(0x42) is not None
    assert points.get(0x44) is None


def test_malformed_payload_halts(db, logs, points, compiler, make_log):
    logs.save_many(
        [
            make_log("Activated", 1, 0, topic1=0x42),
            make_log("ChangedKeys", 1, 1, topic1=0x42, data=b"\x00" * 100),
        ]
    )

    with pytest.raises(MalformedPayloadError) as exc:
        _service(db, compiler).run()

    assert (exc.value.block_number, exc.value.log_index) == (1, 1)
    assert logs.count_unprocessed() == 2
    assert points.count() == 0

    # Deterministic: a second run fails the same way
    with pytest.raises(MalformedPayloadError):
        _service(db, compiler).run()
