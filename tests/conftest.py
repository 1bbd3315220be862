from collections.abc import Callable, Iterator

import pytest

from azind.core.models import RawLogEntry
from azind.decoding.catalog import EventCatalog, build_catalog
from azind.decoding.effects import EffectCompiler
from azind.storage.database import Database
from azind.storage.event_logs import EventLogRepository
from azind.storage.points import PointStore

CONTRACT = "0x223c067f8cf28ae173ee5cafea60ca44c335fecb"


def uint_topic(n: int) -> str:
    return "0x" + n.to_bytes(32, "big").hex()


def address_topic(addr: str) -> str:
    return "0x" + "00" * 12 + addr.lower().removeprefix("0x")


def word(n: int) -> bytes:
    return n.to_bytes(32, "big")


@pytest.fixture(scope="session")
def catalog() -> EventCatalog:
    return build_catalog()


@pytest.fixture
def compiler(catalog: EventCatalog) -> EffectCompiler:
    return EffectCompiler(catalog)


@pytest.fixture
def db() -> Iterator[Database]:
    database = Database()
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def logs(db: Database) -> EventLogRepository:
    return EventLogRepository(db)


@pytest.fixture
def points(db: Database) -> PointStore:
    return PointStore(db)


@pytest.fixture
def make_log(catalog: EventCatalog) -> Callable[..., RawLogEntry]:
    """Build a RawLogEntry for a cataloged event name (or a raw 0x topic0)."""

    def _make(
        event: str,
        block_number: int = 1,
        log_index: int = 0,
        *,
        topic1: int | str | None = None,
        topic2: int | str | None = None,
        data: bytes = b"",
    ) -> RawLogEntry:
        topic0 = event if event.startswith("0x") else catalog.topic0(event)
        return RawLogEntry(
            block_number=block_number,
            block_hash=uint_topic(block_number),
            tx_hash=uint_topic(block_number * 1000 + log_index),
            log_index=log_index,
            contract_address=CONTRACT,
            topic0=topic0,
            topic1=uint_topic(topic1) if isinstance(topic1, int) else topic1,
            topic2=uint_topic(topic2) if isinstance(topic2, int) else topic2,
            data=data,
        )

    return _make
