"""Convert `eth_getLogs` result objects into `RawLogEntry` records.

Accepted inputs are the JSON objects a node returns for `eth_getLogs`
(hex quantities, camelCase keys), either one per line in an NDJSON file or
as rows of a Parquet dump of the same objects.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import BaseModel, field_validator

from azind.core.models import RawLogEntry

# event_logs stores topic0..topic2 only
MAX_TOPICS = 3


def _quantity(value: int | str) -> int:
    """Hex ("0x1a") or decimal quantity -> int."""
    if not isinstance(value, str):
        return int(value)
    s = value.strip().lower()
    return int(s, 16) if s.startswith("0x") else int(s)


class RpcLog(BaseModel):
    address: str
    topics: Sequence[str]
    data: str = "0x"
    blockNumber: int | str
    blockHash: str
    transactionHash: str
    logIndex: int | str
    removed: bool = False

    @field_validator("topics")
    @classmethod
    def lowercase_topics(cls, v: Sequence[str]) -> Sequence[str]:
        if not v:
            raise ValueError("log has no topics (anonymous events are not supported)")
        if len(v) > MAX_TOPICS:
            raise ValueError(f"log has {len(v)} topics, at most {MAX_TOPICS} can be stored")
        return [t.lower() for t in v]


def raw_log_from_rpc(rl: Mapping[str, Any]) -> RawLogEntry:
    """Validate one `eth_getLogs` object and map it to a RawLogEntry."""
    log = RpcLog.model_validate(dict(rl))
    if log.removed:
        raise ValueError(
            f"log {log.transactionHash}:{log.logIndex} was removed by a reorg; only canonical logs can be stored"
        )
    data_hex = log.data[2:] if log.data.lower().startswith("0x") else log.data
    topics = list(log.topics) + [None, None]
    return RawLogEntry(
        block_number=_quantity(log.blockNumber),
        block_hash=log.blockHash.lower(),
        tx_hash=log.transactionHash.lower(),
        log_index=_quantity(log.logIndex),
        contract_address=log.address.lower(),
        topic0=topics[0],
        topic1=topics[1],
        topic2=topics[2],
        data=bytes.fromhex(data_hex) if data_hex else b"",
    )


def _iter_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                yield json.loads(line)


def _iter_parquet(path: Path) -> Iterator[dict[str, Any]]:
    df = pd.read_parquet(path, engine="pyarrow")
    for rec in df.to_dict("records"):
        # list columns come back as numpy arrays, scalars as numpy scalars
        topics = [str(t) for t in rec.pop("topics")]
        out = {k: (v.item() if hasattr(v, "item") else v) for k, v in rec.items()}
        out["topics"] = topics
        yield out


def load_rpc_logs(path: str | Path) -> list[RawLogEntry]:
    """Read an NDJSON (`.jsonl`/`.ndjson`) or `.parquet` dump of RPC logs."""
    p = Path(path)
    if p.suffix == ".parquet":
        records = _iter_parquet(p)
    elif p.suffix in (".jsonl", ".ndjson"):
        records = _iter_jsonl(p)
    else:
        raise ValueError(f"Unsupported log dump format: {p.name}")
    return [raw_log_from_rpc(rec) for rec in records]
