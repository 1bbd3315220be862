import json

import pandas as pd
from click.testing import CliRunner
from eth_utils import to_checksum_address

from azind.cli import cli

from conftest import address_topic, uint_topic

OWNER = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"


def _rpc_log(topic0, block, index, topics=(), data="0x"):
    return {
        "address": "0x223c067f8cf28ae173ee5cafea60ca44c335fecb",
        "topics": [topic0, *topics],
        "data": data,
        "blockNumber": hex(block),
        "blockHash": uint_topic(block),
        "transactionHash": uint_topic(block * 100 + index),
        "logIndex": hex(index),
    }


def _write_jsonl(path, rows):
    path.write_text("".join(json.dumps(r) + "\n" for r in rows))


def test_import_replay_and_show(tmp_path, catalog):
    db = tmp_path / "azimuth.duckdb"
    dump = tmp_path / "logs.jsonl"
    _write_jsonl(
        dump,
        [
            _rpc_log(catalog.topic0("OwnerChanged"), 2, 0, [uint_topic(0x1042), address_topic(OWNER)]),
            _rpc_log(catalog.topic0("Spawned"), 1, 0, [uint_topic(0x42), uint_topic(0x1042)]),
            _rpc_log(catalog.topic0("Activated"), 1, 1, [uint_topic(0x1042)]),
        ],
    )
    runner = CliRunner()

    result = runner.invoke(cli, ["init-db", "--db", str(db)])
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, ["import-logs", "--db", str(db), str(dump)])
    assert result.exit_code == 0, result.output
    assert "imported" in result.output

    result = runner.invoke(cli, ["replay", "--db", str(db), "--batch-size", "2"])
    assert result.exit_code == 0, result.output
    assert "entries=3" in result.output

    result = runner.invoke(cli, ["replay", "--db", str(db)])
    assert result.exit_code == 0, result.output
    assert "nothing to replay" in result.output

    result = runner.invoke(cli, ["point", "--db", str(db), "0x1042"])
    assert result.exit_code == 0, result.output
    assert "point 4162 (star)" in result.output
    assert to_checksum_address(OWNER) in result.output

    out = tmp_path / "export" / "points.parquet"
    result = runner.invoke(cli, ["export-points", "--db", str(db), str(out)])
    assert result.exit_code == 0, result.output
    df = pd.read_parquet(out)
    assert list(df["azimuth_number"]) == [0x1042]
    assert df["sponsor"][0] == 0x42
    assert df["owner_address"][0] == OWNER


def test_replay_reports_failing_entry(tmp_path):
    db = tmp_path / "azimuth.duckdb"
    dump = tmp_path / "logs.jsonl"
    _write_jsonl(dump, [_rpc_log("0x" + "99" * 32, 7, 3, [uint_topic(1)])])
    runner = CliRunner()

    assert runner.invoke(cli, ["import-logs", "--db", str(db), str(dump)]).exit_code == 0
    result = runner.invoke(cli, ["replay", "--db", str(db)])

    assert result.exit_code == 1
    assert "replay halted" in result.output
    assert "block_number=7" in result.output
    assert "log_index=3" in result.output


def test_import_rejects_bad_dump(tmp_path):
    dump = tmp_path / "logs.jsonl"
    _write_jsonl(dump, [{"address": "0x00"}])
    result = CliRunner().invoke(cli, ["import-logs", "--db", str(tmp_path / "a.duckdb"), str(dump)])
    assert result.exit_code == 1


def test_point_not_found(tmp_path):
    result = CliRunner().invoke(cli, ["point", "--db", str(tmp_path / "a.duckdb"), "66"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_bad_batch_size(tmp_path):
    result = CliRunner().invoke(cli, ["replay", "--db", str(tmp_path / "a.duckdb"), "--batch-size", "0"])
    assert result.exit_code == 2


def test_catalog_lists_events():
    result = CliRunner().invoke(cli, ["catalog"])
    assert result.exit_code == 0
    assert "Activated" in result.output


def test_point_reports_unreadable_database(tmp_path):
    db = tmp_path / "garbage.duckdb"
    db.write_bytes(b"this is not a duckdb file" * 200)

    result = CliRunner().invoke(cli, ["point", "--db", str(db), "0x42"])

    assert result.exit_code == 1
    assert "cannot open database" in result.output
    assert isinstance(result.exception, SystemExit)


def test_export_reports_unreadable_database(tmp_path):
    db = tmp_path / "garbage.duckdb"
    db.write_bytes(b"this is not a duckdb file" * 200)
    out = tmp_path / "points.parquet"

    result = CliRunner().invoke(cli, ["export-points", "--db", str(db), str(out)])

    assert result.exit_code == 1
    assert "cannot open database" in result.output
    assert not out.exists()
