"""
sql_queries.py
--------------

Centralized SQL for the DuckDB event-log and point snapshot tables.

Point mutations are all upserts keyed by `azimuth_number`: insert the row if
absent, otherwise update only the columns the statement names. Every other
column keeps its last written value.
"""

from azind.core.models import POINT_COLUMNS, ZERO_ADDRESS, ZERO_WORD

# =====================================================================
# SCHEMA
# =====================================================================

CREATE_EVENT_LOGS_TABLE = """
CREATE TABLE IF NOT EXISTS event_logs (
    block_number      UBIGINT  NOT NULL,
    block_hash        VARCHAR  NOT NULL,
    tx_hash           VARCHAR  NOT NULL,
    log_index         UINTEGER NOT NULL,
    contract_address  VARCHAR  NOT NULL,
    topic0            VARCHAR  NOT NULL,
    topic1            VARCHAR,
    topic2            VARCHAR,
    data              BLOB     NOT NULL,
    is_processed      BOOLEAN  NOT NULL DEFAULT false,
    PRIMARY KEY (block_number, log_index)
);
"""

CREATE_POINTS_TABLE = f"""
CREATE TABLE IF NOT EXISTS points (
    azimuth_number        UINTEGER PRIMARY KEY,
    owner_address         VARCHAR  NOT NULL DEFAULT '{ZERO_ADDRESS}',
    spawn_address         VARCHAR  NOT NULL DEFAULT '{ZERO_ADDRESS}',
    transfer_address      VARCHAR  NOT NULL DEFAULT '{ZERO_ADDRESS}',
    management_address    VARCHAR  NOT NULL DEFAULT '{ZERO_ADDRESS}',
    voting_address        VARCHAR  NOT NULL DEFAULT '{ZERO_ADDRESS}',
    is_active             BOOLEAN  NOT NULL DEFAULT false,
    has_sponsor           BOOLEAN  NOT NULL DEFAULT false,
    sponsor               UINTEGER NOT NULL DEFAULT 0,
    is_escape_requested   BOOLEAN  NOT NULL DEFAULT false,
    escape_requested_to   UINTEGER NOT NULL DEFAULT 0,
    rift                  UINTEGER NOT NULL DEFAULT 0,
    encryption_key        VARCHAR  NOT NULL DEFAULT '{ZERO_WORD}',
    auth_key              VARCHAR  NOT NULL DEFAULT '{ZERO_WORD}',
    crypto_suite_version  UINTEGER NOT NULL DEFAULT 0,
    life                  UINTEGER NOT NULL DEFAULT 0
);
"""

SCHEMA = (CREATE_EVENT_LOGS_TABLE, CREATE_POINTS_TABLE)


# =====================================================================
# EVENT LOGS
# =====================================================================

INSERT_EVENT_LOG_QUERY = """
INSERT INTO event_logs (
    block_number, block_hash, tx_hash, log_index, contract_address,
    topic0, topic1, topic2, data, is_processed
) VALUES (
    $block_number, $block_hash, $tx_hash, $log_index, $contract_address,
    $topic0, $topic1, $topic2, $data, $is_processed
);
"""

FETCH_UNPROCESSED_QUERY = """
SELECT block_number, block_hash, tx_hash, log_index, contract_address,
       topic0, topic1, topic2, data, is_processed
FROM event_logs
WHERE NOT is_processed
ORDER BY block_number ASC, log_index ASC
LIMIT ?;
"""

COUNT_UNPROCESSED_QUERY = """
SELECT count(*) FROM event_logs WHERE NOT is_processed;
"""

MARK_PROCESSED_QUERY = """
UPDATE event_logs
SET is_processed = true
WHERE block_number = $block_number AND log_index = $log_index;
"""


# =====================================================================
# POINT UPSERTS (one per mutation shape)
# =====================================================================

INSERT_POINT_QUERY = """
INSERT INTO points (azimuth_number)
VALUES ($azimuth_number)
ON CONFLICT (azimuth_number) DO NOTHING;
"""

UPSERT_ACTIVATED_QUERY = """
INSERT INTO points (azimuth_number, is_active, has_sponsor, sponsor)
VALUES ($azimuth_number, $is_active, $has_sponsor, $sponsor)
ON CONFLICT (azimuth_number) DO UPDATE
SET is_active   = EXCLUDED.is_active,
    has_sponsor = EXCLUDED.has_sponsor,
    sponsor     = EXCLUDED.sponsor;
"""

UPSERT_OWNER_QUERY = """
INSERT INTO points (azimuth_number, owner_address)
VALUES ($azimuth_number, $owner_address)
ON CONFLICT (azimuth_number) DO UPDATE
SET owner_address = EXCLUDED.owner_address;
"""

UPSERT_SPAWN_PROXY_QUERY = """
INSERT INTO points (azimuth_number, spawn_address)
VALUES ($azimuth_number, $spawn_address)
ON CONFLICT (azimuth_number) DO UPDATE
SET spawn_address = EXCLUDED.spawn_address;
"""

UPSERT_TRANSFER_PROXY_QUERY = """
INSERT INTO points (azimuth_number, transfer_address)
VALUES ($azimuth_number, $transfer_address)
ON CONFLICT (azimuth_number) DO UPDATE
SET transfer_address = EXCLUDED.transfer_address;
"""

UPSERT_MANAGEMENT_PROXY_QUERY = """
INSERT INTO points (azimuth_number, management_address)
VALUES ($azimuth_number, $management_address)
ON CONFLICT (azimuth_number) DO UPDATE
SET management_address = EXCLUDED.management_address;
"""

UPSERT_VOTING_PROXY_QUERY = """
INSERT INTO points (azimuth_number, voting_address)
VALUES ($azimuth_number, $voting_address)
ON CONFLICT (azimuth_number) DO UPDATE
SET voting_address = EXCLUDED.voting_address;
"""

UPSERT_ESCAPE_QUERY = """
INSERT INTO points (azimuth_number, is_escape_requested, escape_requested_to)
VALUES ($azimuth_number, $is_escape_requested, $escape_requested_to)
ON CONFLICT (azimuth_number) DO UPDATE
SET is_escape_requested = EXCLUDED.is_escape_requested,
    escape_requested_to = EXCLUDED.escape_requested_to;
"""

UPSERT_ESCAPE_ACCEPTED_QUERY = """
INSERT INTO points (azimuth_number, is_escape_requested, escape_requested_to, has_sponsor, sponsor)
VALUES ($azimuth_number, $is_escape_requested, $escape_requested_to, $has_sponsor, $sponsor)
ON CONFLICT (azimuth_number) DO UPDATE
SET is_escape_requested = EXCLUDED.is_escape_requested,
    escape_requested_to = EXCLUDED.escape_requested_to,
    has_sponsor         = EXCLUDED.has_sponsor,
    sponsor             = EXCLUDED.sponsor;
"""

UPSERT_SPONSORSHIP_QUERY = """
INSERT INTO points (azimuth_number, has_sponsor)
VALUES ($azimuth_number, $has_sponsor)
ON CONFLICT (azimuth_number) DO UPDATE
SET has_sponsor = EXCLUDED.has_sponsor;
"""

UPSERT_RIFT_QUERY = """
INSERT INTO points (azimuth_number, rift)
VALUES ($azimuth_number, $rift)
ON CONFLICT (azimuth_number) DO UPDATE
SET rift = EXCLUDED.rift;
"""

UPSERT_KEYS_QUERY = """
INSERT INTO points (azimuth_number, encryption_key, auth_key, crypto_suite_version, life)
VALUES ($azimuth_number, $encryption_key, $auth_key, $crypto_suite_version, $life)
ON CONFLICT (azimuth_number) DO UPDATE
SET encryption_key       = EXCLUDED.encryption_key,
    auth_key             = EXCLUDED.auth_key,
    crypto_suite_version = EXCLUDED.crypto_suite_version,
    life                 = EXCLUDED.life;
"""


# =====================================================================
# POINT READS
# =====================================================================

_POINT_SELECT = ", ".join(POINT_COLUMNS)

FETCH_POINT_QUERY = f"""
SELECT {_POINT_SELECT} FROM points WHERE azimuth_number = ?;
"""

FETCH_POINTS_QUERY = f"""
SELECT {_POINT_SELECT} FROM points ORDER BY azimuth_number;
"""

COUNT_POINTS_QUERY = """
SELECT count(*) FROM points;
"""
