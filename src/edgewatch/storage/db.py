"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Sequences for auto-increment IDs
CREATE SEQUENCE IF NOT EXISTS log_seq START 1;
CREATE SEQUENCE IF NOT EXISTS bet_seq START 1;

-- Bot log entries (append-only)
CREATE TABLE IF NOT EXISTS bot_log (
    id              BIGINT PRIMARY KEY DEFAULT nextval('log_seq'),
    ts              DOUBLE NOT NULL,
    kind            VARCHAR NOT NULL,
    message         VARCHAR NOT NULL
);

-- Bets submitted and accepted by the platform
CREATE TABLE IF NOT EXISTS placed_bets (
    id              BIGINT PRIMARY KEY DEFAULT nextval('bet_seq'),
    ts              DOUBLE NOT NULL,
    contract_id     VARCHAR NOT NULL,
    question        VARCHAR,
    mode            VARCHAR NOT NULL,
    outcome         VARCHAR NOT NULL,
    amount          DOUBLE NOT NULL,
    limit_prob      DOUBLE,
    filled_amount   DOUBLE,
    bet_id          VARCHAR
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    DuckDB locks the file per process: while a bot holds it for writing, even a
    read_only connection from another process fails with duckdb.IOException."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create the journal sequences and tables. Every statement is IF NOT EXISTS, so reopening is safe."""
    conn.execute(SCHEMA_SQL)
