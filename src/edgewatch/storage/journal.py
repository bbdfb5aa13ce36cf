"""Append-only journal of bot log entries and placed bets."""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from edgewatch.models import BetOrder, BetResponse, LogEntry
from edgewatch.storage.db import get_connection, init_schema

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


class Journal:
    """Owns one DuckDB connection. Writes from the event loop thread only."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._conn: DuckDBPyConnection | None = None

    def _get_conn(self) -> DuckDBPyConnection:
        if self._conn is None:
            self._conn = get_connection(self.db_path)
            init_schema(self._conn)
        return self._conn

    def record_log(self, entry: LogEntry) -> None:
        self._get_conn().execute(
            "INSERT INTO bot_log (ts, kind, message) VALUES (?, ?, ?)",
            [entry.ts, entry.kind.value, entry.message],
        )

    def record_bet(self, order: BetOrder, resp: BetResponse, *, question: str, mode: str) -> None:
        self._get_conn().execute(
            """
            INSERT INTO placed_bets (ts, contract_id, question, mode, outcome, amount, limit_prob, filled_amount, bet_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                time.time(),
                order.contract_id,
                question,
                mode,
                order.outcome.value,
                order.amount,
                order.limit_prob,
                resp.amount,
                resp.bet_id,
            ],
        )
        log.debug("bet_journaled", contract_id=order.contract_id)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


def journal_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Counts by log kind, number of bets, total staked and filled."""
    by_kind = conn.execute("SELECT kind, COUNT(*) FROM bot_log GROUP BY kind ORDER BY kind").fetchall()
    bets = conn.execute(
        "SELECT COUNT(*), COALESCE(SUM(amount), 0), COALESCE(SUM(filled_amount), 0) FROM placed_bets"
    ).fetchone()
    by_mode = conn.execute("SELECT mode, COUNT(*) FROM placed_bets GROUP BY mode ORDER BY mode").fetchall()
    return {
        "log_by_kind": {r[0]: r[1] for r in by_kind},
        "bet_count": bets[0],
        "total_staked": bets[1],
        "total_filled": bets[2],
        "bets_by_mode": {r[0]: r[1] for r in by_mode},
    }


def recent_entries(conn: DuckDBPyConnection, limit: int = 20, kind: str | None = None) -> list[dict[str, Any]]:
    """Most recent log entries, oldest first."""
    limit = int(limit)
    if kind:
        rows = conn.execute(
            f"SELECT ts, kind, message FROM bot_log WHERE kind = ? ORDER BY id DESC LIMIT {limit}", [kind]
        ).fetchall()
    else:
        rows = conn.execute(f"SELECT ts, kind, message FROM bot_log ORDER BY id DESC LIMIT {limit}").fetchall()
    return [{"ts": r[0], "kind": r[1], "message": r[2]} for r in reversed(rows)]
