"""Config loading, observer history, journal persistence."""

import asyncio

import pytest

from edgewatch.config.settings import _tag_bot_kind, get_settings, load_config
from edgewatch.models import BetOccurred, BetOrder, BetResponse, Connected, Disconnected, LogEntry, LogKind, Side
from edgewatch.observer import ConnectionStatus, Observer, describe_event, unseen
from edgewatch.storage.db import get_connection, init_schema
from edgewatch.storage.journal import Journal, journal_stats, recent_entries


def test_profile_overlays_default(tmp_path):
    (tmp_path / "default.toml").write_text('[bot]\nbet_amount = 10.0\nmin_edge = 0.1\n[stream]\nstale_timeout_sec = 90\n')
    (tmp_path / "dev.toml").write_text("[bot]\nbet_amount = 1.0\n")
    raw = load_config("dev", config_dir=tmp_path)
    assert raw["bot"] == {"bet_amount": 1.0, "min_edge": 0.1}
    settings = get_settings("dev", config_dir=tmp_path)
    assert settings.bet_amount == 1.0
    assert settings.reversion_amount == 25.0
    assert settings.stale_timeout_sec == 90.0
    assert settings.reconnect_delay_sec == 3.0


def test_missing_profile_file_keeps_defaults(tmp_path):
    (tmp_path / "default.toml").write_text("[bot]\nbet_amount = 10.0\n")
    assert load_config("nosuch", config_dir=tmp_path) == {"bot": {"bet_amount": 10.0}}
    assert load_config("dev", config_dir=tmp_path / "empty") == {}


def test_console_logs_show_bot_kind_before_message():
    tagged = _tag_bot_kind(None, "info", {"event": "BET PLACED: YES M$10", "kind": "trade", "market_id": "m1"})
    assert tagged == {"event": "[TRADE] BET PLACED: YES M$10", "market_id": "m1"}
    assert _tag_bot_kind(None, "info", {"event": "ws_subscribed"}) == {"event": "ws_subscribed"}


def test_api_keys_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("MANIFOLD_API_KEY", "mk")
    monkeypatch.setenv("XAI_API_KEY", "xk")
    settings = get_settings(config_dir=tmp_path)
    assert settings.manifold_api_key == "mk"
    assert settings.oracle_api_key == "xk"


def test_observer_keeps_most_recent_entries():
    observer = Observer(max_entries=200)
    for i in range(250):
        observer.on_log(LogEntry(kind=LogKind.INFO, message=f"line {i}"))
    assert len(observer.entries) == 200
    assert observer.entries[0].message == "line 50"
    assert observer.entries_total == 250


def test_observer_status_and_feed():
    observer = Observer()
    assert observer.status is ConnectionStatus.DISCONNECTED
    observer.on_event(Connected())
    assert observer.status is ConnectionStatus.CONNECTED
    observer.on_event(BetOccurred(contract_id="abcdefghij", prob_before=0.4, prob_after=0.45))
    observer.on_event(Disconnected())
    assert observer.status is ConnectionStatus.CONNECTING
    assert list(observer.feed)[1] == "New bet: market abcdefgh (prob 40% -> 45%)"


def test_unseen_respects_cap():
    observer = Observer(max_entries=3)
    for i in range(5):
        observer.on_event(Connected())
    assert len(unseen(observer.feed, observer.feed_total, 4)) == 1
    assert len(unseen(observer.feed, observer.feed_total, 0)) == 3
    assert unseen(observer.feed, observer.feed_total, 5) == []


def test_consume_logs_drains_queue():
    observer = Observer()

    async def scenario():
        queue = asyncio.Queue()
        task = asyncio.create_task(observer.consume_logs(queue))
        queue.put_nowait(LogEntry(kind=LogKind.TRADE, message="BET PLACED"))
        await asyncio.sleep(0.01)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(scenario())
    assert [e.message for e in observer.entries] == ["BET PLACED"]


def test_describe_error_event():
    from edgewatch.models import StreamError

    assert describe_event(StreamError(message="boom")) == "Error: boom"


@pytest.fixture
def journal(tmp_path):
    j = Journal(tmp_path / "journal.duckdb")
    yield j
    j.close()


def test_journal_records_logs_and_bets(journal):
    journal.record_log(LogEntry(kind=LogKind.INFO, message="hello"))
    journal.record_log(LogEntry(kind=LogKind.ERROR, message="oops"))
    order = BetOrder(contract_id="m1", amount=10, outcome=Side.YES, limit_prob=0.55)
    journal.record_bet(order, BetResponse(bet_id="b1", amount=9.0), question="Q?", mode="new_market")
    conn = journal._get_conn()
    stats = journal_stats(conn)
    assert stats["log_by_kind"] == {"error": 1, "info": 1}
    assert stats["bet_count"] == 1
    assert stats["total_staked"] == 10.0
    assert stats["total_filled"] == 9.0
    assert stats["bets_by_mode"] == {"new_market": 1}
    assert [r["message"] for r in recent_entries(conn)] == ["hello", "oops"]
    assert [r["message"] for r in recent_entries(conn, kind="error")] == ["oops"]


def test_get_connection_creates_parent(tmp_path):
    conn = get_connection(tmp_path / "nested" / "db.duckdb")
    conn.close()
    assert (tmp_path / "nested" / "db.duckdb").exists()


def test_init_schema_is_idempotent(tmp_path):
    conn = get_connection(tmp_path / "journal.duckdb")
    try:
        init_schema(conn)
        conn.execute("INSERT INTO bot_log (ts, kind, message) VALUES (1.0, 'info', 'kept')")
        init_schema(conn)
        assert conn.execute("SELECT id, message FROM bot_log").fetchall() == [(1, "kept")]
    finally:
        conn.close()
