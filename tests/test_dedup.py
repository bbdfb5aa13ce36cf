"""Dedup cache TTL and JSON persistence."""

import json

from edgewatch.bot.dedup import CACHE_TTL_SEC, DedupCache

T = 1_700_000_000.0
DAY = 24 * 60 * 60


def test_ttl_window():
    cache = DedupCache()
    cache.insert("m1", now=T)
    assert cache.contains("m1", now=T + DAY - 1)
    assert not cache.contains("m1", now=T + DAY + 1)


def test_default_ttl_is_one_day():
    assert CACHE_TTL_SEC == DAY


def test_sweep_evicts_only_expired():
    cache = DedupCache()
    cache.insert("old", now=T)
    cache.insert("new", now=T + DAY - 10)
    removed = cache.sweep(now=T + DAY + 1)
    assert removed == 1
    assert cache.snapshot() == {"new": T + DAY - 10}


def test_insert_refreshes_timestamp():
    cache = DedupCache()
    cache.insert("m1", now=T)
    cache.insert("m1", now=T + DAY - 5)
    assert cache.contains("m1", now=T + DAY + 1)


def test_persists_after_every_insert(tmp_path):
    path = tmp_path / "cache" / "analyzed.json"
    cache = DedupCache(path=path)
    cache.insert("a", now=T)
    assert json.loads(path.read_text()) == {"a": T}
    cache.insert("b", now=T + 1)
    assert json.loads(path.read_text()) == {"a": T, "b": T + 1}


def test_reload_keeps_fractional_timestamps(tmp_path):
    path = tmp_path / "analyzed.json"
    DedupCache(path=path).insert("m1", now=T + 0.75)
    cache = DedupCache.load(path, now=T + 1)
    assert cache.snapshot() == {"m1": T + 0.75}
    assert cache.contains("m1", now=T + 0.75 + DAY - 0.5)


def test_load_filters_expired(tmp_path):
    path = tmp_path / "analyzed.json"
    path.write_text(json.dumps({"fresh": T - 60, "stale": T - DAY - 60, "junk": "x"}))
    cache = DedupCache.load(path, now=T)
    assert cache.contains("fresh", now=T)
    assert not cache.contains("stale", now=T)
    assert len(cache) == 1


def test_load_missing_or_corrupt_file_is_empty(tmp_path):
    assert len(DedupCache.load(tmp_path / "nope.json")) == 0
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert len(DedupCache.load(bad)) == 0


def test_clear(tmp_path):
    path = tmp_path / "analyzed.json"
    cache = DedupCache(path=path)
    cache.insert("a", now=T)
    cache.clear()
    assert len(cache) == 0
    assert json.loads(path.read_text()) == {}
