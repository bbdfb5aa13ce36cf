"""Time-windowed set of markets already sent for analysis, optionally persisted to JSON."""

from __future__ import annotations

import json
import time
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)

CACHE_TTL_SEC = 24 * 60 * 60


class DedupCache:
    """
    market_id -> epoch seconds of the last analysis trigger.
    Owned by a single consumer; not thread-safe and not meant to be shared.
    """

    def __init__(self, ttl_sec: float = CACHE_TTL_SEC, path: str | Path | None = None):
        self.ttl_sec = ttl_sec
        self.path = Path(path) if path is not None else None
        self._entries: dict[str, float] = {}

    @classmethod
    def load(cls, path: str | Path, ttl_sec: float = CACHE_TTL_SEC, now: float | None = None) -> DedupCache:
        """Load a persisted cache, dropping entries older than the window. Missing or corrupt file -> empty."""
        cache = cls(ttl_sec=ttl_sec, path=path)
        p = Path(path)
        if not p.exists():
            return cache
        try:
            raw = json.loads(p.read_text())
        except (OSError, json.JSONDecodeError) as e:
            log.warning("dedup_cache_unreadable", path=str(p), error=str(e))
            return cache
        if not isinstance(raw, dict):
            log.warning("dedup_cache_unreadable", path=str(p), error="not a JSON object")
            return cache
        for market_id, ts in raw.items():
            if isinstance(ts, (int, float)) and not isinstance(ts, bool):
                cache._entries[str(market_id)] = float(ts)
        cache.sweep(now)
        log.info("dedup_cache_loaded", path=str(p), entries=len(cache))
        return cache

    def __len__(self) -> int:
        return len(self._entries)

    def _now(self, now: float | None) -> float:
        return time.time() if now is None else now

    def contains(self, market_id: str, now: float | None = None) -> bool:
        """True if market_id was triggered less than ttl_sec ago."""
        ts = self._entries.get(market_id)
        if ts is None:
            return False
        return self._now(now) - ts < self.ttl_sec

    def insert(self, market_id: str, now: float | None = None) -> None:
        """Insert or refresh an entry, then persist."""
        self._entries[market_id] = self._now(now)
        self.save()

    def sweep(self, now: float | None = None) -> int:
        """Evict expired entries. Returns the number removed."""
        cutoff = self._now(now) - self.ttl_sec
        expired = [mid for mid, ts in self._entries.items() if ts <= cutoff]
        for mid in expired:
            del self._entries[mid]
        return len(expired)

    def snapshot(self) -> dict[str, float]:
        return dict(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self.save()

    def save(self) -> None:
        """Rewrite the JSON file. Write failures are logged, never raised."""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(self._entries))
            tmp.replace(self.path)
        except OSError as e:
            log.warning("dedup_cache_save_failed", path=str(self.path), error=str(e))
