"""Bounded observer of the stream feed and bot log - keeps only the most recent entries."""

from __future__ import annotations

import asyncio
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING

from edgewatch.models import (
    BetOccurred,
    Connected,
    ContractCreated,
    Disconnected,
    LogEntry,
    StreamError,
    StreamEvent,
)

if TYPE_CHECKING:
    from edgewatch.storage.journal import Journal

MAX_ENTRIES = 200


class ConnectionStatus(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting..."
    CONNECTED = "Connected"


def describe_event(event: StreamEvent) -> str:
    """One feed line per stream event."""
    if isinstance(event, ContractCreated):
        c = event.contract
        return f'New market: "{c.question}" by {event.creator.username} [{c.outcome_type}]'
    if isinstance(event, BetOccurred):
        return (
            f"New bet: market {event.contract_id[:8]} "
            f"(prob {event.prob_before:.0%} -> {event.prob_after:.0%})"
        )
    if isinstance(event, StreamError):
        return f"Error: {event.message}"
    if isinstance(event, Connected):
        return "Connected"
    if isinstance(event, Disconnected):
        return "Disconnected"
    return str(event)


class Observer:
    """Side-channel consumer: connection status, event feed, and log history, each capped."""

    def __init__(self, max_entries: int = MAX_ENTRIES, journal: Journal | None = None):
        self.status = ConnectionStatus.DISCONNECTED
        self.feed: deque[str] = deque(maxlen=max_entries)
        self.entries: deque[LogEntry] = deque(maxlen=max_entries)
        self.journal = journal
        self.feed_total = 0
        self.entries_total = 0

    def on_event(self, event: StreamEvent) -> None:
        if isinstance(event, Connected):
            self.status = ConnectionStatus.CONNECTED
        elif isinstance(event, Disconnected):
            self.status = ConnectionStatus.CONNECTING
        self.feed.append(describe_event(event))
        self.feed_total += 1

    def on_log(self, entry: LogEntry) -> None:
        self.entries.append(entry)
        self.entries_total += 1
        if self.journal is not None:
            self.journal.record_log(entry)

    async def consume_logs(self, queue: asyncio.Queue[LogEntry]) -> None:
        """Single consumer of the log channel; runs until cancelled."""
        while True:
            entry = await queue.get()
            self.on_log(entry)


def unseen(history: deque, total: int, seen: int) -> list:
    """Items appended since `seen` of `total`, limited to what the capped history still holds."""
    count = min(total - seen, len(history))
    return list(history)[len(history) - count :] if count > 0 else []
