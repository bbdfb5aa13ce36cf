"""Bot log channel - user-visible entries on an unbounded queue, mirrored to structlog."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from edgewatch.models import LogEntry, LogKind

log = structlog.get_logger("edgewatch.bot")


class Logbook:
    """Multi-producer side of the log channel. The consumer decides how much history to keep."""

    def __init__(self, queue: asyncio.Queue[LogEntry] | None = None):
        self.queue: asyncio.Queue[LogEntry] = queue if queue is not None else asyncio.Queue()

    def emit(self, kind: LogKind, message: str, **fields: Any) -> LogEntry:
        entry = LogEntry(kind=kind, message=message)
        self.queue.put_nowait(entry)
        if kind is LogKind.ERROR:
            log.warning(message, kind=kind.value, **fields)
        else:
            log.info(message, kind=kind.value, **fields)
        return entry

    def info(self, message: str, **fields: Any) -> LogEntry:
        return self.emit(LogKind.INFO, message, **fields)

    def trade(self, message: str, **fields: Any) -> LogEntry:
        return self.emit(LogKind.TRADE, message, **fields)

    def error(self, message: str, **fields: Any) -> LogEntry:
        return self.emit(LogKind.ERROR, message, **fields)
