"""LogEntry - user-visible bot log line."""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, Field


class LogKind(str, Enum):
    INFO = "info"
    TRADE = "trade"
    ERROR = "error"


class LogEntry(BaseModel):
    kind: LogKind
    message: str
    ts: float = Field(default_factory=time.time)
