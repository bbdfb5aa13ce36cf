"""Canonical schema (Pydantic) - markets, stream events, bets, log entries."""

from edgewatch.models.bet import BetOrder, BetResponse, Side
from edgewatch.models.events import (
    BetOccurred,
    Connected,
    ContractCreated,
    Disconnected,
    StreamError,
    StreamEvent,
)
from edgewatch.models.log import LogEntry, LogKind
from edgewatch.models.market import BINARY, Creator, MarketSnapshot, User

__all__ = [
    "BINARY",
    "BetOccurred",
    "BetOrder",
    "BetResponse",
    "Connected",
    "ContractCreated",
    "Creator",
    "Disconnected",
    "LogEntry",
    "LogKind",
    "MarketSnapshot",
    "Side",
    "StreamError",
    "StreamEvent",
    "User",
]
