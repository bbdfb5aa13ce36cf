"""Manifold WS frame -> typed StreamEvent."""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import ValidationError

from edgewatch.models import BetOccurred, ContractCreated, StreamError, StreamEvent

log = structlog.get_logger(__name__)

TOPIC_NEW_CONTRACT = "global/new-contract"
TOPIC_NEW_BET = "global/new-bet"
TOPICS = [TOPIC_NEW_CONTRACT, TOPIC_NEW_BET]

EXCERPT_CHARS = 200


def excerpt(text: str, limit: int = EXCERPT_CHARS) -> str:
    """Bounded prefix of a payload for log lines."""
    return text if len(text) <= limit else text[:limit] + "..."


def decode_broadcast(topic: str, data: Any) -> StreamEvent:
    """Convert a broadcast payload to an event according to its topic. Never raises."""
    if topic == TOPIC_NEW_CONTRACT:
        try:
            return ContractCreated.model_validate(data)
        except ValidationError as e:
            return StreamError(message=f"Failed to parse new contract: {e.error_count()} error(s): {excerpt(str(e))}")
    if topic == TOPIC_NEW_BET:
        bets = data.get("bets") if isinstance(data, dict) else None
        if not isinstance(bets, list):
            return StreamError(message=f"Failed to parse new bet: missing bets list in {excerpt(json.dumps(data))}")
        if not bets:
            return StreamError(message="Empty bets array in new-bet broadcast")
        try:
            return BetOccurred.model_validate(bets[0])
        except ValidationError as e:
            return StreamError(message=f"Failed to parse new bet: {excerpt(str(e))}")
    return StreamError(message=f"Unknown topic: {topic}")


def decode_frame(raw: str | bytes) -> StreamEvent | None:
    """
    Decode one server frame.
    Returns None for frames that carry nothing for the bot (successful acks, binary, other types).
    """
    if isinstance(raw, bytes):
        return None
    try:
        msg = json.loads(raw)
    except json.JSONDecodeError:
        return StreamError(message=f"Malformed frame: {excerpt(raw)}")
    if not isinstance(msg, dict):
        return StreamError(message=f"Malformed frame: {excerpt(raw)}")
    msg_type = msg.get("type")
    if msg_type == "ack":
        if msg.get("success") is False:
            return StreamError(message=f"Subscription failed (txid={msg.get('txid')})")
        return None
    if msg_type == "broadcast":
        return decode_broadcast(str(msg.get("topic", "")), msg.get("data"))
    log.debug("ws_frame_ignored", type=msg_type)
    return None
