"""Typed events emitted by the streaming client."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from edgewatch.models.market import Creator, MarketSnapshot


class Connected(BaseModel):
    """Subscription sent; the connection is live."""

    kind: Literal["connected"] = "connected"


class Disconnected(BaseModel):
    """Connection dropped; a reconnect follows after the fixed delay."""

    kind: Literal["disconnected"] = "disconnected"


class StreamError(BaseModel):
    """Non-fatal stream problem (transport, decode, stale, unknown topic)."""

    kind: Literal["error"] = "error"
    message: str


class ContractCreated(BaseModel):
    """global/new-contract broadcast: `{contract, creator}`."""

    kind: Literal["contract_created"] = "contract_created"
    contract: MarketSnapshot
    creator: Creator


class BetOccurred(BaseModel):
    """First bet of a global/new-bet broadcast."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: Literal["bet_occurred"] = "bet_occurred"
    contract_id: str
    prob_before: float = Field(..., ge=0, le=1)
    prob_after: float = Field(..., ge=0, le=1)


StreamEvent = Union[Connected, Disconnected, StreamError, ContractCreated, BetOccurred]
