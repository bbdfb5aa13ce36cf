"""MarketSnapshot, Creator, User - Manifold entities."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

BINARY = "BINARY"


class _ManifoldModel(BaseModel):
    """Base for Manifold payloads: camelCase on the wire, snake_case in Python, read-only."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class MarketSnapshot(_ManifoldModel):
    """Market state as read from the stream or REST API. Never mutated after construction."""

    id: str
    question: str
    text_description: str | None = None
    outcome_type: str
    probability: float | None = Field(None, ge=0, le=1, description="Implied YES probability")
    total_liquidity: float | None = None
    is_resolved: bool = False
    url: str | None = None

    @property
    def is_binary(self) -> bool:
        return self.outcome_type == BINARY

    @property
    def liquidity(self) -> float:
        return self.total_liquidity or 0.0


class Creator(_ManifoldModel):
    """Market creator identity carried on new-contract broadcasts."""

    id: str
    username: str
    name: str


class User(_ManifoldModel):
    """Authenticated account (GET /me)."""

    id: str
    username: str
    name: str
    balance: float = 0.0
