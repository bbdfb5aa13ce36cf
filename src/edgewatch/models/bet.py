"""BetOrder, BetResponse - order submission types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Side(str, Enum):
    """Outcome bought by an order."""

    YES = "YES"
    NO = "NO"


class BetOrder(BaseModel):
    """Limit bet sent to POST /bet."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    contract_id: str
    amount: float = Field(..., gt=0)
    outcome: Side
    limit_prob: float | None = Field(None, ge=0.01, le=0.99)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BetResponse(BaseModel):
    """Subset of the bet endpoint response we read."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    bet_id: str | None = None
    amount: float | None = None
    outcome: str | None = None
    contract_id: str | None = None
