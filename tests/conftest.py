"""Shared fakes for the trading API and the oracle."""

from __future__ import annotations

import pytest

from edgewatch.bot.evaluation import BotConfig
from edgewatch.bot.logbook import Logbook
from edgewatch.models import BetOrder, BetResponse, MarketSnapshot


class FakeManifold:
    """In-memory trading API: markets by id, records every order."""

    def __init__(self, markets: dict[str, MarketSnapshot] | None = None, fail_bet: Exception | None = None):
        self.markets = markets or {}
        self.fail_bet = fail_bet
        self.orders: list[BetOrder] = []
        self.fetched: list[str] = []

    async def get_market(self, market_id: str) -> MarketSnapshot:
        self.fetched.append(market_id)
        if market_id not in self.markets:
            raise KeyError(market_id)
        return self.markets[market_id]

    async def place_bet(self, order: BetOrder) -> BetResponse:
        if self.fail_bet is not None:
            raise self.fail_bet
        self.orders.append(order)
        return BetResponse(bet_id=f"bet-{len(self.orders)}", amount=order.amount, outcome=order.outcome.value)


class FakeOracle:
    """Returns a canned response (or raises) and records the questions asked."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str | None]] = []

    async def research(self, question: str, description: str | None = None) -> str:
        self.calls.append((question, description))
        if self.error is not None:
            raise self.error
        return self.response


def make_market(
    market_id: str = "m1",
    *,
    probability: float | None = 0.40,
    liquidity: float | None = 150.0,
    outcome_type: str = "BINARY",
    resolved: bool = False,
    description: str | None = None,
    url: str | None = None,
) -> MarketSnapshot:
    return MarketSnapshot(
        id=market_id,
        question=f"Will {market_id} happen?",
        text_description=description,
        outcome_type=outcome_type,
        probability=probability,
        total_liquidity=liquidity,
        is_resolved=resolved,
        url=url,
    )


def drain_entries(logbook: Logbook) -> list:
    entries = []
    while not logbook.queue.empty():
        entries.append(logbook.queue.get_nowait())
    return entries


@pytest.fixture
def config() -> BotConfig:
    return BotConfig(bet_amount=10.0, reversion_amount=25.0, min_edge=0.10, min_liquidity=100.0)


@pytest.fixture
def logbook() -> Logbook:
    return Logbook()
