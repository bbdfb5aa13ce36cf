"""Per-event evaluation: market state -> oracle -> edge -> limit bet."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from edgewatch.bot.logbook import Logbook
from edgewatch.models import BetOccurred, BetOrder, BetResponse, Creator, MarketSnapshot, Side
from edgewatch.oracle import Predict, Skip, Unparseable, parse_answer

if TYPE_CHECKING:
    from edgewatch.config import Settings
    from edgewatch.storage.journal import Journal

LIMIT_MIN = 0.01
LIMIT_MAX = 0.99
DEFAULT_MARKET_PROB = 0.5
RAW_EXCERPT_CHARS = 300


class TradingAPI(Protocol):
    async def get_market(self, market_id: str) -> MarketSnapshot: ...
    async def place_bet(self, order: BetOrder) -> BetResponse: ...


class ResearchOracle(Protocol):
    async def research(self, question: str, description: str | None = None) -> str: ...


class TriggerMode(str, Enum):
    NEW_MARKET = "new_market"
    REVERSION = "reversion"


@dataclass(frozen=True)
class BotConfig:
    bet_amount: float = 10.0
    reversion_amount: float = 25.0
    min_edge: float = 0.10
    min_liquidity: float = 100.0

    @classmethod
    def from_settings(cls, settings: Settings) -> BotConfig:
        return cls(
            bet_amount=settings.bet_amount,
            reversion_amount=settings.reversion_amount,
            min_edge=settings.min_edge,
            min_liquidity=settings.min_liquidity,
        )

    def stake(self, mode: TriggerMode) -> float:
        return self.bet_amount if mode is TriggerMode.NEW_MARKET else self.reversion_amount


def clamp_limit(probability: float) -> float:
    """Limit probabilities must lie in [0.01, 0.99]."""
    return min(max(probability, LIMIT_MIN), LIMIT_MAX)


def compute_edge(predicted: float, market_prob: float | None) -> float:
    """Predicted minus market probability; a missing market probability counts as 0.5."""
    return predicted - (DEFAULT_MARKET_PROB if market_prob is None else market_prob)


def build_order(
    market_id: str,
    predicted: float,
    market_prob: float | None,
    amount: float,
    min_edge: float,
) -> BetOrder | None:
    """Order to submit, or None when |edge| is below min_edge. Positive edge buys YES, otherwise NO."""
    edge = compute_edge(predicted, market_prob)
    if abs(edge) < min_edge:
        return None
    side = Side.YES if edge > 0 else Side.NO
    return BetOrder(
        contract_id=market_id,
        amount=amount,
        outcome=side,
        limit_prob=clamp_limit(predicted),
    )


def is_tradable(market: MarketSnapshot, min_liquidity: float) -> bool:
    """Unresolved binary market with enough liquidity."""
    return not market.is_resolved and market.is_binary and market.liquidity >= min_liquidity


class Evaluator:
    """Runs one evaluation per call. Holds only shared, read-only collaborators."""

    def __init__(
        self,
        manifold: TradingAPI,
        oracle: ResearchOracle,
        config: BotConfig,
        logbook: Logbook,
        journal: Journal | None = None,
    ):
        self.manifold = manifold
        self.oracle = oracle
        self.config = config
        self.logbook = logbook
        self.journal = journal

    async def evaluate_new_market(self, contract: MarketSnapshot, creator: Creator) -> BetOrder | None:
        """Creation-triggered: use the snapshot carried by the event."""
        self.logbook.info(f'Researching "{contract.question}" by {creator.username}...', market_id=contract.id)
        return await self.evaluate(contract, TriggerMode.NEW_MARKET)

    async def evaluate_reversion(self, bet: BetOccurred) -> BetOrder | None:
        """Trade-triggered: re-fetch the market; abort silently if it is no longer tradable."""
        try:
            market = await self.manifold.get_market(bet.contract_id)
        except Exception as e:
            self.logbook.error(f"Failed to fetch market {bet.contract_id}: {e}", market_id=bet.contract_id)
            return None
        if not is_tradable(market, self.config.min_liquidity):
            return None
        self.logbook.info(
            f'Analyzing market (bet-triggered, M${market.liquidity:.0f} liq): "{market.question}"',
            market_id=market.id,
        )
        return await self.evaluate(market, TriggerMode.REVERSION)

    async def evaluate(self, market: MarketSnapshot, mode: TriggerMode) -> BetOrder | None:
        """Research, parse, decide and submit. Returns the submitted order, or None if nothing was placed."""
        question = market.question
        tag = "[bet-triggered] " if mode is TriggerMode.REVERSION else ""
        try:
            raw = await self.oracle.research(question, market.text_description or None)
        except Exception as e:
            self.logbook.error(f'Oracle research failed for "{question}": {e}', market_id=market.id)
            return None

        answer = parse_answer(raw)
        if isinstance(answer, Skip):
            self.logbook.info(f'Skipping unevaluable market: "{question}" | {answer.reason}', market_id=market.id)
            return None
        if isinstance(answer, Unparseable):
            self.logbook.error(f'Could not parse prediction for "{question}"', market_id=market.id)
            self.logbook.info(f"Oracle response: {answer.raw[:RAW_EXCERPT_CHARS]}")
            return None
        if not isinstance(answer, Predict):
            raise TypeError(f"Unexpected oracle answer: {answer!r}")

        predicted = answer.probability
        market_prob = DEFAULT_MARKET_PROB if market.probability is None else market.probability
        reasoning = answer.reasoning or "No reasoning provided"
        order = build_order(market.id, predicted, market_prob, self.config.stake(mode), self.config.min_edge)
        if order is None:
            edge = abs(compute_edge(predicted, market_prob))
            self.logbook.info(
                f"{tag}[{question}] {predicted:.0%} (market {market_prob:.0%}), "
                f"edge {edge * 100:.1f}% < {self.config.min_edge:.0%} min - skipping | {reasoning}",
                market_id=market.id,
            )
            return None

        self.logbook.info(
            f"{tag}[{question}] {predicted:.0%} (market {market_prob:.0%}) -> "
            f"{order.outcome.value} limit@{order.limit_prob:.0%} | {reasoning}",
            market_id=market.id,
        )
        return await self._submit(order, market, mode)

    async def _submit(self, order: BetOrder, market: MarketSnapshot, mode: TriggerMode) -> BetOrder | None:
        question = market.question
        label = "BET PLACED (reversion)" if mode is TriggerMode.REVERSION else "BET PLACED"
        try:
            resp = await self.manifold.place_bet(order)
        except Exception as e:
            self.logbook.error(f'Failed to place bet on "{question}": {e}', market_id=order.contract_id)
            return None
        filled = resp.amount or 0.0
        link = f" {market.url}" if market.url else ""
        self.logbook.trade(
            f'{label}: {order.outcome.value} M${order.amount:.0f} on "{question}" '
            f"limit@{order.limit_prob:.0%} (filled M${filled:.0f}){link}",
            market_id=order.contract_id,
        )
        if self.journal is not None:
            self.journal.record_bet(order, resp, question=question, mode=mode.value)
        return order
