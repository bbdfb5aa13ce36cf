"""Decision orchestrator - single consumer of stream events; filters, dedups, spawns evaluations."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Coroutine

import structlog

from edgewatch.bot.dedup import DedupCache
from edgewatch.bot.evaluation import BotConfig, Evaluator
from edgewatch.bot.logbook import Logbook
from edgewatch.models import (
    BetOccurred,
    Connected,
    ContractCreated,
    Disconnected,
    StreamError,
    StreamEvent,
)

log = structlog.get_logger(__name__)


class Orchestrator:
    """
    Consumes the event channel strictly in order. Sole owner and writer of the dedup cache:
    entries are written here, before a task is spawned, never from inside evaluation tasks.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        config: BotConfig,
        logbook: Logbook,
        cache: DedupCache | None = None,
        *,
        max_concurrent: int = 0,
        clock: Callable[[], float] = time.time,
    ):
        self.evaluator = evaluator
        self.config = config
        self.logbook = logbook
        self.cache = cache if cache is not None else DedupCache()
        self.clock = clock
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent > 0 else None
        self._tasks: set[asyncio.Task[Any]] = set()
        self.spawned = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def announce(self) -> None:
        c = self.config
        self.logbook.info(
            f"Bot started (M${c.bet_amount:.0f}/new, M${c.reversion_amount:.0f}/reversion, "
            f"{c.min_edge:.0%} min edge, M${c.min_liquidity:.0f} min liquidity)"
        )

    async def run(self, events: asyncio.Queue[StreamEvent]) -> None:
        """Consume events forever. No event's failure stops the loop."""
        self.announce()
        while True:
            event = await events.get()
            try:
                self.handle(event)
            except Exception as e:
                log.exception("orchestrator_event_failed", kind=getattr(event, "kind", None))
                self.logbook.error(f"Failed to handle {getattr(event, 'kind', 'event')}: {e}")

    def handle(self, event: StreamEvent) -> None:
        """Apply filters and dedup for one event; may spawn one evaluation task."""
        if isinstance(event, Connected):
            self.logbook.info("WebSocket connected")
        elif isinstance(event, Disconnected):
            self.logbook.info("WebSocket disconnected, reconnecting...")
        elif isinstance(event, StreamError):
            self.logbook.error(event.message)
        elif isinstance(event, ContractCreated):
            self._on_contract_created(event)
        elif isinstance(event, BetOccurred):
            self._on_bet_occurred(event)

    def _on_contract_created(self, event: ContractCreated) -> None:
        contract = event.contract
        if not contract.is_binary:
            self.logbook.info(f'Skipping non-binary market: "{contract.question}" [{contract.outcome_type}]')
            return
        if contract.liquidity < self.config.min_liquidity:
            self.logbook.info(f'Skipping low-liquidity market (M${contract.liquidity:.0f}): "{contract.question}"')
            return
        self.logbook.info(
            f'New binary market (M${contract.liquidity:.0f} liq): "{contract.question}" by {event.creator.username}'
        )
        # Mark first so trade events on this market do not spawn a second evaluation
        self.cache.insert(contract.id, self.clock())
        self._spawn(self.evaluator.evaluate_new_market(contract, event.creator), contract.id)

    def _on_bet_occurred(self, event: BetOccurred) -> None:
        now = self.clock()
        self.cache.sweep(now)
        if self.cache.contains(event.contract_id, now):
            return
        self.cache.insert(event.contract_id, now)
        self._spawn(self.evaluator.evaluate_reversion(event), event.contract_id)

    def _spawn(self, coro: Coroutine[Any, Any, Any], market_id: str) -> None:
        task = asyncio.create_task(self._guard(coro, market_id), name=f"evaluate:{market_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.spawned += 1

    async def _guard(self, coro: Coroutine[Any, Any, Any], market_id: str) -> None:
        """Contain any failure to this one evaluation."""
        try:
            if self._semaphore is None:
                await coro
            else:
                async with self._semaphore:
                    await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.exception("evaluation_failed", market_id=market_id)
            self.logbook.error(f"Evaluation failed for {market_id}: {e}")
        finally:
            coro.close()

    async def drain(self) -> None:
        """Wait for in-flight evaluations (used by tests and graceful shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
