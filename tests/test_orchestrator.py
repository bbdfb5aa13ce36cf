"""Orchestrator filters, pre-spawn dedup marking, and failure containment."""

import asyncio

from conftest import FakeManifold, FakeOracle, drain_entries, make_market

from edgewatch.bot.dedup import DedupCache
from edgewatch.bot.evaluation import Evaluator
from edgewatch.bot.orchestrator import Orchestrator
from edgewatch.models import (
    BetOccurred,
    Connected,
    ContractCreated,
    Creator,
    Disconnected,
    LogKind,
    StreamError,
)

CREATOR = Creator(id="u1", username="alice", name="Alice")
SKIP = '{"action":"skip","reasoning":"n/a"}'


class Clock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_orchestrator(config, logbook, manifold=None, oracle=None, clock=None, **kwargs):
    manifold = manifold or FakeManifold()
    oracle = oracle or FakeOracle(SKIP)
    evaluator = Evaluator(manifold, oracle, config, logbook)
    return Orchestrator(evaluator, config, logbook, DedupCache(), clock=clock or Clock(), **kwargs)


def run_events(orch, events):
    async def scenario():
        for event in events:
            orch.handle(event)
        await orch.drain()

    asyncio.run(scenario())


def bet(market_id: str) -> BetOccurred:
    return BetOccurred(contract_id=market_id, prob_before=0.4, prob_after=0.45)


def test_two_bets_same_market_spawn_once(config, logbook):
    manifold = FakeManifold({"m1": make_market("m1")})
    orch = make_orchestrator(config, logbook, manifold=manifold)
    run_events(orch, [bet("m1"), bet("m1")])
    assert orch.spawned == 1
    assert manifold.fetched == ["m1"]


def test_bet_after_cooldown_spawns_again(config, logbook):
    clock = Clock()
    orch = make_orchestrator(config, logbook, manifold=FakeManifold({"m1": make_market("m1")}), clock=clock)
    run_events(orch, [bet("m1")])
    clock.now += 24 * 60 * 60 + 1
    run_events(orch, [bet("m1")])
    assert orch.spawned == 2


def test_creation_marks_cache_so_trades_do_not_retrigger(config, logbook):
    market = make_market("m1", liquidity=150.0)
    orch = make_orchestrator(config, logbook)
    run_events(orch, [ContractCreated(contract=market, creator=CREATOR), bet("m1"), bet("m1")])
    assert orch.spawned == 1
    assert orch.cache.contains("m1", orch.clock())


def test_liquidity_filter(config, logbook):
    orch = make_orchestrator(config, logbook)
    run_events(orch, [ContractCreated(contract=make_market("rich", liquidity=150.0), creator=CREATOR)])
    assert orch.spawned == 1
    run_events(orch, [ContractCreated(contract=make_market("poor", liquidity=50.0), creator=CREATOR)])
    assert orch.spawned == 1
    assert not orch.cache.contains("poor")
    skipped = [e for e in drain_entries(logbook) if "low-liquidity" in e.message]
    assert len(skipped) == 1 and skipped[0].kind is LogKind.INFO


def test_non_binary_market_is_skipped(config, logbook):
    orch = make_orchestrator(config, logbook)
    market = make_market("mc", outcome_type="MULTIPLE_CHOICE", liquidity=1000.0)
    run_events(orch, [ContractCreated(contract=market, creator=CREATOR)])
    assert orch.spawned == 0
    assert "non-binary" in drain_entries(logbook)[-1].message


def test_status_events_only_log(config, logbook):
    orch = make_orchestrator(config, logbook)
    run_events(orch, [Connected(), StreamError(message="WS stale"), Disconnected()])
    assert orch.spawned == 0
    kinds = [e.kind for e in drain_entries(logbook)]
    assert kinds == [LogKind.INFO, LogKind.ERROR, LogKind.INFO]


def test_failed_evaluation_does_not_stop_others(config, logbook):
    class ExplodingEvaluator(Evaluator):
        async def evaluate_new_market(self, contract, creator):
            if contract.id == "boom":
                raise RuntimeError("bug in evaluation")
            return await super().evaluate_new_market(contract, creator)

    manifold = FakeManifold()
    oracle = FakeOracle('{"action":"predict","probability":90,"reasoning":"sure"}')
    orch = Orchestrator(ExplodingEvaluator(manifold, oracle, config, logbook), config, logbook, clock=Clock())
    run_events(
        orch,
        [
            ContractCreated(contract=make_market("boom"), creator=CREATOR),
            ContractCreated(contract=make_market("ok"), creator=CREATOR),
        ],
    )
    assert orch.spawned == 2
    assert [o.contract_id for o in manifold.orders] == ["ok"]
    errors = [e for e in drain_entries(logbook) if e.kind is LogKind.ERROR]
    assert any("Evaluation failed for boom" in e.message for e in errors)


def test_run_consumes_queue_in_order(config, logbook):
    manifold = FakeManifold({"a": make_market("a"), "b": make_market("b")})
    orch = make_orchestrator(config, logbook, manifold=manifold)

    async def scenario():
        queue = asyncio.Queue()
        for event in [bet("a"), bet("b"), bet("a")]:
            queue.put_nowait(event)
        task = asyncio.create_task(orch.run(queue))
        while not queue.empty():
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        await orch.drain()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(scenario())
    assert orch.spawned == 2
    assert manifold.fetched == ["a", "b"]
    assert drain_entries(logbook)[0].message.startswith("Bot started")


def test_admission_limit_bounds_concurrency(config, logbook):
    active = 0
    peak = 0

    class SlowOracle(FakeOracle):
        async def research(self, question, description=None):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return SKIP

    orch = make_orchestrator(config, logbook, oracle=SlowOracle(), max_concurrent=2)
    events = [ContractCreated(contract=make_market(f"m{i}"), creator=CREATOR) for i in range(6)]
    run_events(orch, events)
    assert orch.spawned == 6
    assert peak == 2
