"""End-to-end wiring: stream -> channel -> orchestrator -> observer."""

import asyncio
import json

from conftest import FakeManifold, FakeOracle, make_market

from edgewatch.bot.runner import BotRunner
from edgewatch.config import Settings
from edgewatch.models import Connected, ContractCreated, Creator, LogKind
from edgewatch.observer import ConnectionStatus


def test_runner_trades_on_new_market_and_persists_cache(tmp_path):
    cache_path = tmp_path / "analyzed.json"
    settings = Settings.from_dict({"storage": {"cache_path": str(cache_path)}})
    manifold = FakeManifold()
    oracle = FakeOracle('{"action":"predict","probability":70,"reasoning":"likely"}')
    market = make_market("new1", probability=0.40, liquidity=500.0)

    async def fake_stream(url, emit, **kwargs):
        emit(Connected())
        emit(ContractCreated(contract=market, creator=Creator(id="u", username="dana", name="Dana")))
        await asyncio.Event().wait()

    runner = BotRunner(settings, manifold, oracle, stream=fake_stream)

    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(runner.run(stop_event=stop))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if manifold.orders:
                break
        await runner.orchestrator.drain()
        stop.set()
        await task

    asyncio.run(scenario())
    assert [o.contract_id for o in manifold.orders] == ["new1"]
    assert runner.observer.status is ConnectionStatus.CONNECTED
    assert runner.observer.feed[1].startswith('New market: "Will new1 happen?" by dana')
    assert any(e.kind is LogKind.TRADE for e in runner.observer.entries)
    assert "new1" in json.loads(cache_path.read_text())


def test_status_is_connecting_while_first_connect_is_pending(tmp_path):
    settings = Settings.from_dict({"storage": {"cache_path": str(tmp_path / "analyzed.json")}})
    connect_started = asyncio.Event()

    async def pending_stream(url, emit, **kwargs):
        connect_started.set()
        await asyncio.Event().wait()

    runner = BotRunner(settings, FakeManifold(), FakeOracle(), stream=pending_stream)
    assert runner.observer.status is ConnectionStatus.DISCONNECTED
    seen = []

    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(runner.run(stop_event=stop))
        await asyncio.wait_for(connect_started.wait(), 1.0)
        seen.append(runner.observer.status)
        stop.set()
        await task

    asyncio.run(scenario())
    assert seen == [ConnectionStatus.CONNECTING]
