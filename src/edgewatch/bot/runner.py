"""Bot runner - wires stream -> event channel -> orchestrator, plus the log observer."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import structlog

from edgewatch.bot.dedup import DedupCache
from edgewatch.bot.evaluation import BotConfig, Evaluator
from edgewatch.bot.logbook import Logbook
from edgewatch.bot.orchestrator import Orchestrator
from edgewatch.clients.manifold import ManifoldClient
from edgewatch.clients.oracle import OracleClient
from edgewatch.config import Settings
from edgewatch.ingestion.manifold.ws import run_stream
from edgewatch.models import LogEntry, StreamEvent
from edgewatch.observer import ConnectionStatus, Observer
from edgewatch.storage.journal import Journal

log = structlog.get_logger(__name__)


class BotRunner:
    """Owns the channels and the long-running tasks of one bot process."""

    def __init__(
        self,
        settings: Settings,
        manifold: ManifoldClient,
        oracle: OracleClient,
        observer: Observer | None = None,
        journal: Journal | None = None,
        stream: Callable[..., Any] = run_stream,
    ):
        self.settings = settings
        self.manifold = manifold
        self.oracle = oracle
        self.journal = journal
        self.observer = observer or Observer(settings.observer_max_entries, journal=journal)
        self.events: asyncio.Queue[StreamEvent] = asyncio.Queue()
        self.logs: asyncio.Queue[LogEntry] = asyncio.Queue()
        self.logbook = Logbook(self.logs)
        config = BotConfig.from_settings(settings)
        self.orchestrator = Orchestrator(
            Evaluator(manifold, oracle, config, self.logbook, journal=journal),
            config,
            self.logbook,
            DedupCache.load(settings.cache_path, ttl_sec=settings.cache_ttl_sec),
            max_concurrent=settings.max_concurrent_evaluations,
        )
        self._stream = stream
        self._tasks: list[asyncio.Task[Any]] = []

    def _emit(self, event: StreamEvent) -> None:
        self.observer.on_event(event)
        self.events.put_nowait(event)

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Run until stop_event is set (or forever). In-flight evaluations are abandoned on stop."""
        stop = stop_event or asyncio.Event()
        s = self.settings
        self.observer.status = ConnectionStatus.CONNECTING
        self._tasks = [
            asyncio.create_task(
                self._stream(
                    s.ws_url,
                    self._emit,
                    ping_interval=s.ping_interval_sec,
                    stale_timeout=s.stale_timeout_sec,
                    reconnect_delay=s.reconnect_delay_sec,
                ),
                name="stream",
            ),
            asyncio.create_task(self.orchestrator.run(self.events), name="orchestrator"),
            asyncio.create_task(self.observer.consume_logs(self.logs), name="observer"),
        ]
        try:
            await stop.wait()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        while not self.logs.empty():
            self.observer.on_log(self.logs.get_nowait())
        log.info("bot_stopped", evaluations=self.orchestrator.spawned, in_flight=self.orchestrator.in_flight)


async def validate_account(manifold: ManifoldClient) -> Any:
    """Fetch the current user; raises ManifoldAPIError on a bad key."""
    user = await manifold.get_current_user()
    log.info("account", username=user.username, name=user.name, balance=user.balance)
    return user


def build_clients(settings: Settings) -> tuple[ManifoldClient, OracleClient]:
    manifold = ManifoldClient(settings.manifold_api_key, base_url=settings.manifold_api_base)
    oracle = OracleClient(
        settings.oracle_api_key,
        api_url=settings.oracle_api_url,
        model=settings.oracle_model,
        timeout=settings.oracle_timeout_sec,
    )
    return manifold, oracle
