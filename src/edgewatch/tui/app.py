"""Textual TUI dashboard - account, connection status, event feed, trade log."""

from __future__ import annotations

import asyncio
import datetime as dt
from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import Footer, Header, RichLog, Static

from edgewatch.bot.runner import BotRunner, build_clients, validate_account
from edgewatch.models import LogKind
from edgewatch.observer import Observer, unseen
from edgewatch.storage.journal import Journal

_KIND_STYLE = {LogKind.INFO: "white", LogKind.TRADE: "bold green", LogKind.ERROR: "bold red"}


class StatusPanel(Static):
    """User, balance and connection status."""

    user = reactive("-")
    balance = reactive(0.0)
    status = reactive("Disconnected")
    in_flight = reactive(0)

    def render(self) -> str:
        color = {"Connected": "green", "Connecting...": "yellow"}.get(self.status, "red")
        return (
            f"[bold]User[/] {self.user}  |  Balance: M${self.balance:.0f}  |  "
            f"Status: [{color}]{self.status}[/]  |  Evaluations in flight: {self.in_flight}"
        )


class EdgewatchTUI(App[None]):
    """Runs the bot in-process and renders the observer's bounded history."""

    TITLE = "edgewatch"
    BINDINGS = [("q", "quit", "Quit")]
    CSS = "Horizontal { height: 1fr; } RichLog { width: 1fr; border: round $accent; }"

    def __init__(self, settings: Any, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._settings = settings
        self._journal = Journal(settings.journal_path)
        self._observer = Observer(settings.observer_max_entries, journal=self._journal)
        self._runner: BotRunner | None = None
        self._stop_event = asyncio.Event()
        self._bot_task: asyncio.Task[None] | None = None
        self._feed_seen = 0
        self._log_seen = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield StatusPanel(id="status")
        with Horizontal():
            yield RichLog(id="feed", markup=False, wrap=True, max_lines=self._settings.observer_max_entries)
            yield RichLog(id="log", markup=False, wrap=True, max_lines=self._settings.observer_max_entries)
        yield Footer()

    def on_mount(self) -> None:
        self._bot_task = asyncio.create_task(self._run_bot())
        self.set_interval(0.5, self._refresh)

    async def _run_bot(self) -> None:
        manifold, oracle = build_clients(self._settings)
        try:
            user = await validate_account(manifold)
            panel = self.query_one(StatusPanel)
            panel.user = f"{user.name} (@{user.username})"
            panel.balance = user.balance
            self._runner = BotRunner(self._settings, manifold, oracle, observer=self._observer, journal=self._journal)
            await self._runner.run(stop_event=self._stop_event)
        except Exception as e:
            self.query_one("#log", RichLog).write(Text(f"Bot stopped: {e}", style="bold red"))
        finally:
            await manifold.aclose()
            await oracle.aclose()

    def _refresh(self) -> None:
        panel = self.query_one(StatusPanel)
        panel.status = self._observer.status.value
        if self._runner is not None:
            panel.in_flight = self._runner.orchestrator.in_flight
        feed = self.query_one("#feed", RichLog)
        for line in unseen(self._observer.feed, self._observer.feed_total, self._feed_seen):
            feed.write(line)
        self._feed_seen = self._observer.feed_total
        log_view = self.query_one("#log", RichLog)
        for entry in unseen(self._observer.entries, self._observer.entries_total, self._log_seen):
            ts = dt.datetime.fromtimestamp(entry.ts).strftime("%H:%M:%S")
            log_view.write(Text.assemble((ts, "dim"), " ", (entry.message, _KIND_STYLE[entry.kind])))
        self._log_seen = self._observer.entries_total

    async def on_unmount(self) -> None:
        self._stop_event.set()
        if self._bot_task and not self._bot_task.done():
            await asyncio.gather(self._bot_task, return_exceptions=True)
        self._journal.close()


def run_tui(settings: Any) -> None:
    """Entry point: run the bot inside the TUI."""
    EdgewatchTUI(settings).run()
