"""Run subcommand: start the bot headless until Ctrl+C."""

from __future__ import annotations

import asyncio
import signal
import sys

import typer

from edgewatch.bot.runner import BotRunner, build_clients, validate_account
from edgewatch.cli.common import require_keys
from edgewatch.clients.manifold import ManifoldAPIError
from edgewatch.storage.journal import Journal

app = typer.Typer(help="Run the trading bot")


async def _run(settings, stop_event: asyncio.Event, journal: Journal) -> None:
    manifold, oracle = build_clients(settings)
    try:
        user = await validate_account(manifold)
        typer.echo(f"User: {user.name} (@{user.username})  Balance: M${user.balance:.0f}")
        runner = BotRunner(settings, manifold, oracle, journal=journal)
        await runner.run(stop_event=stop_event)
    finally:
        await manifold.aclose()
        await oracle.aclose()


@app.callback(invoke_without_command=True)
def run(ctx: typer.Context) -> None:
    """Connect to the Manifold stream and trade until interrupted."""
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj["settings"]
    require_keys(settings)
    journal = Journal(settings.journal_path)
    stop_event = asyncio.Event()

    def shutdown() -> None:
        stop_event.set()

    loop = asyncio.new_event_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, shutdown)
        loop.add_signal_handler(signal.SIGTERM, shutdown)
    try:
        typer.echo("Starting bot (Ctrl+C to stop)...")
        loop.run_until_complete(_run(settings, stop_event, journal))
    except ManifoldAPIError as e:
        typer.echo(f"Manifold API key rejected: {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        pass
    finally:
        journal.close()
        loop.close()
    typer.echo("Stopped.")
