"""Journal subcommand: stats, tail."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import duckdb
import typer

from edgewatch.storage.db import get_connection
from edgewatch.storage.journal import journal_stats, recent_entries

app = typer.Typer(help="Bot journal statistics and recent log lines")


def _open(settings):
    path = Path(settings.journal_path)
    if not path.exists():
        typer.echo(f"No journal at {path}. Run: edgewatch run")
        raise typer.Exit(1)
    try:
        return get_connection(path, read_only=True)
    except (duckdb.IOException, duckdb.ConnectionException):
        typer.echo(f"Journal {path} is locked by a running bot; stop it or copy the file and read the copy.")
        raise typer.Exit(1) from None


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show log counts by kind and bet totals."""
    conn = _open(ctx.obj["settings"])
    try:
        s = journal_stats(conn)
        for kind, count in s["log_by_kind"].items():
            typer.echo(f"Log {kind}: {count}")
        typer.echo(f"Bets placed: {s['bet_count']}")
        typer.echo(f"Total staked: M${s['total_staked']:.0f}  filled: M${s['total_filled']:.0f}")
        for mode, count in s["bets_by_mode"].items():
            typer.echo(f"  {mode}: {count}")
    finally:
        conn.close()


@app.command("tail")
def tail(
    ctx: typer.Context,
    n: int = typer.Option(20, "--n", "-n", help="Number of entries"),
    kind: str | None = typer.Option(None, "--kind", "-k", help="info, trade or error"),
) -> None:
    """Print the most recent log entries."""
    conn = _open(ctx.obj["settings"])
    try:
        for row in recent_entries(conn, limit=n, kind=kind):
            ts = dt.datetime.fromtimestamp(row["ts"]).strftime("%Y-%m-%d %H:%M:%S")
            typer.echo(f"{ts}  {row['kind']:<5}  {row['message']}")
    finally:
        conn.close()
