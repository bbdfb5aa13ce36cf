"""Cache subcommand: inspect or reset the analyzed-markets dedup cache."""

from __future__ import annotations

import time

import typer

from edgewatch.bot.dedup import DedupCache

app = typer.Typer(help="Dedup cache of already-analyzed markets")


@app.command("show")
def show(ctx: typer.Context, limit: int = typer.Option(20, "--limit", "-n", help="Rows to print")) -> None:
    """List live cache entries, newest first."""
    settings = ctx.obj["settings"]
    cache = DedupCache.load(settings.cache_path, ttl_sec=settings.cache_ttl_sec)
    now = time.time()
    rows = sorted(cache.snapshot().items(), key=lambda kv: kv[1], reverse=True)
    for market_id, ts in rows[:limit]:
        age_h = (now - ts) / 3600
        typer.echo(f"  {market_id}  {age_h:5.1f}h ago")
    typer.echo(f"Total: {len(cache)} markets in cooldown ({settings.cache_path})")


@app.command("clear")
def clear(ctx: typer.Context, yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")) -> None:
    """Remove all entries so every market can be analyzed again."""
    settings = ctx.obj["settings"]
    if not yes:
        typer.confirm(f"Clear {settings.cache_path}?", abort=True)
    cache = DedupCache.load(settings.cache_path, ttl_sec=settings.cache_ttl_sec)
    count = len(cache)
    cache.clear()
    typer.echo(f"Cleared {count} entries.")
