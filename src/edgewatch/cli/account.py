"""Account subcommand: validate the Manifold key and show balance."""

from __future__ import annotations

import asyncio

import typer

from edgewatch.cli.common import require_keys
from edgewatch.clients.manifold import ManifoldAPIError, ManifoldClient

app = typer.Typer(help="Show the authenticated Manifold account")


@app.callback(invoke_without_command=True)
def account(ctx: typer.Context) -> None:
    """Print user name and balance for MANIFOLD_API_KEY."""
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj["settings"]
    require_keys(settings, oracle=False)

    async def fetch():
        client = ManifoldClient(settings.manifold_api_key, base_url=settings.manifold_api_base)
        try:
            return await client.get_current_user()
        finally:
            await client.aclose()

    try:
        user = asyncio.run(fetch())
    except ManifoldAPIError as e:
        typer.echo(str(e))
        raise typer.Exit(1)
    typer.echo(f"User: {user.name} (@{user.username})")
    typer.echo(f"Balance: M${user.balance:.0f}")
