"""Shared CLI helpers."""

from __future__ import annotations

import typer

from edgewatch.config import Settings


def require_keys(settings: Settings, *, oracle: bool = True) -> None:
    """Exit with a usage error when API keys are missing from the environment."""
    missing = []
    if not settings.manifold_api_key:
        missing.append("MANIFOLD_API_KEY")
    if oracle and not settings.oracle_api_key:
        missing.append("XAI_API_KEY")
    if missing:
        typer.echo(f"Missing environment variable(s): {', '.join(missing)} (set them or add a .env file)")
        raise typer.Exit(1)
