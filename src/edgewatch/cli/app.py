"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from edgewatch.config import get_settings
from edgewatch.config.settings import configure_logging

app = typer.Typer(
    name="edgewatch",
    help="edgewatch - Watch Manifold markets, ask an oracle, bet on the edge.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from edgewatch.cli import account, cache, journal, run, tui_cmd  # noqa: E402

app.add_typer(run.app, name="run")
app.add_typer(account.app, name="account")
app.add_typer(cache.app, name="cache")
app.add_typer(journal.app, name="journal")
app.add_typer(tui_cmd.app, name="tui")


def main_entry() -> None:
    app()


if __name__ == "__main__":
    main_entry()
