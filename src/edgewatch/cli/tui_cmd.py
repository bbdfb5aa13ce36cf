"""TUI dashboard command."""

import typer

from edgewatch.cli.common import require_keys
from edgewatch.tui.app import run_tui

app = typer.Typer(help="Launch TUI dashboard")


@app.callback(invoke_without_command=True)
def tui(ctx: typer.Context) -> None:
    """Launch the Textual dashboard (status, event feed, trade log) and run the bot inside it."""
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj["settings"]
    require_keys(settings)
    run_tui(settings)
