"""
CLI: ``dbmaint window`` - cleanup window inspection.
"""

from __future__ import annotations

from pathlib import Path

import typer

from dbmaint.cli.utils import ConfigOption, console, fail, load_config
from dbmaint.core.errors import ConfigError
from dbmaint.core.timestamps import utc_now
from dbmaint.core.window import TimeWindow, time_of_day

app = typer.Typer(no_args_is_help=True)


@app.command("check")
def check_window(config: Path | None = ConfigOption) -> None:
    """Report whether the cleanup window is open now (UTC).

    Exits with status 0 when open and 3 when closed.
    """
    settings = load_config(config)
    try:
        window = TimeWindow.parse(settings.cleanup.start_time, settings.cleanup.end_time)
    except ConfigError as e:
        fail(e)

    now = time_of_day(utc_now())
    is_open = window.contains(now)
    state = "[green]open[/green]" if is_open else "[yellow]closed[/yellow]"
    console.print(f"Cleanup window {window} UTC is {state} (now {now.isoformat(timespec='seconds')} UTC)")
    if not is_open:
        raise typer.Exit(code=3)
