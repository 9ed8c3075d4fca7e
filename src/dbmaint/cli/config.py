"""
CLI: ``dbmaint config`` - configuration inspection.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from dbmaint.cli.utils import ConfigOption, console, load_config, print_settings_table

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    config: Path | None = ConfigOption,
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
) -> None:
    """Show effective settings (secrets masked)."""
    settings = load_config(config)
    data = settings.masked()

    if format == "json":
        console.print_json(json.dumps(data, default=str))
        return

    print_settings_table(data, title="db-maintenance settings")
