"""
CLI utility helpers: settings loading, component wiring and output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from dbmaint.core.adapters.postgresql import CleanupTarget, PostgreSQLGateway
from dbmaint.core.config import MaintenanceSettings, load_settings
from dbmaint.core.errors import MaintenanceError
from dbmaint.framework.notify import ConsoleNotifier, Notifier, TelegramNotifier

console = Console()
err_console = Console(stderr=True)

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="TOML settings file (defaults to $DBMAINT_CONFIG).",
    dir_okay=False,
)


# ── Settings and wiring ──────────────────────────────────────────────────


def load_config(path: Path | None) -> MaintenanceSettings:
    """Load settings or exit with status 1 and the error on stderr."""
    try:
        return load_settings(path)
    except MaintenanceError as e:
        fail(e)


def build_gateway(settings: MaintenanceSettings) -> PostgreSQLGateway:
    """Connected PostgreSQL gateway for *settings*."""
    section = settings.cleanup
    target = CleanupTarget(
        table=section.table,
        timestamp_column=section.timestamp_column,
        retention_months=section.retention_months,
        batch_size=section.batch_size,
        order_column=section.order_column,
        delete_with_order_id=section.delete_with_order_id,
    )
    gateway = PostgreSQLGateway(
        settings.database.dsn,
        cleanup=target,
        pool_min=settings.database.pool_min,
        pool_max=settings.database.pool_max,
        connect_timeout=settings.database.connect_timeout,
    )
    gateway.connect()
    return gateway


def build_notifier(settings: MaintenanceSettings) -> Notifier:
    """Telegram notifier when a bot token and chat are set, console otherwise."""
    telegram = settings.telegram
    if not telegram.configured:
        return ConsoleNotifier()
    return TelegramNotifier(
        telegram.bot_token.get_secret_value(),
        telegram.chat_id,
        disable_notification=telegram.disable_notification,
        api_base=telegram.api_base,
        timeout=telegram.timeout_seconds,
    )


def close_quietly(resource: Any) -> None:
    close = getattr(resource, "close", None)
    if callable(close):
        close()


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: MaintenanceError | str, code: int = 1) -> NoReturn:
    """Print *error* to stderr and exit with *code*."""
    if isinstance(error, MaintenanceError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=code)


def flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """``{"a": {"b": 1}} -> {"a.b": 1}``"""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def print_settings_table(data: dict[str, Any], *, title: str = "") -> None:
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("Setting")
    table.add_column("Value", overflow="fold")
    for key, value in flatten(data).items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)
