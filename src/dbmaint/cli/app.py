"""
Root Typer application for the db-maintenance CLI.

``dbmaint run`` is the long-running service; the other commands are
one-shot helpers for operators.
"""

from __future__ import annotations

import signal
import threading
from pathlib import Path

import typer
from typer import Typer

from dbmaint.cli.utils import (
    ConfigOption,
    build_gateway,
    build_notifier,
    close_quietly,
    console,
    fail,
    load_config,
)
from dbmaint.core.errors import MaintenanceError
from dbmaint.core.logging import configure_logging, get_logger
from dbmaint.scheduling.service import create_scheduler

logger = get_logger(__name__)

app = Typer(
    name="dbmaint",
    help="db-maintenance: scheduled VACUUM FULL, REINDEX and batched cleanup.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from dbmaint import __version__

        typer.echo(f"dbmaint {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """db-maintenance CLI: run the scheduler or inspect its configuration."""


# ── Service commands ─────────────────────────────────────────────────────


@app.command("run")
def run_service(config: Path | None = ConfigOption) -> None:
    """Start the scheduler and block until SIGINT or SIGTERM."""
    settings = load_config(config)
    configure_logging(settings.log_level, json_format=settings.json_logs)

    try:
        gateway = build_gateway(settings)
    except MaintenanceError as e:
        logger.error("process.database_unavailable", error=str(e))
        fail(e)
    notifier = build_notifier(settings)

    stop_requested = threading.Event()

    def _request_stop(signum: int, frame: object) -> None:
        logger.info("process.signal_received", signal=signal.Signals(signum).name)
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    scheduler = create_scheduler(settings, gateway, notifier)
    try:
        scheduler.start()
        stop_requested.wait()
    finally:
        scheduler.stop()
        close_quietly(notifier)
        gateway.close()
    logger.info("process.exited")


@app.command("once")
def run_once(
    job: str = typer.Argument(..., help="Job to run: vacuum, reindex or cleanup"),
    config: Path | None = ConfigOption,
) -> None:
    """Run one job now. The cleanup window still applies."""
    settings = load_config(config)
    configure_logging(settings.log_level, json_format=settings.json_logs)

    try:
        gateway = build_gateway(settings)
    except MaintenanceError as e:
        fail(e)
    notifier = build_notifier(settings)

    try:
        scheduler = create_scheduler(settings, gateway, notifier)
        if job not in scheduler.job_ids:
            reason = scheduler.config_errors.get(job, "not configured or disabled")
            fail(f"Job {job!r} is not available: {reason}", code=2)

        try:
            outcome = scheduler.fire(job)
        except MaintenanceError as e:
            fail(e)

        if outcome is None:
            console.print(f"[yellow]Skipped[/yellow] {job}: outside the maintenance window")
            return
        console.print(
            f"[green]Completed[/green] {job}: {outcome.run.tables_processed} table(s) "
            f"in {outcome.run.total_elapsed.total_seconds():.2f} sec"
        )
    finally:
        close_quietly(notifier)
        gateway.close()


# ── Sub-command registration ─────────────────────────────────────────────

from dbmaint.cli.config import app as config_app  # noqa: E402
from dbmaint.cli.window import app as window_app  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration inspection.")
app.add_typer(window_app, name="window", help="Cleanup window inspection.")
