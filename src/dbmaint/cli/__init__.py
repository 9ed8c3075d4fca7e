"""
CLI layer for db-maintenance.

Provides a Typer application that wires settings, the PostgreSQL
gateway, the notifier and the scheduler together. All maintenance logic
lives in :mod:`dbmaint.maintenance` and :mod:`dbmaint.scheduling`.

Entry point::

    dbmaint --help
"""

from dbmaint.cli.app import app

__all__ = ["app"]
