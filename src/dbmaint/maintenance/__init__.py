"""Maintenance job bodies, batch cleanup engine, reporting and run lifecycle."""

from dbmaint.maintenance.base import MaintenanceJob
from dbmaint.maintenance.cleanup import BatchCleanupEngine, CleanupJob
from dbmaint.maintenance.lifecycle import RunOutcome, RunState, execute_run
from dbmaint.maintenance.reindex import ReindexJob
from dbmaint.maintenance.report import RunReporter, format_number, format_size
from dbmaint.maintenance.vacuum import VacuumJob

__all__ = [
    "MaintenanceJob",
    "VacuumJob",
    "ReindexJob",
    "CleanupJob",
    "BatchCleanupEngine",
    "RunReporter",
    "format_size",
    "format_number",
    "RunState",
    "RunOutcome",
    "execute_run",
]
