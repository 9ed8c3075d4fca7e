"""Common shape of maintenance job bodies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dbmaint.core.models import JobKind, MaintenanceRun


@runtime_checkable
class MaintenanceJob(Protocol):
    """A job body: does the work and returns the run's statistics.

    Job bodies never talk to the notifier; sending, editing and error
    reporting belong to :func:`~dbmaint.maintenance.lifecycle.execute_run`.
    Any exception aborts the run.
    """

    id: str
    kind: JobKind

    def run(self) -> MaintenanceRun:
        ...


__all__ = ["MaintenanceJob"]
