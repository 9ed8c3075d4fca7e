"""Run lifecycle: started message, job body, report edit.

Every fire of a job goes through the same state machine:

┌──────────────────────────────────────────────────────────────────────────────┐
│                                                                               │
│   SCHEDULED ──► veto says no ──► VETOED        (info log, no notification)    │
│       │                                                                       │
│       ▼                                                                       │
│   EXECUTING ── send(started) ──► handle                                       │
│       │                                                                       │
│       ├── body returns ──► edit(handle, report) ──► COMPLETED                 │
│       └── any exception ──► edit(handle, error) ──► FAILED ──► re-raise       │
│                                                                               │
└──────────────────────────────────────────────────────────────────────────────┘

The message handle is a local value of the run. Two jobs running at the
same time each edit their own message.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from dbmaint.core.errors import error_details
from dbmaint.core.logging import LogContext, get_logger
from dbmaint.core.models import MaintenanceRun
from dbmaint.core.timestamps import generate_run_id
from dbmaint.framework.notify.protocol import MessageHandle, Notifier
from dbmaint.maintenance.base import MaintenanceJob
from dbmaint.maintenance.report import RunReporter

logger = get_logger(__name__)


class RunState(str, Enum):
    """States of one job execution."""

    SCHEDULED = "scheduled"
    VETOED = "vetoed"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


StateListener = Callable[[str, RunState], None]


@dataclass(frozen=True)
class RunOutcome:
    """Result of a completed execution."""

    job_id: str
    run_id: str
    state: RunState
    run: MaintenanceRun
    handle: MessageHandle


def execute_run(
    job: MaintenanceJob,
    notifier: Notifier,
    reporter: RunReporter,
    *,
    on_state: StateListener | None = None,
) -> RunOutcome:
    """Execute one job body between a started message and its report.

    On any failure the started message is edited with an error summary
    (when it was sent at all), the error is logged and then re-raised so
    the scheduler's error listener sees it.
    """
    run_id = generate_run_id()

    def transition(state: RunState) -> None:
        if on_state is not None:
            on_state(job.id, state)

    with LogContext(job=job.id, run_id=run_id):
        transition(RunState.EXECUTING)
        handle: MessageHandle | None = None
        try:
            handle = notifier.send(reporter.started_message(job))
            logger.info("run.started", kind=job.kind.value)

            run = job.run()
            notifier.edit(handle, reporter.render(run))
        except Exception as e:
            transition(RunState.FAILED)
            logger.error("run.failed", kind=job.kind.value, **error_details(e))
            if handle is not None:
                try:
                    notifier.edit(handle, reporter.error_message(job.kind, e))
                except Exception as edit_error:
                    logger.error("run.error_report_failed", **error_details(edit_error))
            raise

        transition(RunState.COMPLETED)
        logger.info(
            "run.completed",
            kind=job.kind.value,
            tables=run.tables_processed,
            elapsed_s=round(run.total_elapsed.total_seconds(), 2),
        )
        return RunOutcome(job_id=job.id, run_id=run_id, state=RunState.COMPLETED, run=run, handle=handle)


__all__ = [
    "RunState",
    "RunOutcome",
    "StateListener",
    "execute_run",
]
