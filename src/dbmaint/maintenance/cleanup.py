"""Batched historical-data cleanup.

Deletes rows older than the retention period from one table, one bounded
batch at a time, and never issues a delete once the maintenance window
has closed.

┌──────────────────────────────────────────────────────────────────────────────┐
│  BATCH LOOP                                                                   │
│                                                                               │
│   rows_before = row_count()                                                   │
│   loop:                                                                       │
│     ├── window closed?          ──► stop (WINDOW_CLOSED)                      │
│     ├── deleted = delete_oldest_batch()                                       │
│     ├── total += deleted                                                      │
│     └── deleted == 0?           ──► stop (DRAINED)                            │
│   rows_after = row_count()                                                    │
└──────────────────────────────────────────────────────────────────────────────┘

The engine keeps no cursor. A backlog larger than one window is worked
off over several scheduled runs because every run starts again from the
oldest rows still past retention.
"""

from __future__ import annotations

from dbmaint.core.adapters.protocol import StoreGateway
from dbmaint.core.errors import DatabaseError
from dbmaint.core.logging import get_logger
from dbmaint.core.models import CleanupStat, JobKind, MaintenanceRun, StopReason
from dbmaint.core.timestamps import Clock, SystemClock
from dbmaint.core.window import TimeWindow, time_of_day

logger = get_logger(__name__)


class BatchCleanupEngine:
    """Drives the bounded deletion loop for one cleanup run."""

    def __init__(
        self,
        store: StoreGateway,
        window: TimeWindow,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.window = window
        self.clock = clock or SystemClock()

    def run(self) -> CleanupStat:
        rows_before = self.store.row_count()
        total_deleted = 0
        batches = 0

        while True:
            # The window check must precede every delete call
            now = time_of_day(self.clock.now())
            if not self.window.contains(now):
                stop_reason = StopReason.WINDOW_CLOSED
                logger.info(
                    "cleanup.window_closed",
                    time=now.isoformat(timespec="seconds"),
                    window=str(self.window),
                    batches=batches,
                    total_deleted=total_deleted,
                )
                break

            deleted = self.store.delete_oldest_batch()
            if deleted < 0:
                raise DatabaseError(
                    f"delete_oldest_batch returned a negative count: {deleted}"
                ).with_context(operation="delete_oldest_batch")

            batches += 1
            total_deleted += deleted
            logger.info("cleanup.batch_deleted", batch=batches, deleted=deleted)

            if deleted == 0:
                stop_reason = StopReason.DRAINED
                break

        rows_after = self.store.row_count()
        return CleanupStat(
            rows_before=rows_before,
            rows_after=rows_after,
            total_deleted=total_deleted,
            batches=batches,
            stop_reason=stop_reason,
        )


class CleanupJob:
    """Cleanup job body wrapping :class:`BatchCleanupEngine`."""

    kind = JobKind.CLEANUP

    def __init__(
        self,
        store: StoreGateway,
        window: TimeWindow,
        *,
        retention_months: int,
        clock: Clock | None = None,
        job_id: str = "cleanup",
    ) -> None:
        self.id = job_id
        self.retention_months = retention_months
        self.window = window
        self.clock = clock or SystemClock()
        self.engine = BatchCleanupEngine(store, window, self.clock)

    def run(self) -> MaintenanceRun:
        started_at = self.clock.now()
        logger.info("cleanup.started", retention_months=self.retention_months, window=str(self.window))

        stat = self.engine.run()

        run = MaintenanceRun(
            kind=self.kind,
            started_at=started_at,
            tables_processed=1,
            total_elapsed=self.clock.now() - started_at,
            table_stats=[stat],
        )
        logger.info(
            "cleanup.finished",
            total_deleted=stat.total_deleted,
            rows_before=stat.rows_before,
            rows_after=stat.rows_after,
            stop_reason=stat.stop_reason.value,
            elapsed_s=round(run.total_elapsed.total_seconds(), 2),
        )
        return run


__all__ = [
    "BatchCleanupEngine",
    "CleanupJob",
]
