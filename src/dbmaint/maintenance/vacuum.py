"""Compaction job (``VACUUM FULL`` of bloated tables).

The table list comes from the bloat-monitoring view at run start. Tables
are compacted one at a time in list order: each ``VACUUM FULL`` holds an
exclusive lock and rewrites the table, so running them side by side only
adds lock contention and I/O pressure.
"""

from __future__ import annotations

from dbmaint.core.adapters.protocol import StoreGateway
from dbmaint.core.logging import get_logger
from dbmaint.core.models import JobKind, MaintenanceRun, VacuumStat
from dbmaint.core.timestamps import Clock, SystemClock

logger = get_logger(__name__)


class VacuumJob:
    """Compact every table reported as bloated."""

    kind = JobKind.VACUUM

    def __init__(self, store: StoreGateway, *, clock: Clock | None = None, job_id: str = "vacuum") -> None:
        self.id = job_id
        self.store = store
        self.clock = clock or SystemClock()

    def run(self) -> MaintenanceRun:
        started_at = self.clock.now()
        tables = self.store.list_bloated_tables()
        run = MaintenanceRun(kind=self.kind, started_at=started_at, tables_processed=len(tables))

        if not tables:
            logger.info("vacuum.nothing_to_do")
            run.total_elapsed = self.clock.now() - started_at
            return run

        for table in tables:
            logger.info("vacuum.table_started", table=table)
            size_before = self.store.table_size(table)
            result = self.store.compact_table(table)
            stat = VacuumStat.measured(table, size_before, result.size_after)
            run.table_stats.append(stat)
            logger.info(
                "vacuum.table_completed",
                table=table,
                size_before=stat.size_before,
                size_after=stat.size_after,
                freed=stat.freed,
                duration_s=round(result.duration.total_seconds(), 2),
            )

        run.total_elapsed = self.clock.now() - started_at
        logger.info(
            "vacuum.finished",
            tables=run.tables_processed,
            freed=run.total_freed,
            elapsed_s=round(run.total_elapsed.total_seconds(), 2),
        )
        return run


__all__ = ["VacuumJob"]
