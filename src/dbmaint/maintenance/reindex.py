"""Reindex job (``REINDEX TABLE`` of a configured table list)."""

from __future__ import annotations

from collections.abc import Sequence

from dbmaint.core.adapters.protocol import StoreGateway
from dbmaint.core.logging import get_logger
from dbmaint.core.models import JobKind, MaintenanceRun, ReindexStat
from dbmaint.core.timestamps import Clock, SystemClock

logger = get_logger(__name__)


class ReindexJob:
    """Rebuild indexes of a static list of tables, sequentially, in order."""

    kind = JobKind.REINDEX

    def __init__(
        self,
        store: StoreGateway,
        tables: Sequence[str],
        *,
        clock: Clock | None = None,
        job_id: str = "reindex",
    ) -> None:
        self.id = job_id
        self.store = store
        self.tables = tuple(tables)
        self.clock = clock or SystemClock()

    def run(self) -> MaintenanceRun:
        started_at = self.clock.now()
        run = MaintenanceRun(kind=self.kind, started_at=started_at, tables_processed=len(self.tables))

        if not self.tables:
            logger.info("reindex.nothing_to_do")
            run.total_elapsed = self.clock.now() - started_at
            return run

        for table in self.tables:
            logger.info("reindex.table_started", table=table)
            result = self.store.reindex_table(table)
            run.table_stats.append(ReindexStat(table=table, duration=result.duration))

        run.total_elapsed = self.clock.now() - started_at
        logger.info(
            "reindex.finished",
            tables=run.tables_processed,
            elapsed_s=round(run.total_elapsed.total_seconds(), 2),
        )
        return run


__all__ = ["ReindexJob"]
