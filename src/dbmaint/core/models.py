"""Maintenance domain models.

Plain dataclasses describing configured jobs and the outcome of a single
run. A :class:`MaintenanceRun` is owned by the executing job body and is
discarded after reporting; nothing here is persisted.

Tags:
    db-maintenance, models, dataclasses
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from dbmaint.core.window import TimeWindow


class JobKind(str, Enum):
    """Kinds of maintenance job."""

    VACUUM = "vacuum"
    REINDEX = "reindex"
    CLEANUP = "cleanup"


class StopReason(str, Enum):
    """Why the batch cleanup loop terminated."""

    DRAINED = "drained"
    WINDOW_CLOSED = "window_closed"


@dataclass(frozen=True)
class JobDescriptor:
    """A configured job, read-only for the process lifetime.

    ``tables`` is only meaningful for reindex jobs; ``retention_months``,
    ``batch_size`` and ``window`` only for cleanup jobs.
    """

    id: str
    kind: JobKind
    cron_expression: str
    enabled: bool = True
    tables: tuple[str, ...] = ()
    retention_months: int | None = None
    batch_size: int | None = None
    window: TimeWindow | None = None


# =============================================================================
# Per-entity statistics
# =============================================================================


@dataclass(frozen=True)
class VacuumStat:
    """Compaction result for one table. ``freed`` may be negative."""

    table: str
    size_before: int
    size_after: int
    freed: int

    @classmethod
    def measured(cls, table: str, size_before: int, size_after: int) -> VacuumStat:
        return cls(table, size_before, size_after, size_before - size_after)


@dataclass(frozen=True)
class ReindexStat:
    """Reindex result for one table."""

    table: str
    duration: timedelta


@dataclass(frozen=True)
class CleanupStat:
    """Aggregate result of one batched cleanup run."""

    rows_before: int
    rows_after: int
    total_deleted: int
    batches: int = 0
    stop_reason: StopReason = StopReason.DRAINED


TableStat = VacuumStat | ReindexStat | CleanupStat


@dataclass
class MaintenanceRun:
    """Outcome of one job execution."""

    kind: JobKind
    started_at: datetime
    tables_processed: int = 0
    total_elapsed: timedelta = field(default_factory=timedelta)
    table_stats: list[TableStat] = field(default_factory=list)

    @property
    def total_freed(self) -> int:
        """Sum of ``freed`` across compaction stats (signed)."""
        return sum(s.freed for s in self.table_stats if isinstance(s, VacuumStat))

    @property
    def cleanup(self) -> CleanupStat | None:
        for stat in self.table_stats:
            if isinstance(stat, CleanupStat):
                return stat
        return None


__all__ = [
    "JobKind",
    "StopReason",
    "JobDescriptor",
    "VacuumStat",
    "ReindexStat",
    "CleanupStat",
    "TableStat",
    "MaintenanceRun",
]
