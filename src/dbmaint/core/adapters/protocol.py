"""Store gateway protocol.

The maintenance jobs never issue SQL themselves. They call the opaque
primitives below, each of which blocks until the database has finished
and returns timing/size numbers.

┌──────────────────────────────────────────────────────────────────────────────┐
│  STORE GATEWAY                                                                │
│                                                                               │
│   list_bloated_tables()   ──► ["orders", "events", ...]                       │
│   compact_table(name)     ──► CompactResult(duration, size_after)             │
│   reindex_table(name)     ──► ReindexResult(duration)                         │
│   table_size(name)        ──► bytes                                           │
│   row_count()             ──► rows in the cleanup table                       │
│   delete_oldest_batch()   ──► rows deleted (0 = drained)                      │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class CompactResult:
    """Result of a ``VACUUM FULL``."""

    duration: timedelta
    size_after: int


@dataclass(frozen=True)
class ReindexResult:
    """Result of a ``REINDEX TABLE``."""

    duration: timedelta


@runtime_checkable
class StoreGateway(Protocol):
    """Maintenance primitives against the relational store.

    Implementations must be safe to call from several scheduler worker
    threads at once; each call uses its own connection.
    """

    def list_bloated_tables(self) -> list[str]:
        """Tables currently reported by the bloat-monitoring view, in order."""
        ...

    def compact_table(self, name: str) -> CompactResult:
        """Rewrite *name* to reclaim space (takes an exclusive lock)."""
        ...

    def reindex_table(self, name: str) -> ReindexResult:
        """Rebuild all indexes of *name*."""
        ...

    def table_size(self, name: str) -> int:
        """Total on-disk size of *name* in bytes, including indexes and TOAST."""
        ...

    def row_count(self) -> int:
        """Number of rows in the cleanup table."""
        ...

    def delete_oldest_batch(self) -> int:
        """Delete one bounded batch of the oldest rows past retention.

        Returns the number of rows deleted; 0 means nothing is eligible.
        """
        ...


__all__ = [
    "CompactResult",
    "ReindexResult",
    "StoreGateway",
]
