"""PostgreSQL store gateway.

Implements :class:`~dbmaint.core.adapters.protocol.StoreGateway` on top of
a ``psycopg2`` threaded connection pool. Every primitive checks out its
own connection so concurrently running jobs never share a session.

``VACUUM FULL`` and ``REINDEX`` cannot run inside a transaction block and
are executed with autocommit enabled. Batch deletes run in their own
short transaction so each committed batch is durable progress: a later
run resumes from whatever rows are still past retention.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import psycopg2
import psycopg2.pool
from psycopg2 import sql

from dbmaint.core.errors import ConfigError, DatabaseConnectionError, DatabaseError
from dbmaint.core.logging import get_logger

from .protocol import CompactResult, ReindexResult

logger = get_logger(__name__)

BLOAT_VIEW = "bloat_monitor"


@dataclass(frozen=True)
class CleanupTarget:
    """Which table the batched cleanup deletes from and how."""

    table: str
    timestamp_column: str = "created_at"
    retention_months: int = 24
    batch_size: int = 100_000
    order_column: str = "order_id"
    delete_with_order_id: bool = False

    def __post_init__(self) -> None:
        if self.retention_months < 1:
            raise ConfigError(f"retention_months must be >= 1, got {self.retention_months}")
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {self.batch_size}")


def _relation(name: str) -> sql.Composable:
    """Quote ``table`` or ``schema.table``."""
    return sql.Identifier(*name.split(".", 1))


def _regclass_text(name: str) -> str:
    """``schema.table`` as quoted identifier text for a ``::regclass`` cast.

    Quoting keeps the case of mixed-case names, as ``sql.Identifier`` does
    for the statements themselves.
    """
    return ".".join('"' + part.replace('"', '""') + '"' for part in name.split(".", 1))


class PostgreSQLGateway:
    """
    PostgreSQL maintenance gateway.

    Example:
        >>> gateway = PostgreSQLGateway(
        ...     "postgresql://maint@db/app",
        ...     cleanup=CleanupTarget(table="waypoints"),
        ... )
        >>> gateway.list_bloated_tables()
        ['orders', 'events']
    """

    def __init__(
        self,
        dsn: str,
        *,
        cleanup: CleanupTarget | None = None,
        pool_min: int = 1,
        pool_max: int = 5,
        connect_timeout: int = 10,
    ):
        self._dsn = dsn
        self._cleanup = cleanup
        self._pool_min = pool_min
        self._pool_max = pool_max
        self._connect_timeout = connect_timeout
        self._pool: Any = None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Create the connection pool."""
        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=self._pool_min,
                maxconn=self._pool_max,
                dsn=self._dsn,
                connect_timeout=self._connect_timeout,
                application_name="db-maintenance",
            )
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e
        logger.info("store.connected", pool_max=self._pool_max)

    def close(self) -> None:
        """Close every pooled connection."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
            logger.info("store.closed")

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @contextmanager
    def _connection(self, *, autocommit: bool = False) -> Iterator[Any]:
        if self._pool is None:
            self.connect()
        try:
            conn = self._pool.getconn()
        except (psycopg2.Error, psycopg2.pool.PoolError) as e:
            raise DatabaseConnectionError(f"No database connection available: {e}", cause=e) from e
        try:
            conn.autocommit = autocommit
            yield conn
            if not autocommit:
                conn.commit()
        except Exception:
            # a dropped session rejects rollback; keep the driver's own error
            if not autocommit and not conn.closed:
                conn.rollback()
            raise
        finally:
            if not conn.closed:
                conn.autocommit = False
            # a broken connection is discarded so the pool slot is freed
            self._pool.putconn(conn, close=bool(conn.closed))

    def _execute(
        self,
        operation: str,
        statement: sql.Composable | str,
        params: tuple = (),
        *,
        autocommit: bool = False,
        table: str | None = None,
    ) -> tuple[Any, int]:
        """Run one statement; return ``(rows or None, rowcount)``."""
        try:
            with self._connection(autocommit=autocommit) as conn, conn.cursor() as cursor:
                cursor.execute(statement, params)
                rows = cursor.fetchall() if cursor.description is not None else None
                return rows, cursor.rowcount
        except psycopg2.Error as e:
            raise DatabaseError(f"{operation} failed: {e}", cause=e).with_context(
                operation=operation, table=table
            ) from e

    # ------------------------------------------------------------------
    # StoreGateway protocol
    # ------------------------------------------------------------------

    def list_bloated_tables(self) -> list[str]:
        statement = sql.SQL("SELECT tablename FROM {}").format(sql.Identifier(BLOAT_VIEW))
        rows, _ = self._execute("list_bloated_tables", statement)
        tables = [row[0] for row in rows or []]
        logger.info("store.bloated_tables", count=len(tables))
        return tables

    def compact_table(self, name: str) -> CompactResult:
        statement = sql.SQL("VACUUM FULL {}").format(_relation(name))
        started = time.monotonic()
        self._execute("compact_table", statement, autocommit=True, table=name)
        duration = timedelta(seconds=time.monotonic() - started)
        size_after = self.table_size(name)
        logger.info(
            "store.vacuum_full_completed",
            table=name,
            duration_s=round(duration.total_seconds(), 2),
            size_after=size_after,
        )
        return CompactResult(duration=duration, size_after=size_after)

    def reindex_table(self, name: str) -> ReindexResult:
        statement = sql.SQL("REINDEX TABLE {}").format(_relation(name))
        started = time.monotonic()
        self._execute("reindex_table", statement, autocommit=True, table=name)
        duration = timedelta(seconds=time.monotonic() - started)
        logger.info("store.reindex_completed", table=name, duration_s=round(duration.total_seconds(), 2))
        return ReindexResult(duration=duration)

    def table_size(self, name: str) -> int:
        rows, _ = self._execute(
            "table_size",
            "SELECT pg_total_relation_size(%s::regclass)",
            (_regclass_text(name),),
            table=name,
        )
        if not rows or rows[0][0] is None:
            return 0
        return int(rows[0][0])

    def row_count(self) -> int:
        target = self._require_cleanup()
        statement = sql.SQL("SELECT count(*) FROM {}").format(_relation(target.table))
        rows, _ = self._execute("row_count", statement, table=target.table)
        return int(rows[0][0]) if rows else 0

    def delete_oldest_batch(self) -> int:
        target = self._require_cleanup()
        _, deleted = self._execute(
            "delete_oldest_batch",
            self.build_delete_statement(target),
            (target.retention_months, target.batch_size),
            table=target.table,
        )
        return max(deleted, 0)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def build_delete_statement(target: CleanupTarget) -> sql.Composed:
        """Compose the bounded delete for *target*.

        Rows are addressed by ``ctid`` so the batch size is honoured even
        on tables without a primary key. Rows referencing an order are
        kept unless ``delete_with_order_id`` is set.
        """
        table = _relation(target.table)
        ts = sql.Identifier(target.timestamp_column)
        conditions = [sql.SQL("{} < now() - make_interval(months => %s)").format(ts)]
        if not target.delete_with_order_id:
            conditions.append(sql.SQL("{} IS NULL").format(sql.Identifier(target.order_column)))

        return sql.SQL(
            "DELETE FROM {table} WHERE ctid IN ("
            "SELECT ctid FROM {table} WHERE {where} ORDER BY {ts} LIMIT %s)"
        ).format(
            table=table,
            where=sql.SQL(" AND ").join(conditions),
            ts=ts,
        )

    def _require_cleanup(self) -> CleanupTarget:
        if self._cleanup is None:
            raise ConfigError("No cleanup table configured for this gateway")
        return self._cleanup


__all__ = [
    "CleanupTarget",
    "PostgreSQLGateway",
]
