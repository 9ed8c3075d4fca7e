"""Tests for PostgreSQLGateway with a mocked psycopg2 pool."""

from __future__ import annotations

from unittest.mock import MagicMock

import psycopg2
import pytest

from dbmaint.core.adapters.postgresql import BLOAT_VIEW, CleanupTarget, PostgreSQLGateway
from dbmaint.core.adapters.protocol import StoreGateway
from dbmaint.core.errors import ConfigError, DatabaseConnectionError, DatabaseError


@pytest.fixture
def pool(monkeypatch):
    """Mock ThreadedConnectionPool handing out one mock connection."""
    pool = MagicMock()
    conn = MagicMock()
    conn.closed = 0
    pool.getconn.return_value = conn
    pool_cls = MagicMock(return_value=pool)
    monkeypatch.setattr(psycopg2.pool, "ThreadedConnectionPool", pool_cls)
    pool.cls = pool_cls
    pool.conn = conn
    pool.cursor = conn.cursor.return_value.__enter__.return_value
    return pool


@pytest.fixture
def gateway(pool):
    gw = PostgreSQLGateway(
        "postgresql://maint@db/app",
        cleanup=CleanupTarget(table="waypoints", retention_months=24, batch_size=1000),
    )
    gw.connect()
    return gw


class TestConnection:
    def test_connect_builds_pool(self, pool, gateway):
        assert gateway.is_connected
        kwargs = pool.cls.call_args.kwargs
        assert kwargs["dsn"] == "postgresql://maint@db/app"
        assert kwargs["application_name"] == "db-maintenance"

    def test_connect_failure_wrapped(self, monkeypatch):
        monkeypatch.setattr(
            psycopg2.pool,
            "ThreadedConnectionPool",
            MagicMock(side_effect=psycopg2.OperationalError("refused")),
        )
        gw = PostgreSQLGateway("postgresql://nowhere/app")
        with pytest.raises(DatabaseConnectionError, match="refused"):
            gw.connect()

    def test_close(self, pool, gateway):
        gateway.close()
        pool.closeall.assert_called_once()
        assert not gateway.is_connected

    def test_connection_returned_to_pool(self, pool, gateway):
        pool.cursor.description = None
        pool.cursor.rowcount = 0
        gateway.delete_oldest_batch()
        pool.putconn.assert_called_once_with(pool.conn, close=False)
        pool.conn.commit.assert_called_once()

    def test_satisfies_protocol(self, gateway):
        assert isinstance(gateway, StoreGateway)


class TestPrimitives:
    def test_list_bloated_tables(self, pool, gateway):
        pool.cursor.description = [("tablename",)]
        pool.cursor.fetchall.return_value = [("orders",), ("events",)]
        assert gateway.list_bloated_tables() == ["orders", "events"]
        statement = pool.cursor.execute.call_args.args[0]
        assert f"Identifier('{BLOAT_VIEW}')" in repr(statement)

    def test_compact_table_autocommit_and_size(self, pool, gateway):
        pool.cursor.description = [("size",)]
        pool.cursor.fetchall.return_value = [(524288,)]
        result = gateway.compact_table("orders")
        assert result.size_after == 524288
        assert result.duration.total_seconds() >= 0
        vacuum_stmt = pool.cursor.execute.call_args_list[0].args[0]
        assert "VACUUM FULL" in repr(vacuum_stmt)
        assert "Identifier('orders')" in repr(vacuum_stmt)

    def test_schema_qualified_name(self, pool, gateway):
        pool.cursor.description = None
        gateway.reindex_table("public.orders")
        statement = pool.cursor.execute.call_args.args[0]
        assert "Identifier('public', 'orders')" in repr(statement)

    def test_table_size_uses_regclass(self, pool, gateway):
        pool.cursor.description = [("size",)]
        pool.cursor.fetchall.return_value = [(1048576,)]
        assert gateway.table_size("orders") == 1048576
        statement, params = pool.cursor.execute.call_args.args
        assert "pg_total_relation_size" in statement
        assert params == ('"orders"',)

    def test_table_size_keeps_identifier_case(self, pool, gateway):
        """``Orders`` must not fold to ``orders`` in the regclass cast."""
        pool.cursor.description = [("size",)]
        pool.cursor.fetchall.return_value = [(8192,)]
        gateway.table_size("Sales.Orders")
        _, params = pool.cursor.execute.call_args.args
        assert params == ('"Sales"."Orders"',)

    def test_table_size_escapes_quotes(self, pool, gateway):
        pool.cursor.description = [("size",)]
        pool.cursor.fetchall.return_value = [(0,)]
        gateway.table_size('odd"name')
        _, params = pool.cursor.execute.call_args.args
        assert params == ('"odd""name"',)

    def test_row_count(self, pool, gateway):
        pool.cursor.description = [("count",)]
        pool.cursor.fetchall.return_value = [(237541,)]
        assert gateway.row_count() == 237541

    def test_delete_oldest_batch_params(self, pool, gateway):
        pool.cursor.description = None
        pool.cursor.rowcount = 1000
        assert gateway.delete_oldest_batch() == 1000
        _, params = pool.cursor.execute.call_args.args
        assert params == (24, 1000)

    def test_delete_negative_rowcount_is_zero(self, pool, gateway):
        pool.cursor.description = None
        pool.cursor.rowcount = -1
        assert gateway.delete_oldest_batch() == 0

    def test_driver_error_wrapped(self, pool, gateway):
        pool.cursor.execute.side_effect = psycopg2.errors.LockNotAvailable("locked")
        with pytest.raises(DatabaseError) as exc_info:
            gateway.reindex_table("orders")
        assert exc_info.value.context.table == "orders"
        assert exc_info.value.context.operation == "reindex_table"
        assert isinstance(exc_info.value.__cause__, psycopg2.Error)

    def test_error_rolls_back(self, pool, gateway):
        pool.cursor.execute.side_effect = psycopg2.OperationalError("gone")
        with pytest.raises(DatabaseError):
            gateway.delete_oldest_batch()
        pool.conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(pool.conn, close=False)

    def test_cleanup_requires_target(self, pool):
        gw = PostgreSQLGateway("postgresql://maint@db/app")
        with pytest.raises(ConfigError):
            gw.row_count()


class TestDeleteStatement:
    def test_keeps_rows_with_order_by_default(self):
        statement = PostgreSQLGateway.build_delete_statement(CleanupTarget(table="waypoints"))
        text = repr(statement)
        assert "Identifier('order_id')" in text
        assert "IS NULL" in text
        assert "make_interval(months => %s)" in text
        assert "ORDER BY" in text and "LIMIT %s" in text

    def test_delete_with_order_id(self):
        target = CleanupTarget(table="waypoints", delete_with_order_id=True)
        text = repr(PostgreSQLGateway.build_delete_statement(target))
        assert "order_id" not in text

    def test_custom_timestamp_column(self):
        target = CleanupTarget(table="waypoints", timestamp_column="recorded_at")
        assert "Identifier('recorded_at')" in repr(PostgreSQLGateway.build_delete_statement(target))

    @pytest.mark.parametrize("field", ["retention_months", "batch_size"])
    def test_target_validation(self, field):
        with pytest.raises(ConfigError):
            CleanupTarget(table="waypoints", **{field: 0})


class DroppedSessionConnection:
    """Connection whose server session dies during ``execute``.

    Like psycopg2, once closed it rejects ``rollback`` and the
    ``autocommit`` setter with ``InterfaceError``.
    """

    def __init__(self) -> None:
        self.closed = 0
        self._autocommit = False

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")
        self._autocommit = value

    def cursor(self):
        conn = self
        cursor = MagicMock()

        def execute(statement, params=()):
            conn.closed = 2
            raise psycopg2.OperationalError("server closed the connection unexpectedly")

        cursor.execute.side_effect = execute
        context = MagicMock()
        context.__enter__.return_value = cursor
        return context

    def commit(self) -> None:
        raise AssertionError("commit after a failed statement")

    def rollback(self) -> None:
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")


class TestDroppedSession:
    @pytest.fixture
    def dropped(self, pool):
        conn = DroppedSessionConnection()
        pool.getconn.return_value = conn
        return conn

    @pytest.mark.parametrize(
        "call",
        [
            lambda gw: gw.compact_table("orders"),
            lambda gw: gw.reindex_table("orders"),
            lambda gw: gw.row_count(),
            lambda gw: gw.delete_oldest_batch(),
        ],
        ids=["compact_table", "reindex_table", "row_count", "delete_oldest_batch"],
    )
    def test_connection_discarded_and_driver_error_kept(self, pool, gateway, dropped, call):
        with pytest.raises(DatabaseError, match="server closed the connection unexpectedly") as exc_info:
            call(gateway)

        pool.putconn.assert_called_once_with(dropped, close=True)
        assert isinstance(exc_info.value.__cause__, psycopg2.OperationalError)

    def test_pool_not_exhausted(self, pool, gateway, dropped):
        """Every checkout is returned, so repeated drops never starve later runs."""
        for _ in range(10):
            with pytest.raises(DatabaseError):
                gateway.reindex_table("orders")
        assert pool.getconn.call_count == pool.putconn.call_count == 10
