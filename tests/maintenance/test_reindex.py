"""Tests for the reindex job."""

from __future__ import annotations

from datetime import timedelta

import pytest

from dbmaint.core.errors import DatabaseError
from dbmaint.core.models import JobKind, ReindexStat
from dbmaint.maintenance.reindex import ReindexJob
from tests._support.fakes import FakeStore


class TestReindexJob:
    def test_reindexes_configured_tables_in_order(self, clock):
        store = FakeStore(operation_time=timedelta(seconds=2))
        run = ReindexJob(store, ["orders", "events"], clock=clock).run()

        assert run.kind == JobKind.REINDEX
        assert run.tables_processed == 2
        assert run.table_stats == [
            ReindexStat("orders", timedelta(seconds=2)),
            ReindexStat("events", timedelta(seconds=2)),
        ]
        assert store.calls == [("reindex_table", "orders"), ("reindex_table", "events")]

    def test_empty_list(self, clock):
        store = FakeStore()
        run = ReindexJob(store, [], clock=clock).run()
        assert run.tables_processed == 0
        assert store.calls == []

    def test_failure_stops_at_failing_table(self, clock):
        store = FakeStore(failures={"reindex_table:b": DatabaseError("deadlock detected")})
        with pytest.raises(DatabaseError, match="deadlock"):
            ReindexJob(store, ["a", "b", "c"], clock=clock).run()
        assert [arg for _, arg in store.calls] == ["a", "b"]

    def test_tables_frozen(self, clock):
        tables = ["a"]
        job = ReindexJob(FakeStore(), tables, clock=clock)
        tables.append("b")
        assert job.tables == ("a",)
