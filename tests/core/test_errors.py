"""Tests for the typed error hierarchy."""

from __future__ import annotations

from dbmaint.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorCategory,
    InvalidConfigError,
    MaintenanceError,
    NotifierError,
    ScheduleError,
    error_details,
)


class TestCategories:
    def test_defaults_per_class(self):
        assert ConfigError("x").category == ErrorCategory.CONFIG
        assert DatabaseError("x").category == ErrorCategory.DATABASE
        assert NotifierError("x").category == ErrorCategory.NOTIFIER
        assert ScheduleError("x").category == ErrorCategory.SCHEDULING
        assert MaintenanceError("x").category == ErrorCategory.INTERNAL

    def test_retryable_defaults(self):
        assert DatabaseConnectionError("x").retryable is True
        assert NotifierError("x").retryable is True
        assert DatabaseError("x").retryable is False
        assert ConfigError("x").retryable is False

    def test_explicit_override(self):
        err = DatabaseError("x", retryable=True, category=ErrorCategory.INTERNAL)
        assert err.retryable is True
        assert err.category == ErrorCategory.INTERNAL

    def test_hierarchy(self):
        assert issubclass(InvalidConfigError, ConfigError)
        assert issubclass(DatabaseConnectionError, DatabaseError)
        assert issubclass(ScheduleError, MaintenanceError)


class TestContext:
    def test_with_context_known_fields(self):
        err = DatabaseError("boom").with_context(table="waypoints", operation="delete")
        assert err.context.table == "waypoints"
        assert err.context.operation == "delete"

    def test_with_context_unknown_goes_to_metadata(self):
        err = NotifierError("rejected").with_context(status_code=400)
        assert err.context.metadata == {"status_code": 400}

    def test_with_context_returns_self(self):
        err = ConfigError("x")
        assert err.with_context(job="cleanup") is err


class TestSerialization:
    def test_to_dict(self):
        cause = ValueError("bad")
        err = DatabaseError("delete failed", cause=cause).with_context(table="waypoints")
        data = err.to_dict()
        assert data["error_type"] == "DatabaseError"
        assert data["message"] == "delete failed"
        assert data["category"] == "DATABASE"
        assert data["context"]["table"] == "waypoints"
        assert data["cause"] == "bad"

    def test_cause_is_chained(self):
        cause = RuntimeError("driver")
        err = DatabaseError("wrapped", cause=cause)
        assert err.__cause__ is cause

    def test_invalid_config_message(self):
        err = InvalidConfigError("end_time", "25:00", "expected HH:MM or HH:MM:SS")
        assert str(err) == "Invalid value for 'end_time': '25:00' (expected HH:MM or HH:MM:SS)"

    def test_repr(self):
        assert repr(ScheduleError("bad cron")) == "ScheduleError('bad cron', category=SCHEDULING)"


class TestErrorDetails:
    def test_typed_error_fields(self):
        err = NotifierError("too many requests").with_context(operation="editMessageText")
        details = error_details(err)
        assert details["error"] == "too many requests"
        assert details["error_type"] == "NotifierError"
        assert details["retryable"] is True
        assert details["context"] == {"operation": "editMessageText"}
        assert "message" not in details

    def test_plain_exception(self):
        assert error_details(RuntimeError("boom")) == {"error": "boom", "error_type": "RuntimeError"}

    def test_empty_message_uses_type(self):
        assert error_details(TimeoutError())["error"] == "TimeoutError"
