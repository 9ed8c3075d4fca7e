"""
Structured error types for db-maintenance.

Provides a small hierarchy of typed errors carrying a category, a
retryable flag, structured context and a chained cause. Nothing in this
service retries automatically; ``retryable`` is informational and is
surfaced in logs through ``error_details``.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                     MaintenanceError                             │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError        DatabaseError        NotifierError           │
        │  (CONFIG)           (DATABASE)           (NOTIFIER)              │
        │       │                  │                                       │
        │  InvalidConfigError DatabaseConnectionError                      │
        │                                                                  │
        │  ScheduleError                                                   │
        │  (SCHEDULING)                                                    │
        └─────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Swallow the original driver/transport exception
    ✅ DO: Pass it as cause= for error chaining

Usage:
    from dbmaint.core.errors import DatabaseError

    try:
        cursor.execute(stmt)
    except psycopg2.Error as e:
        raise DatabaseError(f"VACUUM FULL failed: {e}", cause=e) from e
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification in logs and reports."""

    CONFIG = "CONFIG"
    DATABASE = "DATABASE"
    NOTIFIER = "NOTIFIER"
    SCHEDULING = "SCHEDULING"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        job: Job id the error occurred in (``vacuum``, ``reindex``, ``cleanup``)
        table: Table being processed, if any
        operation: Store or notifier operation name
        metadata: Additional key-value pairs
    """

    job: str | None = None
    table: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["job", "table", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MaintenanceError(Exception):
    """
    Base exception for all db-maintenance errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MaintenanceError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DatabaseError("Failed").with_context(table="waypoints")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (never retryable)
# =============================================================================


class ConfigError(MaintenanceError):
    """Configuration is missing or unusable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """A configuration value failed to parse or validate.

    Raised for unparseable time-of-day strings, inverted maintenance
    windows and malformed cron expressions.
    """

    def __init__(self, key: str, value: Any, reason: str, **kwargs: Any):
        super().__init__(f"Invalid value for {key!r}: {value!r} ({reason})", **kwargs)
        self.key = key
        self.value = value
        self.reason = reason


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(MaintenanceError):
    """A store operation failed."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class DatabaseConnectionError(DatabaseError):
    """Could not obtain a database connection."""

    default_retryable = True


# =============================================================================
# NOTIFIER / SCHEDULING ERRORS
# =============================================================================


class NotifierError(MaintenanceError):
    """The operator notification channel rejected a send or edit."""

    default_category = ErrorCategory.NOTIFIER
    default_retryable = True


class ScheduleError(MaintenanceError):
    """A job could not be registered with the scheduler."""

    default_category = ErrorCategory.SCHEDULING
    default_retryable = False


def error_details(error: BaseException) -> dict[str, Any]:
    """Log fields for *error*.

    Typed errors log their full ``to_dict()`` form, other exceptions only
    their type and text.
    """
    if isinstance(error, MaintenanceError):
        details = error.to_dict()
        details["error"] = details.pop("message")
        return details
    return {"error": str(error) or type(error).__name__, "error_type": type(error).__name__}


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MaintenanceError",
    "ConfigError",
    "InvalidConfigError",
    "DatabaseError",
    "DatabaseConnectionError",
    "NotifierError",
    "ScheduleError",
    "error_details",
]
