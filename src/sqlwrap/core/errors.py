"""Structured error classes for SQL construction and execution.

Construction errors are programmer errors raised synchronously by the
fragment helpers. Driver errors are never wrapped; the only database error
raised here is the one that reports a failed ROLLBACK.
"""

from __future__ import annotations

from typing import Any


class SqlwrapError(Exception):
    """Base library error with structured details."""

    code: str = "SQLWRAP_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logs or API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class SqlConstructionError(SqlwrapError):
    """Input cannot produce valid SQL."""

    code = "SQL_CONSTRUCTION_ERROR"


class NoColumnsError(SqlConstructionError):
    """Mapping has no defined keys."""

    code = "NO_COLUMNS"


class NoRowsError(SqlConstructionError):
    """Row list is empty."""

    code = "NO_ROWS"


class NoConditionsError(SqlConstructionError):
    """Every condition was empty and no default was given."""

    code = "NO_CONDITIONS"


class MismatchedRowsError(SqlConstructionError):
    """A row's keys differ from the first row's keys."""

    code = "MISMATCHED_ROWS"


class ConfigurationError(SqlwrapError):
    """Connection configuration is missing or invalid."""

    code = "CONFIGURATION_ERROR"


class DatabaseError(SqlwrapError):
    """Database operation failed."""

    code = "DATABASE_ERROR"


class TransactionRollbackError(DatabaseError):
    """ROLLBACK failed after the transaction body had already failed.

    Both failures are kept: ``original`` is the error raised inside the
    transaction (also set as ``__cause__``), ``rollback_error`` the one raised
    by ROLLBACK.
    """

    code = "ROLLBACK_FAILED"

    def __init__(self, original: BaseException, rollback_error: BaseException) -> None:
        super().__init__(
            f"ROLLBACK failed ({rollback_error!r}) after transaction error: {original!r}",
            details={
                "original": repr(original),
                "rollback_error": repr(rollback_error),
            },
        )
        self.original = original
        self.rollback_error = rollback_error
