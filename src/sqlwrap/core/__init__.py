"""Core module for configuration, context, logging, and errors."""

from sqlwrap.core.config import PostgresConfig
from sqlwrap.core.context import get_transaction_id, reset_transaction_id, set_transaction_id
from sqlwrap.core.errors import (
    ConfigurationError,
    DatabaseError,
    MismatchedRowsError,
    NoColumnsError,
    NoConditionsError,
    NoRowsError,
    SqlConstructionError,
    SqlwrapError,
    TransactionRollbackError,
)
from sqlwrap.core.logging_config import configure_logging

__all__ = [
    # Config
    "PostgresConfig",
    # Context
    "get_transaction_id",
    "reset_transaction_id",
    "set_transaction_id",
    # Errors
    "ConfigurationError",
    "DatabaseError",
    "MismatchedRowsError",
    "NoColumnsError",
    "NoConditionsError",
    "NoRowsError",
    "SqlConstructionError",
    "SqlwrapError",
    "TransactionRollbackError",
    # Logging
    "configure_logging",
]
