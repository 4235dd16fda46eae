"""Structured logging configuration.

Provides JSON logging for production (parseable by log aggregators)
and human-readable logging for development.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from sqlwrap.core.context import get_transaction_id

EXTRA_FIELDS = ("duration_ms", "rowcount", "statement")


class StructuredFormatter(logging.Formatter):
    """JSON formatter for production logging.

    Output format:
        {"timestamp": "2024-01-15T10:30:00.000+00:00", "level": "DEBUG",
         "logger": "sqlwrap.clients.pg_backends", "message": "COMMIT", "txn_id": "3f2a9c1b7d4e"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        txn_id = get_transaction_id()
        if txn_id:
            log_data["txn_id"] = txn_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for local development.

    Output format:
        2024-01-15 10:30:00 [DEBUG] sqlwrap.clients.pg_backends: Executed statement [duration_ms=1.2 rowcount=1] (txn=3f2a9c1b7d4e)
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        txn_id = get_transaction_id()
        txn_suffix = f" (txn={txn_id})" if txn_id else ""
        extras = " ".join(
            f"{key}={getattr(record, key)}" for key in ("duration_ms", "rowcount") if hasattr(record, key)
        )
        extras_suffix = f" [{extras}]" if extras else ""

        message = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}{extras_suffix}{txn_suffix}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def configure_logging(
    level: str = "INFO",
    *,
    structured: bool | None = None,
) -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        structured: Use JSON format. If None, auto-detect based on environment.
    """
    # Structured output when stderr is not a TTY
    if structured is None:
        structured = not sys.stderr.isatty()

    formatter = StructuredFormatter() if structured else DevelopmentFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Pool maintenance chatter
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
