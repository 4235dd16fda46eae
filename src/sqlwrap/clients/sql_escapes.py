"""PostgreSQL literal and identifier escaping.

These functions know nothing about fragments or sequences; they turn a single
Python value into literal text. See ``sql_serialize`` for the full rules.
"""

from __future__ import annotations

import json
import math
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlwrap.clients.sql_core import UNSET

# Reserved keywords plus type/function names that cannot be used bare as column names
RESERVED_WORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric authorization between bigint binary
    bit boolean both case cast char character check coalesce collate collation column
    concurrently constraint create cross current_catalog current_date current_role
    current_schema current_time current_timestamp current_user dec decimal default
    deferrable desc distinct do else end except exists extract false fetch float for
    foreign freeze from full grant greatest group grouping having ilike in initially inner
    inout int integer intersect interval into is isnull join lateral leading least left
    like limit localtime localtimestamp national natural nchar none normalize not notnull
    null nullif numeric offset on only or order out outer overlaps overlay placing
    position precision primary real references returning right row select session_user
    setof similar smallint some substring symmetric system_user table tablesample then
    time timestamp to trailing treat trim true union unique user using values varchar
    variadic verbose when where window with
    """.split()
)

_BARE_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_$]*$")


def quote_ident(name: str) -> str:
    """Quote a PostgreSQL identifier when it cannot be used bare.

    Lowercase simple names that are not reserved words are returned as-is;
    anything else is wrapped in double quotes with embedded quotes doubled.

    Example:
        quote_ident("user_id")  # 'user_id'
        quote_ident("userId")  # '"userId"'
        quote_ident("order")  # '"order"'
        quote_ident('a"b')  # '"a""b"'
    """
    if _BARE_IDENTIFIER.match(name) and name not in RESERVED_WORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


def quote_string(text: str) -> str:
    """Quote text as a PostgreSQL string literal.

    Single quotes are doubled. When the text contains a backslash every
    backslash is doubled and the literal is emitted as an escape string
    (``E'...'``), so the result is the same whatever
    ``standard_conforming_strings`` is set to.

    Example:
        quote_string("it's")  # "'it''s'"
    """
    escaped = text.replace("'", "''")
    if "\\" in escaped:
        return "E'" + escaped.replace("\\", "\\\\") + "'"
    return f"'{escaped}'"


def _number(text: str) -> str:
    # Bare negative numbers could form a "--" comment with preceding text
    return f"({text})" if text.startswith("-") else text


def escape_literal(value: Any) -> str:
    """Escape a single value as a PostgreSQL literal.

    Args:
        value: Python value to escape

    Returns:
        SQL-safe literal text

    Example:
        escape_literal("test")  # "'test'"
        escape_literal(123)  # "123"
        escape_literal(None)  # "NULL"
    """
    if value is None or value is UNSET:
        return "NULL"
    if isinstance(value, Enum):
        return escape_literal(value.value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return _number(str(int(value)))
    if isinstance(value, float):
        if math.isnan(value):
            return "'NaN'"
        if math.isinf(value):
            return "'Infinity'" if value > 0 else "'-Infinity'"
        return _number(repr(value))
    if isinstance(value, Decimal):
        if value.is_nan():
            return "'NaN'"
        if value.is_infinite():
            return "'Infinity'" if value > 0 else "'-Infinity'"
        return _number(str(value))
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, datetime):
        return quote_string(value.isoformat(sep=" ", timespec="microseconds"))
    if isinstance(value, date):
        return quote_string(value.isoformat())
    if isinstance(value, time):
        return quote_string(value.isoformat())
    if isinstance(value, timedelta):
        return f"'{value.total_seconds()} seconds'::interval"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"E'\\\\x{bytes(value).hex()}'"
    if isinstance(value, dict):
        return quote_string(json.dumps(value, default=str)) + "::jsonb"
    # Default: convert to string and escape
    return quote_string(str(value))
