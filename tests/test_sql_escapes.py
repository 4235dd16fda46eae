"""Tests for literal and identifier escaping."""

import enum
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from sqlwrap.clients.sql_core import UNSET
from sqlwrap.clients.sql_escapes import escape_literal, quote_ident, quote_string


class Color(enum.Enum):
    RED = "red"


class Level(enum.IntEnum):
    HIGH = 3


class TestQuoteIdent:
    @pytest.mark.parametrize("name", ["a", "user_id", "_private", "col$1"])
    def test_simple_names_stay_bare(self, name):
        assert quote_ident(name) == name

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("userId", '"userId"'),
            ("order", '"order"'),
            ("user", '"user"'),
            ("1st", '"1st"'),
            ("with space", '"with space"'),
            ("schema.table", '"schema.table"'),
            ('a"b', '"a""b"'),
            ("", '""'),
        ],
    )
    def test_quotes_when_needed(self, name, expected):
        assert quote_ident(name) == expected


class TestQuoteString:
    def test_plain(self):
        assert quote_string("hello") == "'hello'"

    def test_single_quote_is_doubled(self):
        assert quote_string("O'Brien") == "'O''Brien'"

    def test_injection_attempt_stays_inside_literal(self):
        payload = "'; DROP TABLE users; --"
        quoted = quote_string(payload)
        assert quoted == "'''; DROP TABLE users; --'"
        # Every quote inside the literal is part of a doubled pair
        assert quoted[1:-1].replace("''", "").count("'") == 0

    def test_backslash_uses_escape_string(self):
        assert quote_string("a\\b") == "E'a\\\\b'"

    def test_backslash_before_quote(self):
        assert quote_string("\\'") == "E'\\\\'''"


class TestEscapeLiteral:
    @pytest.mark.parametrize("value", [None, UNSET])
    def test_null(self, value):
        assert escape_literal(value) == "NULL"

    def test_booleans(self):
        assert escape_literal(True) == "TRUE"
        assert escape_literal(False) == "FALSE"

    def test_numbers(self):
        assert escape_literal(42) == "42"
        assert escape_literal(1.5) == "1.5"
        assert escape_literal(Decimal("10.25")) == "10.25"

    def test_negative_numbers_are_parenthesized(self):
        assert escape_literal(-5) == "(-5)"
        assert escape_literal(-0.5) == "(-0.5)"
        assert escape_literal(Decimal("-1")) == "(-1)"

    def test_non_finite_numbers(self):
        assert escape_literal(float("nan")) == "'NaN'"
        assert escape_literal(float("inf")) == "'Infinity'"
        assert escape_literal(float("-inf")) == "'-Infinity'"
        assert escape_literal(Decimal("NaN")) == "'NaN'"

    def test_aware_datetime(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert escape_literal(value) == "'2024-01-02 03:04:05.678000+00:00'"

    def test_naive_datetime(self):
        assert escape_literal(datetime(2024, 1, 2, 3, 4, 5)) == "'2024-01-02 03:04:05.000000'"

    def test_datetime_keeps_microseconds(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 123456)
        assert escape_literal(value) == "'2024-01-02 03:04:05.123456'"

    def test_date_and_time(self):
        assert escape_literal(date(2024, 2, 29)) == "'2024-02-29'"
        assert escape_literal(time(12, 30)) == "'12:30:00'"

    def test_timedelta(self):
        assert escape_literal(timedelta(minutes=1, seconds=30)) == "'90.0 seconds'::interval"

    def test_bytes(self):
        assert escape_literal(b"\x01\xff") == "E'\\\\x01ff'"

    def test_dict_becomes_jsonb(self):
        assert escape_literal({"a": 1, "b": "it's"}) == "'{\"a\": 1, \"b\": \"it''s\"}'::jsonb"

    def test_enum_uses_value(self):
        assert escape_literal(Color.RED) == "'red'"
        assert escape_literal(Level.HIGH) == "3"

    def test_unsupported_types_are_stringified(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert escape_literal(value) == "'12345678-1234-5678-1234-567812345678'"

    def test_unsupported_object_with_quote_in_str(self):
        class Odd:
            def __str__(self):
                return "x' OR '1'='1"

        assert escape_literal(Odd()) == "'x'' OR ''1''=''1'"
