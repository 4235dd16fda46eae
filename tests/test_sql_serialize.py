"""Tests for the serialization engine and its custom hook."""

from unittest import mock

import pytest

from sqlwrap.clients import sql_serialize
from sqlwrap.clients.sql_core import RawSql
from sqlwrap.clients.sql_serialize import (
    DEFAULT_CONFIG,
    Serializer,
    SerializerConfig,
    configure_serialization,
    serialize,
)


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


def point_hook(value):
    if isinstance(value, Point):
        return f"point({value.x},{value.y})"
    return None


class TestSerialize:
    def test_scalars_delegate_to_escaper(self):
        assert serialize("it's") == "'it''s'"
        assert serialize(7) == "7"
        assert serialize(None) == "NULL"

    def test_raw_fragment_is_verbatim(self):
        text = "now() - interval '1 day'"
        assert serialize(RawSql(text)) == text

    @pytest.mark.parametrize("text", ["", "'", "a\\b", "x = 'y'"])
    def test_raw_fragment_is_never_escaped_again(self, text):
        assert serialize(RawSql(text)) == text

    def test_list_is_parenthesized(self):
        a, b, c = "x", 2, None
        assert serialize([a, b, c]) == "(" + serialize(a) + "," + serialize(b) + "," + serialize(c) + ")"

    def test_tuple_is_a_sequence_too(self):
        assert serialize((1, 2)) == "(1,2)"

    def test_empty_sequence(self):
        assert serialize([]) == "()"

    def test_nested_sequences_and_fragments(self):
        assert serialize([1, [2, 3], RawSql("DEFAULT")]) == "(1,(2,3),DEFAULT)"

    def test_string_is_not_a_sequence(self):
        assert serialize("abc") == "'abc'"


class TestCustomHook:
    def test_default_config_has_no_hook(self):
        assert DEFAULT_CONFIG.custom_serialize is None

    def test_hook_result_used_verbatim(self):
        serializer = Serializer(SerializerConfig(custom_serialize=point_hook))
        assert serializer.serialize(Point(1, 2)) == "point(1,2)"

    def test_hook_skips_default_escaper(self):
        serializer = Serializer(SerializerConfig(custom_serialize=lambda value: "'custom'"))
        with mock.patch.object(sql_serialize, "escape_literal") as escaper:
            assert serializer.serialize("anything") == "'custom'"
        escaper.assert_not_called()

    def test_none_falls_through(self):
        serializer = Serializer(SerializerConfig(custom_serialize=point_hook))
        assert serializer.serialize("plain") == "'plain'"

    def test_hook_applies_inside_sequences(self):
        serializer = Serializer(SerializerConfig(custom_serialize=point_hook))
        assert serializer.serialize([Point(0, 1), 5]) == "(point(0,1),5)"

    def test_hook_sees_fragments_first(self):
        serializer = Serializer(
            SerializerConfig(custom_serialize=lambda v: "OVERRIDE" if isinstance(v, RawSql) else None)
        )
        assert serializer.serialize(RawSql("x")) == "OVERRIDE"

    def test_configure_default(self):
        configure_serialization(point_hook)
        assert serialize(Point(3, 4)) == "point(3,4)"
        configure_serialization(None)
        assert serialize("x") == "'x'"

    def test_private_config_does_not_touch_default(self):
        Serializer(SerializerConfig(custom_serialize=point_hook))
        assert DEFAULT_CONFIG.custom_serialize is None
