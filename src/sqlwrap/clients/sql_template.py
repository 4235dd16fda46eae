"""SQL template composition and fragment helpers.

``sql`` is the entry point: call it with a ``str.format``-style template, or
use its helper methods to build common clause shapes. Every operation returns
a ``RawSql`` fragment; interpolated values are always serialized, static text
never is.

Usage:
    from sqlwrap import UNSET, sql

    query = sql(
        "SELECT * FROM users WHERE {where} ORDER BY {order}",
        where=sql.and_([
            sql("name = {}", name) if name else None,
            sql("age >= {}", min_age) if min_age is not None else None,
        ], sql.raw("TRUE")),
        order=sql.ident(sort_column),
    )
    sql("INSERT INTO users {}", sql.insert({"name": "Ann", "email": email or UNSET}))
    sql("UPDATE users SET {} WHERE id = {}", sql.set(changes), user_id)
"""

from __future__ import annotations

import re
import string
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlwrap.clients.sql_core import UNSET, RawSql
from sqlwrap.clients.sql_escapes import quote_ident
from sqlwrap.clients.sql_serialize import Serializer, default_serializer
from sqlwrap.core.errors import (
    MismatchedRowsError,
    NoColumnsError,
    NoConditionsError,
    NoRowsError,
    SqlConstructionError,
)

_formatter = string.Formatter()

# Leading name of a replacement field, before any attribute or index lookup
_FIELD_FIRST_PART = re.compile(r"[^.[]*")

CONDITION_OPERATORS = ("AND", "OR")


def _defined_keys(data: Mapping[str, Any]) -> list[str]:
    return [key for key, value in data.items() if value is not UNSET]


def _fragment_text(fragment: RawSql) -> str:
    if not isinstance(fragment, RawSql):
        raise TypeError(f"Expected a RawSql fragment, got {type(fragment).__name__}")
    return fragment.raw_sql


class Sql:
    """Template composer and fragment helpers bound to one ``Serializer``.

    The module-level ``sql`` instance uses the default serializer. Bind a
    private instance to get an isolated custom hook:

        sql = Sql(Serializer(SerializerConfig(custom_serialize=my_hook)))
    """

    def __init__(self, serializer: Serializer | None = None) -> None:
        self.serializer = serializer if serializer is not None else default_serializer

    def __call__(self, template: str, *args: Any, **kwargs: Any) -> RawSql:
        """Compose a fragment from a ``str.format``-style template.

        ``{}``, ``{0}`` and ``{name}`` placeholders are filled with serialized
        arguments; the text around them is used as-is. Write ``{{`` and ``}}``
        for literal braces. Format specs and conversions are not allowed.
        """
        segments: list[str] = []
        params: list[Any] = []
        pending: list[str] = []
        auto_index = 0
        numbering = None
        for literal, field_name, format_spec, conversion in _formatter.parse(template):
            pending.append(literal)
            if field_name is None:
                continue
            if format_spec or conversion:
                raise SqlConstructionError(
                    f"Format specs and conversions are not supported in SQL templates: {{{field_name}}}",
                    details={"field": field_name},
                )
            first = _FIELD_FIRST_PART.match(field_name).group(0)
            if first == "":
                if numbering == "manual":
                    raise SqlConstructionError(
                        "Cannot switch from manual field numbering to automatic field numbering",
                        details={"field": field_name},
                    )
                numbering = "auto"
                field_name = f"{auto_index}{field_name}"
                auto_index += 1
            elif first.isdigit():
                if numbering == "auto":
                    raise SqlConstructionError(
                        "Cannot switch from automatic field numbering to manual field numbering",
                        details={"field": field_name},
                    )
                numbering = "manual"
            value, _ = _formatter.get_field(field_name, args, kwargs)
            segments.append("".join(pending))
            pending = []
            params.append(value)
        segments.append("".join(pending))
        return self.compose(segments, *params)

    def compose(self, segments: Sequence[str], *params: Any) -> RawSql:
        """Interleave static ``segments`` with serialized ``params``.

        ``segments`` must hold exactly one more element than ``params``.
        """
        if len(segments) != len(params) + 1:
            raise SqlConstructionError(
                f"Expected {len(params) + 1} text segments for {len(params)} parameters, got {len(segments)}"
            )
        parts = [segments[0]]
        for param, segment in zip(params, segments[1:], strict=True):
            parts.append(self.serializer.serialize(param))
            parts.append(segment)
        return self.raw("".join(parts))

    def builder(self) -> SqlBuilder:
        """Start an incremental ``SqlBuilder`` using this serializer."""
        return SqlBuilder(self.serializer)

    @staticmethod
    def raw(raw_sql: str) -> RawSql:
        """Wrap trusted SQL text without escaping it."""
        return RawSql(raw_sql)

    def serialize(self, value: Any) -> str:
        return self.serializer.serialize(value)

    def list(self, items: Iterable[Any]) -> RawSql:
        """``(v1,v2,...)``"""
        return self.raw(self.serializer.serialize_list(items))

    def values(self, rows: Iterable[Iterable[Any]]) -> RawSql:
        """``(VALUES (a,b),(c,d))``"""
        rendered = ",".join(self.serializer.serialize_list(row) for row in rows)
        return self.raw(f"(VALUES {rendered})")

    def insert(self, data: Mapping[str, Any]) -> RawSql:
        """``(col1,col2) VALUES (v1,v2)``, skipping columns whose value is UNSET."""
        keys = _defined_keys(data)
        if not keys:
            raise NoColumnsError("No keys to insert")
        columns = ",".join(quote_ident(key) for key in keys)
        values = self.serializer.serialize_items(data[key] for key in keys)
        return self.raw(f"({columns}) VALUES ({values})")

    def multi_insert(self, rows: Sequence[Mapping[str, Any]]) -> RawSql:
        """``(col1,col2) VALUES (a,b),(c,d)`` with columns taken from the first row.

        Every row must define the same keys as the first one (UNSET values
        count as undefined); key order within later rows does not matter.
        """
        if not rows:
            raise NoRowsError("No data to insert")
        keys = _defined_keys(rows[0])
        if not keys:
            raise NoColumnsError("No keys to insert")
        expected = set(keys)
        for index, row in enumerate(rows[1:], start=1):
            row_keys = set(_defined_keys(row))
            if row_keys != expected:
                raise MismatchedRowsError(
                    f"Row {index} keys do not match the first row",
                    details={
                        "row": index,
                        "missing": sorted(expected - row_keys),
                        "extra": sorted(row_keys - expected),
                    },
                )
        columns = ",".join(quote_ident(key) for key in keys)
        values = ",".join(
            self.serializer.serialize_list([row[key] for key in keys]) for row in rows
        )
        return self.raw(f"({columns}) VALUES {values}")

    def array(self, items: Iterable[Any]) -> RawSql:
        """``ARRAY[v1,v2,...]``"""
        return self.raw(f"ARRAY[{self.serializer.serialize_items(items)}]")

    def set(self, data: Mapping[str, Any]) -> RawSql:
        """``col1=v1,col2=v2`` for an UPDATE, skipping columns whose value is UNSET."""
        keys = _defined_keys(data)
        if not keys:
            raise NoColumnsError("No keys to update")
        return self.raw(
            ",".join(f"{quote_ident(key)}={self.serializer.serialize(data[key])}" for key in keys)
        )

    def where(
        self,
        conditions: Iterable[RawSql | None],
        op: str = "AND",
        default: RawSql | None = None,
    ) -> RawSql:
        """Join conditions with ``op``, each wrapped in parentheses.

        None and UNSET entries are dropped first. If nothing is left the
        ``default`` fragment is returned as-is.
        """
        operator = op.upper()
        if operator not in CONDITION_OPERATORS:
            raise SqlConstructionError(f"Unsupported condition operator: {op!r}")
        parts = [
            f"({_fragment_text(condition)})"
            for condition in conditions
            if condition is not None and condition is not UNSET
        ]
        if not parts:
            if default is None:
                raise NoConditionsError("No conditions")
            return default
        return self.raw(f" {operator} ".join(parts))

    def and_(self, conditions: Iterable[RawSql | None], default: RawSql | None = None) -> RawSql:
        return self.where(conditions, "AND", default)

    def or_(self, conditions: Iterable[RawSql | None], default: RawSql | None = None) -> RawSql:
        return self.where(conditions, "OR", default)

    def ident(self, name: str) -> RawSql:
        """Quote ``name`` as an identifier (only when needed)."""
        if name is None:
            raise SqlConstructionError("Identifier cannot be None")
        return self.raw(quote_ident(str(name)))

    def join(self, fragments: Iterable[RawSql]) -> RawSql:
        """Join fragments with ``", "``."""
        return self.raw(", ".join(_fragment_text(fragment) for fragment in fragments))

    def concat(self, fragments: Iterable[RawSql]) -> RawSql:
        """Join fragments with a single space."""
        return self.raw(" ".join(_fragment_text(fragment) for fragment in fragments))


class SqlBuilder:
    """Incremental alternative to templates.

    Example:
        query = (
            SqlBuilder()
            .text("SELECT * FROM users WHERE id = ")
            .value(user_id)
            .build()
        )
    """

    def __init__(self, serializer: Serializer | None = None) -> None:
        self._serializer = serializer if serializer is not None else default_serializer
        self._parts: list[str] = []

    def text(self, text: str) -> SqlBuilder:
        """Append static SQL text."""
        self._parts.append(text)
        return self

    def value(self, value: Any) -> SqlBuilder:
        """Append a serialized value."""
        self._parts.append(self._serializer.serialize(value))
        return self

    def build(self) -> RawSql:
        return RawSql("".join(self._parts))


sql = Sql()
