"""Serialization of arbitrary values into safe SQL text.

Every interpolated value goes through ``Serializer.serialize``. Resolution
order, first match wins:

1. the configured custom hook, when it returns a string;
2. ``RawSql`` fragments, used verbatim;
3. lists and tuples, serialized element by element as ``(a,b,c)``;
4. everything else, via ``escape_literal``.

A value nobody marked as raw SQL is therefore always treated as data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlwrap.clients.sql_core import RawSql
from sqlwrap.clients.sql_escapes import escape_literal

if TYPE_CHECKING:
    from collections.abc import Callable

    CustomSerialize = Callable[[Any], "str | None"]


@dataclass
class SerializerConfig:
    """Serialization settings.

    ``custom_serialize`` receives every value before the built-in rules and
    returns trusted SQL text, or None to fall through. Its output is not
    escaped again.
    """

    custom_serialize: CustomSerialize | None = None


# Process-wide default, configured once at start-up before concurrent use
DEFAULT_CONFIG = SerializerConfig()


def configure_serialization(custom_serialize: CustomSerialize | None) -> None:
    """Install (or clear, with None) the custom hook on the default configuration."""
    DEFAULT_CONFIG.custom_serialize = custom_serialize


class Serializer:
    """Turns Python values into SQL text according to a ``SerializerConfig``."""

    def __init__(self, config: SerializerConfig | None = None) -> None:
        self.config = config if config is not None else DEFAULT_CONFIG

    def serialize(self, value: Any) -> str:
        hook = self.config.custom_serialize
        if hook is not None:
            custom = hook(value)
            if custom is not None:
                return custom
        if isinstance(value, RawSql):
            return value.raw_sql
        if isinstance(value, (list, tuple)):
            return self.serialize_list(value)
        return escape_literal(value)

    def serialize_list(self, items) -> str:
        """Serialize items as a parenthesized, comma separated list."""
        return f"({self.serialize_items(items)})"

    def serialize_items(self, items) -> str:
        return ",".join(self.serialize(item) for item in items)

    def __repr__(self) -> str:
        return f"<Serializer custom_serialize={self.config.custom_serialize!r}>"


default_serializer = Serializer(DEFAULT_CONFIG)


def serialize(value: Any) -> str:
    """Serialize ``value`` with the default serializer."""
    return default_serializer.serialize(value)
