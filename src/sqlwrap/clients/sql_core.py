"""Core types for SQL fragments and query results."""

from __future__ import annotations

from dataclasses import dataclass, field, is_dataclass, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")
R = TypeVar("R")


class _Unset:
    """Marker for "omit this key", distinct from None (SQL NULL)."""

    _instance: _Unset | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"

    def __reduce__(self):
        return (_Unset, ())


UNSET: Any = _Unset()


@dataclass(frozen=True, eq=False)
class RawSql(Generic[T]):
    """Already-safe SQL text, optionally paired with a row transform.

    The text is only ever concatenated, never escaped again. ``T`` is the row
    shape produced when the fragment is executed; it only matters to type
    checkers.

    Usage:
        fragment = RawSql("SELECT 1 AS one")
        users = sql("SELECT * FROM users").pack(dataclass_packer(User))
    """

    raw_sql: str
    pack_fn: Callable[[Any], T] | None = field(default=None, repr=False)

    def pack(self, pack_fn: Callable[[Any], R]) -> RawSql[R]:
        """Return a copy of this fragment whose rows are mapped through ``pack_fn``."""
        return replace(self, pack_fn=pack_fn)

    def __str__(self) -> str:
        return self.raw_sql

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RawSql):
            return self.raw_sql == other.raw_sql and self.pack_fn is other.pack_fn
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.raw_sql)


class Row(tuple):
    """A row of data with named column access.

    Supports both index and attribute access.

    Usage:
        row = Row(id=1, name="test")
        row.id  # 1
        row["name"]  # "test"
        row[0]  # 1
    """

    _fields: tuple[str, ...] = ()

    def __new__(cls, *args, **kwargs):
        if args and kwargs:
            raise ValueError("Cannot use both positional and keyword arguments")

        if kwargs:
            row = tuple.__new__(cls, kwargs.values())
            row._fields = tuple(kwargs.keys())
            return row

        if args and len(args) == 1 and isinstance(args[0], dict):
            row = tuple.__new__(cls, args[0].values())
            row._fields = tuple(args[0].keys())
            return row

        return tuple.__new__(cls, args)

    @classmethod
    def factory(cls, col_names: list[str]) -> type[Row]:
        """Create a Row subclass with predefined column names."""

        class NamedRow(Row):
            _fields = tuple(col_names)

            def __new__(cls, *values):
                row = tuple.__new__(cls, values)
                row._fields = tuple(col_names)
                return row

        return NamedRow

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            return super().__getattribute__(name)
        try:
            idx = self._fields.index(name)
            return self[idx]
        except (ValueError, AttributeError) as err:
            raise AttributeError(f"Row has no field '{name}'") from err

    def __getitem__(self, key):
        if isinstance(key, str):
            try:
                idx = self._fields.index(key)
                return tuple.__getitem__(self, idx)
            except ValueError as err:
                raise KeyError(f"Row has no field '{key}'") from err
        return tuple.__getitem__(self, key)

    def as_dict(self) -> dict[str, Any]:
        """Convert row to dictionary."""
        return dict(zip(self._fields, self, strict=False))

    def __repr__(self) -> str:
        items = ", ".join(f"{k}={v!r}" for k, v in zip(self._fields, self, strict=False))
        return f"Row({items})"


def row_to_dataclass(row: Row, klass: type[T]) -> T:
    """Convert a Row to a dataclass instance."""
    return klass(**row.as_dict())


def dataclass_packer(klass: type[T]) -> Callable[[Row], T]:
    """Build a pack function that turns each result row into ``klass``.

    Example:
        users = await db.query(sql("SELECT id, name FROM users").pack(dataclass_packer(User)))
    """
    if not is_dataclass(klass):
        raise ValueError(f"{klass} is not a dataclass")

    def pack(row: Row) -> T:
        return row_to_dataclass(row, klass)

    return pack
