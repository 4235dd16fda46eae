"""PostgreSQL query and transaction façade over psycopg.

Wraps a single connection or a pool and exposes ``query`` / ``execute`` for
``RawSql`` fragments plus ``transaction`` with automatic BEGIN, COMMIT,
ROLLBACK and connection release. Async wrappers are the primary interface;
the blocking ones mirror them for ``psycopg.Connection`` and
``psycopg_pool.ConnectionPool``.

Connections must be in autocommit mode so that the explicit BEGIN/COMMIT
issued here delimit the transaction. ``PgBackends`` creates them that way.
"""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

import psycopg

from sqlwrap.clients.sql_core import RawSql, Row
from sqlwrap.core.config import PostgresConfig
from sqlwrap.core.context import reset_transaction_id, set_transaction_id
from sqlwrap.core.errors import TransactionRollbackError

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager, AbstractContextManager

    from psycopg_pool import AsyncConnectionPool, ConnectionPool

logger = logging.getLogger(__name__)

T = TypeVar("T")

PackFunction = Callable[[Row], Any]


def _rows_from_cursor(description, raw_rows) -> list[Row]:
    if description is None:
        return []
    RowClass = Row.factory([desc[0] for desc in description])
    return [RowClass(*raw_row) for raw_row in raw_rows]


def _pack_rows(rows: list[Row], fragment: RawSql, pack: PackFunction | None) -> list[Any]:
    pack_fn = pack if pack is not None else fragment.pack_fn
    if pack_fn is None:
        return rows
    return [pack_fn(row) for row in rows]


def _log_statement(statement: str, rowcount: int, started: float) -> None:
    duration_ms = round((time.monotonic() - started) * 1000, 2)
    logger.debug(
        "Executed statement (%d rows, %.2fms)",
        rowcount,
        duration_ms,
        extra={"statement": statement, "rowcount": rowcount, "duration_ms": duration_ms},
    )


# Async


class AsyncQueryRunner(abc.ABC):
    """Runs fragments against a connection obtained from ``_connection``.

    Calling the runner is the same as calling ``query``, so it can be handed
    around as a plain query function.
    """

    @abc.abstractmethod
    def _connection(self) -> AbstractAsyncContextManager[psycopg.AsyncConnection]:
        """Context manager yielding the connection for one statement."""

    async def query(self, fragment: RawSql[T], pack: PackFunction | None = None) -> list[Any]:
        """Execute ``fragment`` and return its rows.

        Rows are ``Row`` objects mapped through ``pack`` if given, otherwise
        through the fragment's own pack function, if any.
        """
        started = time.monotonic()
        async with self._connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(fragment.raw_sql)
                raw_rows = await cur.fetchall() if cur.description is not None else []
                rows = _rows_from_cursor(cur.description, raw_rows)
        _log_statement(fragment.raw_sql, len(rows), started)
        return _pack_rows(rows, fragment, pack)

    async def execute(self, fragment: RawSql) -> int:
        """Execute ``fragment`` and return the affected row count."""
        started = time.monotonic()
        async with self._connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(fragment.raw_sql)
                rowcount = cur.rowcount
        _log_statement(fragment.raw_sql, rowcount, started)
        return rowcount

    async def query_one(self, fragment: RawSql[T], pack: PackFunction | None = None) -> Any | None:
        """Fetch first row, or None."""
        rows = await self.query(fragment, pack)
        return rows[0] if rows else None

    async def query_value(self, fragment: RawSql) -> Any:
        """Fetch first column of first row."""
        rows = await self.query(fragment, pack=lambda row: row[0])
        return rows[0] if rows else None

    async def __call__(self, fragment: RawSql[T], pack: PackFunction | None = None) -> list[Any]:
        return await self.query(fragment, pack)


class AsyncConnectionRunner(AsyncQueryRunner):
    """Runner bound to one connection, as handed to transaction handlers."""

    def __init__(self, connection: psycopg.AsyncConnection) -> None:
        self._conn = connection

    @property
    def connection(self) -> psycopg.AsyncConnection:
        return self._conn

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        yield self._conn


async def _async_rollback(conn: psycopg.AsyncConnection, original: BaseException) -> None:
    try:
        await conn.execute("ROLLBACK")
    except Exception as rollback_error:
        logger.error("ROLLBACK failed", exc_info=True)
        raise TransactionRollbackError(original, rollback_error) from original
    logger.warning("Transaction rolled back: %r", original)


class AsyncPgWrapper(AsyncQueryRunner):
    """Async query/transaction façade.

    Usage:
        db = wrap_pool(pool)
        users = await db.query(sql("SELECT * FROM users WHERE id = {}", user_id))

        async def move(query):
            await query.execute(sql("UPDATE accounts SET balance = balance - {} WHERE id = {}", amount, src))
            await query.execute(sql("UPDATE accounts SET balance = balance + {} WHERE id = {}", amount, dst))
            return amount

        moved = await db.transaction(move)

        async with db.transaction_scope() as query:
            await query(sql("DELETE FROM sessions WHERE user_id = {}", user_id))
    """

    @abc.abstractmethod
    async def _acquire(self) -> psycopg.AsyncConnection:
        """Get the connection dedicated to one transaction."""

    @abc.abstractmethod
    async def _release(self, conn: psycopg.AsyncConnection) -> None:
        """Give back a connection obtained with ``_acquire``."""

    @asynccontextmanager
    async def transaction_scope(self) -> AsyncIterator[AsyncConnectionRunner]:
        """BEGIN on a dedicated connection; COMMIT on success, ROLLBACK on error.

        The connection is released exactly once whatever happens. A failure
        inside the block is re-raised unchanged after ROLLBACK; if ROLLBACK
        fails too, ``TransactionRollbackError`` carries both errors.
        """
        conn = await self._acquire()
        token = set_transaction_id()
        try:
            try:
                await conn.execute("BEGIN")
                logger.debug("BEGIN")
                yield AsyncConnectionRunner(conn)
                await conn.execute("COMMIT")
                logger.debug("COMMIT")
            except BaseException as exc:
                await _async_rollback(conn, exc)
                raise
        finally:
            reset_transaction_id(token)
            await self._release(conn)

    async def transaction(self, handler: Callable[[AsyncConnectionRunner], Awaitable[T]]) -> T:
        """Run ``handler`` inside a transaction and return its result."""
        async with self.transaction_scope() as runner:
            return await handler(runner)

    @abc.abstractmethod
    async def close(self) -> None:
        """Close the underlying connection or pool."""


class AsyncConnectionWrapper(AsyncPgWrapper):
    """Façade over one shared ``psycopg.AsyncConnection``.

    Transactions use the shared connection itself, so they must not overlap.
    """

    def __init__(self, connection: psycopg.AsyncConnection) -> None:
        self._conn = connection

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        yield self._conn

    async def _acquire(self) -> psycopg.AsyncConnection:
        return self._conn

    async def _release(self, conn: psycopg.AsyncConnection) -> None:
        pass

    async def close(self) -> None:
        await self._conn.close()


class AsyncPoolWrapper(AsyncPgWrapper):
    """Façade over a ``psycopg_pool.AsyncConnectionPool``."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    def _connection(self) -> AbstractAsyncContextManager[psycopg.AsyncConnection]:
        return self._pool.connection()

    async def _acquire(self) -> psycopg.AsyncConnection:
        return await self._pool.getconn()

    async def _release(self, conn: psycopg.AsyncConnection) -> None:
        await self._pool.putconn(conn)

    async def close(self) -> None:
        await self._pool.close()


def wrap_connection(connection: psycopg.AsyncConnection) -> AsyncPgWrapper:
    """Wrap a single async connection."""
    return AsyncConnectionWrapper(connection)


def wrap_pool(pool: AsyncConnectionPool) -> AsyncPgWrapper:
    """Wrap an async connection pool."""
    return AsyncPoolWrapper(pool)


# Sync


class QueryRunner(abc.ABC):
    """Blocking counterpart of ``AsyncQueryRunner``."""

    @abc.abstractmethod
    def _connection(self) -> AbstractContextManager[psycopg.Connection]:
        """Context manager yielding the connection for one statement."""

    def query(self, fragment: RawSql[T], pack: PackFunction | None = None) -> list[Any]:
        """Execute ``fragment`` and return its (packed) rows."""
        started = time.monotonic()
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(fragment.raw_sql)
                raw_rows = cur.fetchall() if cur.description is not None else []
                rows = _rows_from_cursor(cur.description, raw_rows)
        _log_statement(fragment.raw_sql, len(rows), started)
        return _pack_rows(rows, fragment, pack)

    def execute(self, fragment: RawSql) -> int:
        """Execute ``fragment`` and return the affected row count."""
        started = time.monotonic()
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(fragment.raw_sql)
                rowcount = cur.rowcount
        _log_statement(fragment.raw_sql, rowcount, started)
        return rowcount

    def query_one(self, fragment: RawSql[T], pack: PackFunction | None = None) -> Any | None:
        rows = self.query(fragment, pack)
        return rows[0] if rows else None

    def query_value(self, fragment: RawSql) -> Any:
        rows = self.query(fragment, pack=lambda row: row[0])
        return rows[0] if rows else None

    def __call__(self, fragment: RawSql[T], pack: PackFunction | None = None) -> list[Any]:
        return self.query(fragment, pack)


class ConnectionRunner(QueryRunner):
    def __init__(self, connection: psycopg.Connection) -> None:
        self._conn = connection

    @property
    def connection(self) -> psycopg.Connection:
        return self._conn

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection]:
        yield self._conn


def _rollback(conn: psycopg.Connection, original: BaseException) -> None:
    try:
        conn.execute("ROLLBACK")
    except Exception as rollback_error:
        logger.error("ROLLBACK failed", exc_info=True)
        raise TransactionRollbackError(original, rollback_error) from original
    logger.warning("Transaction rolled back: %r", original)


class PgWrapper(QueryRunner):
    """Blocking query/transaction façade; see ``AsyncPgWrapper``."""

    @abc.abstractmethod
    def _acquire(self) -> psycopg.Connection:
        """Get the connection dedicated to one transaction."""

    @abc.abstractmethod
    def _release(self, conn: psycopg.Connection) -> None:
        """Give back a connection obtained with ``_acquire``."""

    @contextmanager
    def transaction_scope(self) -> Iterator[ConnectionRunner]:
        """BEGIN on a dedicated connection; COMMIT on success, ROLLBACK on error."""
        conn = self._acquire()
        token = set_transaction_id()
        try:
            try:
                conn.execute("BEGIN")
                logger.debug("BEGIN")
                yield ConnectionRunner(conn)
                conn.execute("COMMIT")
                logger.debug("COMMIT")
            except BaseException as exc:
                _rollback(conn, exc)
                raise
        finally:
            reset_transaction_id(token)
            self._release(conn)

    def transaction(self, handler: Callable[[ConnectionRunner], T]) -> T:
        """Run ``handler`` inside a transaction and return its result."""
        with self.transaction_scope() as runner:
            return handler(runner)

    @abc.abstractmethod
    def close(self) -> None:
        """Close the underlying connection or pool."""


class ConnectionWrapper(PgWrapper):
    """Façade over one shared ``psycopg.Connection``."""

    def __init__(self, connection: psycopg.Connection) -> None:
        self._conn = connection

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection]:
        yield self._conn

    def _acquire(self) -> psycopg.Connection:
        return self._conn

    def _release(self, conn: psycopg.Connection) -> None:
        pass

    def close(self) -> None:
        self._conn.close()


class PoolWrapper(PgWrapper):
    """Façade over a ``psycopg_pool.ConnectionPool``."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def _connection(self) -> AbstractContextManager[psycopg.Connection]:
        return self._pool.connection()

    def _acquire(self) -> psycopg.Connection:
        return self._pool.getconn()

    def _release(self, conn: psycopg.Connection) -> None:
        self._pool.putconn(conn)

    def close(self) -> None:
        self._pool.close()


def wrap_sync_connection(connection: psycopg.Connection) -> PgWrapper:
    """Wrap a single blocking connection."""
    return ConnectionWrapper(connection)


def wrap_sync_pool(pool: ConnectionPool) -> PgWrapper:
    """Wrap a blocking connection pool."""
    return PoolWrapper(pool)


class PgBackends:
    """Factory for wrapped connections and pools built from ``PostgresConfig``.

    Every connection is opened in autocommit mode.

    Usage:
        db = await PgBackends.async_pool(PostgresConfig(host="localhost"))
        blocking = PgBackends.connection()  # config from PG* environment
    """

    def __new__(cls, *args, **kwargs):
        """Prevent direct instantiation."""
        raise TypeError(
            "PgBackends cannot be instantiated directly. "
            "Use .connection(), .pool(), .async_connection() or .async_pool() instead."
        )

    @classmethod
    def connection(cls, config: PostgresConfig | None = None) -> PgWrapper:
        """Open a blocking connection."""
        config = config or PostgresConfig()
        logger.info("Connecting: %s", config.debug_string())
        return wrap_sync_connection(psycopg.connect(config.conninfo(), autocommit=True))

    @classmethod
    def pool(cls, config: PostgresConfig | None = None) -> PgWrapper:
        """Open a blocking connection pool."""
        from psycopg_pool import ConnectionPool

        config = config or PostgresConfig()
        logger.info("Opening pool: %s", config.debug_string())
        pool = ConnectionPool(
            config.conninfo(),
            min_size=config.min_size,
            max_size=config.max_size,
            kwargs={"autocommit": True},
            open=True,
        )
        return wrap_sync_pool(pool)

    @classmethod
    async def async_connection(cls, config: PostgresConfig | None = None) -> AsyncPgWrapper:
        """Open an async connection."""
        config = config or PostgresConfig()
        logger.info("Connecting: %s", config.debug_string())
        conn = await psycopg.AsyncConnection.connect(config.conninfo(), autocommit=True)
        return wrap_connection(conn)

    @classmethod
    async def async_pool(cls, config: PostgresConfig | None = None) -> AsyncPgWrapper:
        """Open an async connection pool."""
        from psycopg_pool import AsyncConnectionPool

        config = config or PostgresConfig()
        logger.info("Opening pool: %s", config.debug_string())
        pool = AsyncConnectionPool(
            config.conninfo(),
            min_size=config.min_size,
            max_size=config.max_size,
            kwargs={"autocommit": True},
            open=False,
        )
        await pool.open()
        return wrap_pool(pool)
