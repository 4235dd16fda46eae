"""Shared fixtures: in-memory stand-ins for psycopg connections and pools.

The fakes record every statement sent and every release, and return canned
results registered with ``add_result``.
"""

from contextlib import asynccontextmanager, contextmanager

import pytest

from sqlwrap.clients.sql_serialize import DEFAULT_CONFIG


class FakeCursorBase:
    def __init__(self, connection):
        self._connection = connection
        self.description = None
        self.rowcount = -1
        self._rows = []

    def _run(self, statement):
        self._connection._record(statement)
        columns, rows, rowcount = self._connection.results.get(statement, (None, [], 0))
        self.description = [(name,) for name in columns] if columns is not None else None
        self._rows = list(rows)
        self.rowcount = rowcount if columns is None else len(self._rows)


class FakeAsyncCursor(FakeCursorBase):
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, statement):
        self._run(statement)
        return self

    async def fetchall(self):
        return self._rows


class FakeCursor(FakeCursorBase):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, statement):
        self._run(statement)
        return self

    def fetchall(self):
        return self._rows


class FakeConnectionBase:
    def __init__(self, name="conn"):
        self.name = name
        self.statements = []
        self.results = {}
        self.fail_on = {}
        self.closed = False

    def add_result(self, statement, columns=None, rows=(), rowcount=0):
        self.results[statement] = (columns, rows, rowcount)

    def _record(self, statement):
        self.statements.append(statement)
        error = self.fail_on.get(statement)
        if error is not None:
            raise error


class FakeAsyncConnection(FakeConnectionBase):
    def cursor(self):
        return FakeAsyncCursor(self)

    async def execute(self, statement):
        cursor = FakeAsyncCursor(self)
        await cursor.execute(statement)
        return cursor

    async def close(self):
        self.closed = True


class FakeConnection(FakeConnectionBase):
    def cursor(self):
        return FakeCursor(self)

    def execute(self, statement):
        cursor = FakeCursor(self)
        cursor.execute(statement)
        return cursor

    def close(self):
        self.closed = True


class FakeAsyncPool:
    def __init__(self, connection=None):
        self.conn = connection or FakeAsyncConnection("pooled")
        self.acquired = 0
        self.released = []
        self.closed = False

    async def getconn(self):
        self.acquired += 1
        return self.conn

    async def putconn(self, conn):
        self.released.append(conn)

    @asynccontextmanager
    async def connection(self):
        conn = await self.getconn()
        try:
            yield conn
        finally:
            await self.putconn(conn)

    async def close(self):
        self.closed = True


class FakePool:
    def __init__(self, connection=None):
        self.conn = connection or FakeConnection("pooled")
        self.acquired = 0
        self.released = []
        self.closed = False

    def getconn(self):
        self.acquired += 1
        return self.conn

    def putconn(self, conn):
        self.released.append(conn)

    @contextmanager
    def connection(self):
        conn = self.getconn()
        try:
            yield conn
        finally:
            self.putconn(conn)

    def close(self):
        self.closed = True


@pytest.fixture
def async_connection():
    return FakeAsyncConnection()


@pytest.fixture
def async_pool():
    return FakeAsyncPool()


@pytest.fixture
def sync_connection():
    return FakeConnection()


@pytest.fixture
def sync_pool():
    return FakePool()


@pytest.fixture(autouse=True)
def reset_serialization():
    """Keep the process-wide hook from leaking between tests."""
    DEFAULT_CONFIG.custom_serialize = None
    yield
    DEFAULT_CONFIG.custom_serialize = None
