"""SQL fragments, escaping, and PostgreSQL clients.

- sql: template composer and fragment helpers
- Serializer: value-to-SQL conversion with an optional custom hook
- AsyncPgWrapper / PgWrapper: query and transaction façade over psycopg
"""

from sqlwrap.clients.pg_backends import (
    AsyncConnectionRunner,
    AsyncConnectionWrapper,
    AsyncPgWrapper,
    AsyncPoolWrapper,
    AsyncQueryRunner,
    ConnectionRunner,
    ConnectionWrapper,
    PgBackends,
    PgWrapper,
    PoolWrapper,
    QueryRunner,
    wrap_connection,
    wrap_pool,
    wrap_sync_connection,
    wrap_sync_pool,
)
from sqlwrap.clients.sql_core import UNSET, RawSql, Row, dataclass_packer, row_to_dataclass
from sqlwrap.clients.sql_escapes import escape_literal, quote_ident, quote_string
from sqlwrap.clients.sql_serialize import (
    DEFAULT_CONFIG,
    Serializer,
    SerializerConfig,
    configure_serialization,
    default_serializer,
    serialize,
)
from sqlwrap.clients.sql_template import Sql, SqlBuilder, sql

__all__ = [
    # Core types
    "UNSET",
    "RawSql",
    "Row",
    "dataclass_packer",
    "row_to_dataclass",
    # Escaping
    "escape_literal",
    "quote_ident",
    "quote_string",
    # Serialization
    "DEFAULT_CONFIG",
    "Serializer",
    "SerializerConfig",
    "configure_serialization",
    "default_serializer",
    "serialize",
    # Templates
    "Sql",
    "SqlBuilder",
    "sql",
    # Async backends
    "AsyncConnectionRunner",
    "AsyncConnectionWrapper",
    "AsyncPgWrapper",
    "AsyncPoolWrapper",
    "AsyncQueryRunner",
    "wrap_connection",
    "wrap_pool",
    # Sync backends
    "ConnectionRunner",
    "ConnectionWrapper",
    "PgWrapper",
    "PoolWrapper",
    "QueryRunner",
    "wrap_sync_connection",
    "wrap_sync_pool",
    # Factory
    "PgBackends",
]
