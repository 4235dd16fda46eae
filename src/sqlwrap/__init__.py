"""Safe SQL composition and a transactional query façade for PostgreSQL."""

from sqlwrap.clients import (
    UNSET,
    AsyncPgWrapper,
    PgBackends,
    PgWrapper,
    RawSql,
    Row,
    Serializer,
    SerializerConfig,
    Sql,
    SqlBuilder,
    configure_serialization,
    dataclass_packer,
    serialize,
    sql,
    wrap_connection,
    wrap_pool,
    wrap_sync_connection,
    wrap_sync_pool,
)
from sqlwrap.core import (
    MismatchedRowsError,
    NoColumnsError,
    NoConditionsError,
    NoRowsError,
    PostgresConfig,
    SqlConstructionError,
    SqlwrapError,
    TransactionRollbackError,
    configure_logging,
)

__version__ = "0.1.0"

__all__ = [
    "UNSET",
    "AsyncPgWrapper",
    "MismatchedRowsError",
    "NoColumnsError",
    "NoConditionsError",
    "NoRowsError",
    "PgBackends",
    "PgWrapper",
    "PostgresConfig",
    "RawSql",
    "Row",
    "Serializer",
    "SerializerConfig",
    "Sql",
    "SqlBuilder",
    "SqlConstructionError",
    "SqlwrapError",
    "TransactionRollbackError",
    "configure_logging",
    "configure_serialization",
    "dataclass_packer",
    "serialize",
    "sql",
    "wrap_connection",
    "wrap_pool",
    "wrap_sync_connection",
    "wrap_sync_pool",
]
