"""PostgreSQL connection configuration loaded from arguments and environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from typing import Any

from psycopg.conninfo import make_conninfo

from sqlwrap.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class PostgresConfigAttribute:
    """Configuration attribute metadata and descriptor for PostgresConfig."""

    name: str = None

    def __init__(
        self,
        env: str = None,
        default: Any = None,
        sensitive: bool = False,
        transform: Callable[[Any], Any] = str,
    ):
        self.env = env
        self.default = default
        self.sensitive = sensitive
        self.transform = transform

    def __get__(self, cfg: "PostgresConfig", owner):
        if cfg is None:
            return None
        return cfg._inner.get(self.name, self.default)

    def __set__(self, cfg: "PostgresConfig", value: Any):
        if value is None:
            return
        try:
            cfg._inner[self.name] = self.transform(value)
        except (TypeError, ValueError) as err:
            raise ConfigurationError(
                f"Invalid value for {self.name}: {value!r}",
                details={"attribute": self.name, "env": self.env},
            ) from err

    def __repr__(self) -> str:
        return f"<PostgresConfigAttribute '{self.name}' {self.transform.__name__}>"


class PostgresConfig:
    """PostgreSQL connection and pool configuration.

    Explicit keyword arguments win; unset attributes are read from the
    standard libpq environment variables.

    Environment variables:
        PGHOST: PostgreSQL host (required)
        PGPORT: Port (default: 5432)
        PGDATABASE: Database name (default: postgres)
        PGUSER: Username (default: postgres)
        PGPASSWORD: Password
        PGSSLMODE: SSL mode (default: prefer)
        PGPOOL_MIN_SIZE: Minimum pool connections (default: 1)
        PGPOOL_MAX_SIZE: Maximum pool connections (default: 10)

    Usage:
        config = PostgresConfig()                        # from environment
        config = PostgresConfig(host="localhost", database="app")
    """

    host: str = PostgresConfigAttribute(env="PGHOST")
    port: int = PostgresConfigAttribute(env="PGPORT", default=5432, transform=int)
    database: str = PostgresConfigAttribute(env="PGDATABASE", default="postgres")
    user: str = PostgresConfigAttribute(env="PGUSER", default="postgres")
    password: str = PostgresConfigAttribute(env="PGPASSWORD", sensitive=True)
    sslmode: str = PostgresConfigAttribute(env="PGSSLMODE", default="prefer")
    min_size: int = PostgresConfigAttribute(env="PGPOOL_MIN_SIZE", default=1, transform=int)
    max_size: int = PostgresConfigAttribute(env="PGPOOL_MAX_SIZE", default=10, transform=int)

    def __init__(self, **kwargs):
        self._inner: dict[str, Any] = {}
        unknown = set(kwargs) - {attr.name for attr in self.attributes()}
        if unknown:
            raise ConfigurationError(f"Unknown configuration attributes: {', '.join(sorted(unknown))}")

        self._set_inner_config(kwargs)
        self._load_from_env()
        self._validate()

    def _set_inner_config(self, keyword_args: dict[str, Any]):
        for attr in self.attributes():
            value = keyword_args.get(attr.name)
            if value is not None:
                setattr(self, attr.name, value)

    def _load_from_env(self):
        for attr in self.attributes():
            if not attr.env or attr.name in self._inner:
                continue
            value = os.environ.get(attr.env)
            if value:
                setattr(self, attr.name, value)
                logger.debug("Loaded %s from %s", attr.name, attr.env)

    def _validate(self):
        if not self.host:
            raise ConfigurationError(
                "PostgreSQL host not configured. Set PGHOST environment variable "
                "or pass host parameter explicitly."
            )
        if self.min_size < 0 or self.max_size < max(self.min_size, 1):
            raise ConfigurationError(
                f"Invalid pool size: min_size={self.min_size}, max_size={self.max_size}"
            )

    @classmethod
    def attributes(cls) -> Iterable[PostgresConfigAttribute]:
        """Returns list of configuration attributes."""
        if "_attributes" in cls.__dict__:
            return cls._attributes
        attrs = []
        for name, v in cls.__dict__.items():
            if not isinstance(v, PostgresConfigAttribute):
                continue
            v.name = name
            attrs.append(v)
        cls._attributes = attrs
        return cls._attributes

    def conninfo(self) -> str:
        """Build a libpq connection string for psycopg."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            sslmode=self.sslmode,
        )

    def as_dict(self) -> dict[str, Any]:
        """Return configuration as dictionary."""
        return {attr.name: getattr(self, attr.name) for attr in self.attributes()}

    def debug_string(self) -> str:
        """Returns log-friendly representation of configured attributes."""
        parts = []
        for attr in self.attributes():
            value = getattr(self, attr.name)
            if value is None:
                continue
            safe = "***" if attr.sensitive else str(value)
            parts.append(f"{attr.name}={safe}")
        return f"PostgresConfig: {', '.join(parts)}"

    def __repr__(self) -> str:
        return f"<{self.debug_string()}>"
