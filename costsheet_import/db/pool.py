from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection pool.

A ConnectionPool is created once per run and passed to whoever needs a
connection. ``session()`` lends one connection as a transaction: commit on
normal exit, rollback when the block raises.

Connection settings, highest priority first:
    1. DATABASE_URL / PGDSN (after .env is loaded with override)
    2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the ``database`` block of config/import.yml
"""

try:  # pragma: no cover - import guard
    import psycopg2
    import psycopg2.pool
except Exception:  # pragma: no cover
    psycopg2 = None  # type: ignore

__all__ = ["ConnectionPool", "PoolError", "resolve_dsn"]

logger = logging.getLogger(__name__)


class PoolError(Exception):
    pass


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


class ConnectionPool:
    """Thin wrapper over psycopg2.pool.ThreadedConnectionPool."""

    def __init__(self, dsn: str, minconn: int = 1, maxconn: int = 4) -> None:
        if psycopg2 is None:
            raise PoolError("psycopg2 not available")
        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(minconn, maxconn, dsn)
        except Exception as e:
            raise PoolError(str(e).strip()) from e
        self.closed = False

    @classmethod
    def from_config(cls, db_cfg: DatabaseConfig, **kwargs: Any) -> ConnectionPool:
        return cls(resolve_dsn(db_cfg), **kwargs)

    @contextmanager
    def session(self) -> Iterator[Any]:
        """Yield a cursor inside one transaction."""
        if self.closed:
            raise PoolError("pool is closed")
        conn = self._pool.getconn()
        conn.autocommit = False
        cur = conn.cursor()
        try:
            yield cur
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            try:
                cur.close()
            finally:
                self._pool.putconn(conn)

    def close(self) -> None:
        if not self.closed:
            self._pool.closeall()
            self.closed = True
            logger.debug("connection pool closed")

    def __enter__(self) -> ConnectionPool:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
