from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from costsheet_import.db.pool import ConnectionPool, PoolError, resolve_dsn
from costsheet_import.models.config_models import DatabaseConfig

ENV_KEYS = ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE")


@pytest.fixture()
def clean_env(monkeypatch):
    for k in ENV_KEYS:
        monkeypatch.delenv(k, raising=False)
    return monkeypatch


def test_dsn_from_config(clean_env):
    cfg = DatabaseConfig(host="db", port=5433, user="u", password="p", database="d")
    assert resolve_dsn(cfg) == "host=db port=5433 user=u dbname=d password=p"


def test_dsn_defaults(clean_env):
    assert resolve_dsn(DatabaseConfig()) == "host=localhost port=5432 user=postgres dbname=postgres"


def test_env_overrides_config(clean_env):
    clean_env.setenv("PGHOST", "envhost")
    clean_env.setenv("PGUSER", "envuser")
    cfg = DatabaseConfig(host="db", user="u", database="d")
    assert resolve_dsn(cfg) == "host=envhost port=5432 user=envuser dbname=d"


def test_database_url_wins(clean_env):
    clean_env.setenv("PGHOST", "envhost")
    clean_env.setenv("DATABASE_URL", "postgresql://x@y/z")
    assert resolve_dsn(DatabaseConfig(dsn="host=cfg")) == "postgresql://x@y/z"


def test_config_dsn_used_without_env(clean_env):
    assert resolve_dsn(DatabaseConfig(dsn="host=cfg dbname=d")) == "host=cfg dbname=d"


class TestConnectionPool:
    def _pool(self, mock_pg):
        inner = mock_pg.pool.ThreadedConnectionPool.return_value
        conn = MagicMock()
        inner.getconn.return_value = conn
        return ConnectionPool("dbname=test"), inner, conn

    def test_session_commits(self):
        with patch("costsheet_import.db.pool.psycopg2") as mock_pg:
            pool, inner, conn = self._pool(mock_pg)
            with pool.session() as cur:
                cur.execute("SELECT 1")
            mock_pg.pool.ThreadedConnectionPool.assert_called_once_with(1, 4, "dbname=test")
            assert cur is conn.cursor.return_value
            conn.commit.assert_called_once()
            conn.rollback.assert_not_called()
            cur.close.assert_called_once()
            inner.putconn.assert_called_once_with(conn)

    def test_session_rolls_back_on_error(self):
        with patch("costsheet_import.db.pool.psycopg2") as mock_pg:
            pool, inner, conn = self._pool(mock_pg)
            with pytest.raises(RuntimeError):
                with pool.session():
                    raise RuntimeError("boom")
            conn.rollback.assert_called_once()
            conn.commit.assert_not_called()
            inner.putconn.assert_called_once_with(conn)

    def test_connect_failure(self):
        with patch("costsheet_import.db.pool.psycopg2") as mock_pg:
            mock_pg.pool.ThreadedConnectionPool.side_effect = Exception("could not connect to server")
            with pytest.raises(PoolError, match="could not connect"):
                ConnectionPool("dbname=test")

    def test_missing_driver(self):
        with patch("costsheet_import.db.pool.psycopg2", None):
            with pytest.raises(PoolError):
                ConnectionPool("dbname=test")

    def test_close_is_idempotent(self):
        with patch("costsheet_import.db.pool.psycopg2") as mock_pg:
            pool, inner, _ = self._pool(mock_pg)
            with pool:
                pass
            pool.close()
            inner.closeall.assert_called_once()
            with pytest.raises(PoolError):
                with pool.session():
                    pass

    def test_from_config(self, clean_env):
        with patch("costsheet_import.db.pool.psycopg2") as mock_pg:
            ConnectionPool.from_config(DatabaseConfig(host="db"), maxconn=2)
            mock_pg.pool.ThreadedConnectionPool.assert_called_once_with(
                1, 2, "host=db port=5432 user=postgres dbname=postgres"
            )
