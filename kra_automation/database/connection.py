from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool

from kra_automation.config.settings import Settings

_pool: ConnectionPool | None = None


def init_pool(settings: Settings) -> None:
    """Open the global connection pool.

    Companies are processed one at a time, so a handful of connections covers
    the run thread plus controller readers.
    """
    global _pool  # noqa: PLW0603
    conninfo = make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
        application_name=f"kra-automation-{settings.worker_id}",
    )
    _pool = ConnectionPool(
        conninfo,
        min_size=1,
        max_size=settings.db_pool_max_size,
        name=f"kra-automation-{settings.worker_id}",
    )


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn


def ping() -> None:
    """Round-trip a trivial query; raises the driver error when the database is unreachable."""
    with get_connection() as conn:
        conn.execute("SELECT 1")
