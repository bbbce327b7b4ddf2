import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest
from psycopg import sql

from kra_automation.config.settings import Settings
from kra_automation.database.connection import close_pool, get_connection, init_pool, ping


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "kra_automation_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        ping()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at a scratch database")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


def _scratch_table(db_conn: psycopg.Connection[Any], prefix: str, columns: str) -> Generator[str, None, None]:
    name = f"{prefix}_{uuid.uuid4().hex[:8]}"
    db_conn.execute(
        sql.SQL("CREATE TABLE {table} (" + columns + ")").format(table=sql.Identifier(name))
    )
    db_conn.commit()
    try:
        yield name
    finally:
        db_conn.execute(sql.SQL("DROP TABLE IF EXISTS {table}").format(table=sql.Identifier(name)))
        db_conn.commit()


@pytest.fixture
def company_table(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    yield from _scratch_table(
        db_conn,
        "companies",
        """
        id INTEGER PRIMARY KEY,
        company_name TEXT NOT NULL,
        kra_pin TEXT,
        kra_password TEXT,
        kra_status TEXT,
        kra_last_checked TIMESTAMPTZ
        """,
    )


@pytest.fixture
def extraction_table(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    yield from _scratch_table(
        db_conn,
        "extractions",
        """
        company_key TEXT PRIMARY KEY,
        company_name TEXT NOT NULL,
        extractions JSONB,
        last_extraction_date TIMESTAMPTZ
        """,
    )


@pytest.fixture
def progress_table(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    yield from _scratch_table(
        db_conn,
        "progress",
        """
        id INTEGER PRIMARY KEY,
        progress INTEGER,
        status TEXT,
        current_company TEXT,
        logs JSONB,
        last_updated TIMESTAMPTZ
        """,
    )


@pytest.fixture
def seeded_companies(db_conn: psycopg.Connection[Any], company_table: str) -> str:
    rows = [
        (3, "Gamma Ltd", "P000000003C", "c"),
        (1, "Acme Ltd", "P000000001A", "a"),
        (2, "Beta Ltd", None, None),
        (4, "Delta Ltd", "A000000004D", "d"),
    ]
    with db_conn.cursor() as cur:
        cur.executemany(
            sql.SQL(
                "INSERT INTO {table} (id, company_name, kra_pin, kra_password) VALUES (%s, %s, %s, %s)"
            ).format(table=sql.Identifier(company_table)),
            rows,
        )
    db_conn.commit()
    return company_table
