import os
import random
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "app" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docsync_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text())
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def customer_id(integration_pool: None) -> Generator[str, None, None]:
    """A throwaway customer id whose catalog and policy rows are removed afterwards."""
    value = str(random.randint(10**12, 10**13))
    yield value
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM qq.contact_files WHERE customer_id = %s", (int(value),))
            cur.execute("DELETE FROM qq.policies WHERE customer_id = %s", (int(value),))
        conn.commit()


@pytest.fixture
def seed_policy(db_conn: psycopg.Connection[Any], customer_id: str) -> str:
    policy_number = f"POL-{customer_id}"
    with db_conn.cursor() as cur:
        cur.execute(
            "INSERT INTO qq.policies (policy_number, customer_id) VALUES (%s, %s)",
            (policy_number, int(customer_id)),
        )
    db_conn.commit()
    return policy_number
