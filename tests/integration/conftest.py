import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "taxdoc_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(_SCHEMA_PATH.read_text(encoding="utf-8"))
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
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[tuple[str, int]], None, None]:
    cleanup: list[tuple[str, int]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, row_id in cleanup:
                if table == "tax_forms":
                    cur.execute("DELETE FROM tax_forms WHERE id = %s", (row_id,))
            for table, row_id in cleanup:
                if table == "documents":
                    cur.execute("DELETE FROM documents WHERE id = %s", (row_id,))
        conn.commit()


def insert_document(
    db_conn: psycopg.Connection[Any],
    *,
    client_id: int | None = 501,
    status: str = "pending",
    storage_path: str = "documents/w2.pdf",
) -> int:
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO documents (client_id, mime_type, storage_disk, storage_path, processing_status)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id
            """,
            (client_id, "application/pdf", "local", storage_path, status),
        )
        row = cur.fetchone()
        assert row is not None
    db_conn.commit()
    return int(row[0])


@pytest.fixture
def make_document(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, int]],
) -> Any:
    def _make(**kwargs: Any) -> int:
        document_id = insert_document(db_conn, **kwargs)
        integration_cleanup.append(("documents", document_id))
        return document_id

    return _make


@pytest.fixture
def seed_document(make_document: Any) -> int:
    return make_document()


@pytest.fixture
def client_id() -> int:
    # high range keeps tax_forms rows apart from anything seeded by hand
    return 900_000 + os.getpid() % 10_000
