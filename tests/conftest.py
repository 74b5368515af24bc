"""
Pytest configuration and fixtures for scope cleanup tests.

Provides an in-memory SQLite catalog with the store table, the entity
tables and one value table per backend type, so the engine runs against a
real DB-API driver without any external service.
"""

import sqlite3
from pathlib import Path

import pytest

from scope_reconciliation.descriptor import TABLE_CATEGORIES

COLUMN_TYPES = {
    "varchar": "TEXT",
    "int": "INTEGER",
    "decimal": "NUMERIC",
    "text": "TEXT",
    "datetime": "TEXT",
}

STORE_IDS = (0, 1, 2, 7)


def create_catalog_schema(connection: sqlite3.Connection, entity_column: str = "entity_id") -> None:
    """Create store, entity and value tables for products and categories."""
    connection.execute('CREATE TABLE "store" (store_id INTEGER PRIMARY KEY, code TEXT)')
    connection.executemany(
        'INSERT INTO "store" (store_id, code) VALUES (?, ?)',
        [(store_id, f"store_{store_id}") for store_id in STORE_IDS],
    )

    for entity in ("product", "category"):
        connection.execute(
            f'CREATE TABLE "catalog_{entity}_entity" ({entity_column} INTEGER PRIMARY KEY)'
        )
        for category in TABLE_CATEGORIES:
            connection.execute(
                f'CREATE TABLE "catalog_{entity}_entity_{category}" ('
                "value_id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "attribute_id INTEGER NOT NULL, "
                "store_id INTEGER NOT NULL, "
                f"{entity_column} INTEGER NOT NULL, "
                f"value {COLUMN_TYPES[category]})"
            )


class CatalogDatabase:
    """Small helper for seeding and inspecting value tables."""

    def __init__(self, connection: sqlite3.Connection, entity_column: str = "entity_id"):
        self.connection = connection
        self.entity_column = entity_column

    def insert(self, table: str, attribute_id: int, store_id: int, entity_id: int, value) -> int:
        cursor = self.connection.execute(
            f'INSERT INTO "{table}" (attribute_id, store_id, {self.entity_column}, value) '
            "VALUES (?, ?, ?, ?)",
            (attribute_id, store_id, entity_id, value),
        )
        return cursor.lastrowid

    def insert_with_id(
        self, table: str, value_id: int, attribute_id: int, store_id: int, entity_id: int, value
    ) -> int:
        self.connection.execute(
            f'INSERT INTO "{table}" (value_id, attribute_id, store_id, {self.entity_column}, value) '
            "VALUES (?, ?, ?, ?, ?)",
            (value_id, attribute_id, store_id, entity_id, value),
        )
        return value_id

    def rows(self, table: str) -> list[tuple]:
        return self.connection.execute(
            f'SELECT value_id, attribute_id, store_id, {self.entity_column}, value '
            f'FROM "{table}" ORDER BY value_id'
        ).fetchall()

    def value(self, table: str, value_id: int):
        row = self.connection.execute(
            f'SELECT value FROM "{table}" WHERE value_id = ?', (value_id,)
        ).fetchone()
        return row[0] if row else None

    def exists(self, table: str, value_id: int) -> bool:
        row = self.connection.execute(
            f'SELECT COUNT(*) FROM "{table}" WHERE value_id = ?', (value_id,)
        ).fetchone()
        return row[0] == 1

    def count(self, table: str, store_id: int | None = None) -> int:
        if store_id is None:
            return self.connection.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]
        return self.connection.execute(
            f'SELECT COUNT(*) FROM "{table}" WHERE store_id = ?', (store_id,)
        ).fetchone()[0]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sqlite_connection():
    """Autocommit in-memory SQLite connection with the catalog schema."""
    connection = sqlite3.connect(":memory:", isolation_level=None)
    create_catalog_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def catalog(sqlite_connection) -> CatalogDatabase:
    """Seeding/inspection helper bound to the in-memory catalog."""
    return CatalogDatabase(sqlite_connection)


@pytest.fixture
def enterprise_catalog():
    """Catalog whose tables correlate values by row_id."""
    connection = sqlite3.connect(":memory:", isolation_level=None)
    create_catalog_schema(connection, entity_column="row_id")
    yield CatalogDatabase(connection, entity_column="row_id")
    connection.close()


@pytest.fixture
def catalog_file(tmp_path) -> Path:
    """File-backed catalog, for code that opens and closes its own connection."""
    path = tmp_path / "catalog.db"
    connection = sqlite3.connect(path, isolation_level=None)
    create_catalog_schema(connection)
    connection.close()
    return path


@pytest.fixture(autouse=True)
def clean_db_env(monkeypatch) -> None:
    """Keep host configuration from leaking into tests."""
    for key in (
        "EAV_DB_TYPE",
        "EAV_DB_HOST",
        "EAV_DB_PORT",
        "EAV_DB_NAME",
        "EAV_DB_USER",
        "EAV_DB_PASSWORD",
        "EAV_DB_DRIVER",
        "EAV_TABLE_PREFIX",
        "EAV_EDITION",
        "OTLP_ENDPOINT",
        "VAULT_ADDR",
        "VAULT_TOKEN",
    ):
        monkeypatch.delenv(key, raising=False)
