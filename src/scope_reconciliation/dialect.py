"""
SQL dialect differences between the supported catalog databases.

Covers parameter placeholders, identifier quoting and, most importantly,
how to compare two values byte-for-byte. The catalog's string columns
usually carry a case-insensitive collation, under which "Red" and "red " can
compare equal; a cleanup that trusted that comparison would throw away real
differences.
"""

import logging
from dataclasses import dataclass
from typing import Any

from utils.sql_safety import DbType, quote_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dialect:
    """Rendering rules for one database type."""

    name: DbType
    placeholder: str
    binary_collation: str | None = None
    binary_prefix: str | None = None
    server_side_cursors: bool = False

    def quote(self, identifier: str) -> str:
        return quote_identifier(identifier, self.name)

    def _binary_operand(self, column_sql: str, binary: bool) -> str:
        if not binary:
            return column_sql
        if self.binary_prefix:
            return f"{self.binary_prefix} {column_sql}"
        if self.binary_collation:
            return f"{column_sql} COLLATE {self.binary_collation}"
        return column_sql

    def exact_mismatch(self, column_sql: str, binary: bool) -> str:
        """Predicate that is true when column differs from the bound value."""
        return f"{self._binary_operand(column_sql, binary)} <> {self.placeholder}"

    def exact_match(self, column_sql: str, binary: bool) -> str:
        """Predicate that is true when column equals the bound value exactly."""
        return f"{self._binary_operand(column_sql, binary)} = {self.placeholder}"


POSTGRESQL = Dialect(
    name="postgresql",
    placeholder="%s",
    binary_collation='"C"',
    server_side_cursors=True,
)

MYSQL = Dialect(
    name="mysql",
    placeholder="?",
    binary_prefix="BINARY",
)

SQLSERVER = Dialect(
    name="sqlserver",
    placeholder="?",
    binary_collation="Latin1_General_BIN2",
)

# SQLite's default BINARY collation already compares exactly
SQLITE = Dialect(
    name="sqlite",
    placeholder="?",
)

DIALECTS: dict[str, Dialect] = {
    dialect.name: dialect for dialect in (POSTGRESQL, MYSQL, SQLSERVER, SQLITE)
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by database type name."""
    try:
        return DIALECTS[name]
    except KeyError:
        raise ValueError(
            f"Unsupported database type: {name!r}. "
            f"Expected one of: {', '.join(DIALECTS)}"
        ) from None


def detect_dialect(connection: Any) -> Dialect:
    """
    Detect the dialect from a DB-API connection object.

    pyodbc connections are asked for their DBMS name, since the same driver
    module serves both MySQL and SQL Server.
    """
    module = type(connection).__module__.lower()

    if "psycopg" in module:
        return POSTGRESQL
    if "sqlite3" in module:
        return SQLITE
    if "pyodbc" in module:
        import pyodbc

        dbms_name = str(connection.getinfo(pyodbc.SQL_DBMS_NAME)).lower()
        logger.debug(f"ODBC connection reports DBMS {dbms_name!r}")
        if "mysql" in dbms_name or "mariadb" in dbms_name:
            return MYSQL
        return SQLSERVER

    raise ValueError(
        f"Cannot detect SQL dialect for connection type {type(connection).__name__}; "
        "pass the dialect explicitly"
    )
