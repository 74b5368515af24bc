"""
Host-side lookups done before any value table is touched.

Resolves whether the requested store exists and which storage edition the
database uses, which decides the entity correlation column.
"""

import logging
import sys
from typing import Any

from .descriptor import EntityType, StorageEdition, entity_table_name
from .dialect import Dialect
from .errors import InvalidScopeError
from .reconciler import ensure_override_scope
from .storage import fetch_scalar, storage_operation

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Validates override scope ids against the store table."""

    def __init__(self, connection: Any, dialect: Dialect, table_prefix: str = ""):
        self.connection = connection
        self.dialect = dialect
        self.store_table = f"{table_prefix}store"

    def ensure_exists(self, scope_id: int) -> int:
        """
        Check that scope_id is an override scope with a row in the store table.

        Raises:
            InvalidScopeError: If the store id is 0 or unknown
            StorageAccessError: If the store table cannot be queried
        """
        ensure_override_scope(scope_id)

        q = self.dialect.quote
        sql = (
            f"SELECT COUNT(*) FROM {q(self.store_table)} "
            f"WHERE {q('store_id')} = {self.dialect.placeholder}"
        )
        with storage_operation(self.store_table, "look up store"):
            found = fetch_scalar(self.connection, sql, (scope_id,))

        if not found:
            raise InvalidScopeError(f"Store with store id {scope_id} does not exist.")

        logger.debug(f"Store {scope_id} found in {self.store_table}")
        return scope_id


def _missing_column_errors(connection: Any) -> tuple[type[Exception], ...]:
    """
    Driver exceptions raised when a probed column or table does not exist.

    psycopg2 and sqlite3 expose them on the connection, pyodbc on its module.
    """
    module = sys.modules.get(type(connection).__module__.split(".")[0])
    errors = []
    for name in ("ProgrammingError", "OperationalError"):
        error = getattr(connection, name, None)
        if not (isinstance(error, type) and issubclass(error, Exception)):
            error = getattr(module, name, None)
        if isinstance(error, type) and issubclass(error, Exception):
            errors.append(error)
    return tuple(errors)


def detect_edition(
    connection: Any,
    dialect: Dialect,
    entity_type: EntityType = EntityType.PRODUCT,
    table_prefix: str = "",
) -> StorageEdition:
    """
    Detect the storage edition from the entity table's columns.

    The enterprise edition keys value rows by ``row_id``. The probe column is
    table-qualified so SQLite cannot read it as a string literal. Only the
    driver's programming and operational errors mean the column is absent;
    anything else, including a failed rollback, is a storage failure.

    Raises:
        StorageAccessError: If the probe fails for another reason
    """
    q = dialect.quote
    table = entity_table_name(entity_type, table_prefix)
    probe = f"SELECT {q(table)}.{q('row_id')} FROM {q(table)} WHERE 1 = 0"
    missing_column = _missing_column_errors(connection)

    with storage_operation(table, "detect edition"):
        cursor = connection.cursor()
        try:
            cursor.execute(probe)
            cursor.fetchall()
        except missing_column as e:
            connection.rollback()
            logger.debug(f"No row_id column on {table} ({e}); assuming community edition")
            return StorageEdition.COMMUNITY
        finally:
            cursor.close()

    logger.debug(f"{table} has a row_id column; using enterprise edition")
    return StorageEdition.ENTERPRISE
