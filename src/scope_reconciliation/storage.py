"""
Thin helpers around DB-API calls shared by the reconciler and pruners.
"""

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from .errors import ScopeReconciliationError, StorageAccessError

T = TypeVar("T")

_EXHAUSTED = object()


@contextmanager
def storage_operation(table: str, operation: str) -> Iterator[None]:
    """
    Attach table and operation context to any driver error raised inside.

    Errors of this package pass through untouched, so nested guards do not
    re-wrap an already described failure.
    """
    try:
        yield
    except ScopeReconciliationError:
        raise
    except Exception as exc:
        raise StorageAccessError(table, operation, str(exc)) from exc


def execute(connection: Any, sql: str, params: Sequence[Any] = ()) -> int:
    """Run a write statement and return the driver's rowcount."""
    cursor = connection.cursor()
    try:
        cursor.execute(sql, tuple(params))
        return cursor.rowcount
    finally:
        cursor.close()


def fetch_scalar(connection: Any, sql: str, params: Sequence[Any] = ()) -> Any:
    """Run a single-value query such as ``SELECT COUNT(*)``."""
    cursor = connection.cursor()
    try:
        cursor.execute(sql, tuple(params))
        row = cursor.fetchone()
        return row[0] if row else None
    finally:
        cursor.close()


def scan_rows(rows: Iterable[T], table: str, operation: str) -> Iterator[T]:
    """
    Iterate a scan, guarding only the fetch of each row.

    Whatever the caller does with a yielded row runs outside the guard, so
    its errors keep their own type.
    """
    iterator = iter(rows)
    while True:
        with storage_operation(table, operation):
            row = next(iterator, _EXHAUSTED)
        if row is _EXHAUSTED:
            return
        yield row
