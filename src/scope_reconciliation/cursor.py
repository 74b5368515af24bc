"""
Lazy, forward-only row scans.

Value tables can hold many millions of rows, so scans never call
``fetchall``. Rows are pulled in bounded chunks, and on PostgreSQL through a
named server-side cursor so the result set stays on the server.
"""

import itertools
import logging
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from utils.sql_safety import validate_integer_param

from .descriptor import ValueRow
from .dialect import Dialect
from .errors import CursorConsumedError, PreconditionError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000

_cursor_names = itertools.count(1)


def ensure_chunk_size(chunk_size: Any) -> int:
    """
    Check a scan chunk size before any table is touched.

    Raises:
        PreconditionError: If chunk_size is not a positive integer
    """
    try:
        validate_integer_param(chunk_size, "chunk_size", min_value=1)
    except ValueError as e:
        raise PreconditionError(str(e)) from e
    return chunk_size


class ScopedRowCursor:
    """
    One-shot iterator over the rows of a query.

    The database cursor is opened on the first ``next()`` and released as
    soon as the rows run out, the consumer stops early and calls
    :meth:`close`, or the ``with`` block exits. Iterating a second time
    raises :class:`CursorConsumedError`.

    Example:
        >>> with ScopedRowCursor(conn, sql, (2,), dialect=SQLITE) as rows:
        ...     for row in rows:
        ...         handle(row)
    """

    def __init__(
        self,
        connection: Any,
        query: str,
        params: Sequence[Any] = (),
        *,
        dialect: Dialect,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        row_factory: Callable[[Sequence[Any]], Any] = ValueRow.from_record,
        server_side: bool | None = None,
    ):
        validate_integer_param(chunk_size, "chunk_size", min_value=1)

        self.connection = connection
        self.query = query
        self.params = tuple(params)
        self.dialect = dialect
        self.chunk_size = chunk_size
        self.row_factory = row_factory
        self.server_side = dialect.server_side_cursors if server_side is None else server_side

        self._iterator: Iterator[Any] | None = None
        self._consumed = False

    def __iter__(self) -> Iterator[Any]:
        if self._consumed:
            raise CursorConsumedError("ScopedRowCursor can only be iterated once")
        self._consumed = True
        self._iterator = self._iterate()
        return self._iterator

    def __enter__(self) -> "ScopedRowCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Stop the scan and release the database cursor."""
        self._consumed = True
        if self._iterator is not None:
            self._iterator.close()
            self._iterator = None

    def _open(self) -> Any:
        if self.server_side:
            # withhold keeps the named cursor valid on an autocommit connection
            cursor = self.connection.cursor(
                name=f"scope_scan_{next(_cursor_names)}", withhold=True
            )
            cursor.itersize = self.chunk_size
        else:
            cursor = self.connection.cursor()

        try:
            cursor.execute(self.query, self.params)
        except Exception:
            cursor.close()
            raise
        return cursor

    def _iterate(self) -> Iterator[Any]:
        cursor = self._open()
        fetched = 0
        try:
            while True:
                records = cursor.fetchmany(self.chunk_size)
                if not records:
                    break
                fetched += len(records)
                for record in records:
                    yield self.row_factory(record)
        finally:
            cursor.close()
            logger.debug(f"Scan closed after {fetched} row(s)")
