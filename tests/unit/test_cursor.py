"""
Unit tests for ScopedRowCursor.

Tests chunked fetching, resource release on early exit, one-shot iteration
and the PostgreSQL server-side cursor path.
"""

from unittest.mock import MagicMock

import pytest

from scope_reconciliation.cursor import ScopedRowCursor
from scope_reconciliation.descriptor import ValueRow
from scope_reconciliation.dialect import POSTGRESQL, SQLITE
from scope_reconciliation.errors import CursorConsumedError


def make_connection(records, chunk_size):
    """Connection whose cursor serves records in fetchmany-sized chunks."""
    chunks = [records[i:i + chunk_size] for i in range(0, len(records), chunk_size)]
    cursor = MagicMock()
    cursor.fetchmany.side_effect = chunks + [[]]
    connection = MagicMock()
    connection.cursor.return_value = cursor
    return connection, cursor


def records(n):
    return [(i, 100 + i, 5, 2, f"value {i}") for i in range(1, n + 1)]


class TestScopedRowCursor:
    """Test lazy iteration."""

    def test_yields_value_rows(self):
        connection, cursor = make_connection(records(3), chunk_size=10)

        rows = list(ScopedRowCursor(connection, "SELECT 1", (2,), dialect=SQLITE, chunk_size=10))

        assert rows[0] == ValueRow(1, 101, 5, 2, "value 1")
        assert len(rows) == 3
        cursor.execute.assert_called_once_with("SELECT 1", (2,))
        cursor.close.assert_called_once()

    def test_fetches_in_chunks(self):
        connection, cursor = make_connection(records(5), chunk_size=2)

        rows = list(ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE, chunk_size=2))

        assert [r.value_id for r in rows] == [1, 2, 3, 4, 5]
        assert cursor.fetchmany.call_count == 4
        cursor.fetchmany.assert_called_with(2)
        cursor.fetchall.assert_not_called()

    def test_is_lazy_until_first_row(self):
        connection, cursor = make_connection(records(1), chunk_size=10)

        scan = ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE)
        iterator = iter(scan)

        connection.cursor.assert_not_called()
        next(iterator)
        connection.cursor.assert_called_once()

    def test_early_close_releases_cursor(self):
        connection, cursor = make_connection(records(10), chunk_size=4)

        scan = ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE, chunk_size=4)
        iterator = iter(scan)
        next(iterator)
        scan.close()

        cursor.close.assert_called_once()
        assert cursor.fetchmany.call_count == 1

    def test_context_manager_releases_cursor_on_break(self):
        connection, cursor = make_connection(records(10), chunk_size=4)

        with ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE, chunk_size=4) as scan:
            for row in scan:
                if row.value_id == 2:
                    break

        cursor.close.assert_called_once()

    def test_second_iteration_raises(self):
        connection, _ = make_connection(records(2), chunk_size=10)
        scan = ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE)

        list(scan)

        with pytest.raises(CursorConsumedError):
            iter(scan)

    def test_iteration_after_close_raises(self):
        connection, _ = make_connection(records(2), chunk_size=10)
        scan = ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE)
        scan.close()

        with pytest.raises(CursorConsumedError):
            list(scan)

    def test_execute_failure_closes_cursor(self):
        connection, cursor = make_connection([], chunk_size=10)
        cursor.execute.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError, match="connection lost"):
            list(ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE))

        cursor.close.assert_called_once()

    def test_fetch_failure_closes_cursor(self):
        connection, cursor = make_connection([], chunk_size=10)
        cursor.fetchmany.side_effect = [records(1), RuntimeError("connection lost")]

        with pytest.raises(RuntimeError):
            list(ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE))

        cursor.close.assert_called_once()

    def test_custom_row_factory(self):
        connection, _ = make_connection(records(2), chunk_size=10)

        values = list(
            ScopedRowCursor(
                connection, "SELECT 1", dialect=SQLITE, row_factory=lambda record: record[4]
            )
        )

        assert values == ["value 1", "value 2"]

    def test_empty_result(self):
        connection, cursor = make_connection([], chunk_size=10)

        assert list(ScopedRowCursor(connection, "SELECT 1", dialect=SQLITE)) == []
        cursor.close.assert_called_once()

    def test_rejects_non_positive_chunk_size(self):
        with pytest.raises(ValueError):
            ScopedRowCursor(MagicMock(), "SELECT 1", dialect=SQLITE, chunk_size=0)


class TestServerSideCursor:
    """Test the named cursor path used on PostgreSQL."""

    def test_postgresql_uses_named_cursor(self):
        connection, cursor = make_connection(records(1), chunk_size=50)

        list(ScopedRowCursor(connection, "SELECT 1", dialect=POSTGRESQL, chunk_size=50))

        _, kwargs = connection.cursor.call_args
        assert kwargs["name"].startswith("scope_scan_")
        assert kwargs["withhold"] is True
        assert cursor.itersize == 50

    def test_named_cursors_are_unique(self):
        connection, _ = make_connection(records(1), chunk_size=10)
        list(ScopedRowCursor(connection, "SELECT 1", dialect=POSTGRESQL))
        first = connection.cursor.call_args.kwargs["name"]

        connection, _ = make_connection(records(1), chunk_size=10)
        list(ScopedRowCursor(connection, "SELECT 1", dialect=POSTGRESQL))
        second = connection.cursor.call_args.kwargs["name"]

        assert first != second

    def test_server_side_can_be_disabled(self):
        connection, _ = make_connection(records(1), chunk_size=10)

        list(ScopedRowCursor(connection, "SELECT 1", dialect=POSTGRESQL, server_side=False))

        connection.cursor.assert_called_once_with()
