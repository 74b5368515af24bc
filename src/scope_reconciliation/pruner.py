"""
Override pruning passes.

NullOverridePruner removes NULL override rows. A NULL in an override scope
only means "use the default", so such rows are dropped without looking at
the default row.

DuplicateOverridePruner is opt-in. It deletes override rows whose value is
exactly the default value, which the promotion pass leaves in place.
"""

import logging
from typing import Any

from opentelemetry import trace

from utils.metrics import CleanupMetrics
from utils.tracing import add_span_attributes, trace_operation

from .cursor import DEFAULT_CHUNK_SIZE, ScopedRowCursor, ensure_chunk_size
from .descriptor import DEFAULT_SCOPE_ID, ValueRow, ValueTableDescriptor
from .dialect import Dialect, detect_dialect
from .queries import ValueTableQueries
from .reconciler import LOOKUP_CHUNK_SIZE, ensure_override_scope
from .report import ReconciliationReport
from .storage import execute, fetch_scalar, scan_rows, storage_operation

logger = logging.getLogger(__name__)


class NullOverridePruner:
    """Deletes NULL override rows of one scope in a single statement."""

    def __init__(
        self,
        connection: Any,
        dialect: Dialect | None = None,
        metrics: CleanupMetrics | None = None,
    ):
        self.connection = connection
        self.dialect = dialect or detect_dialect(connection)
        self.metrics = metrics

    def prune(
        self,
        table: ValueTableDescriptor,
        target_scope: int,
        dry_run: bool,
        report: ReconciliationReport | None = None,
    ) -> int:
        """
        Count, and unless dry-run delete, NULL override rows.

        Returns:
            Number of NULL override rows found
        """
        ensure_override_scope(target_scope)
        queries = ValueTableQueries(table, self.dialect)

        with trace_operation(
            "prune_null_overrides",
            kind=trace.SpanKind.CLIENT,
            table=table.table_name,
            scope_id=target_scope,
            dry_run=dry_run,
        ):
            with storage_operation(table.table_name, "count NULL overrides"):
                count = int(
                    fetch_scalar(self.connection, queries.count_null_overrides(), (target_scope,))
                    or 0
                )

            if count > 0 and not dry_run:
                with storage_operation(table.table_name, "delete NULL overrides"):
                    deleted = execute(
                        self.connection, queries.delete_null_overrides(), (target_scope,)
                    )
                    self.connection.commit()
                if deleted not in (-1, count):
                    logger.warning(
                        f"Counted {count} NULL override(s) in {table.table_name} "
                        f"but deleted {deleted}"
                    )

            add_span_attributes(null_overrides=count)

        if report is not None:
            report.record_null_prune(table.table_name, count)
        if self.metrics is not None:
            self.metrics.record_null_prune(table.table_name, count, dry_run)

        return count


class DuplicateOverridePruner:
    """Deletes override rows that hold exactly the default value."""

    def __init__(
        self,
        connection: Any,
        dialect: Dialect | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        metrics: CleanupMetrics | None = None,
    ):
        self.connection = connection
        self.dialect = dialect or detect_dialect(connection)
        self.chunk_size = ensure_chunk_size(chunk_size)
        self.metrics = metrics

    def prune(
        self,
        table: ValueTableDescriptor,
        target_scope: int,
        dry_run: bool,
        report: ReconciliationReport | None = None,
    ) -> int:
        """
        Remove overrides equal to their default row.

        Returns:
            Number of override rows removed (or that would be in dry-run)
        """
        ensure_override_scope(target_scope)
        queries = ValueTableQueries(table, self.dialect)
        removed = 0

        with trace_operation(
            "prune_duplicate_overrides",
            kind=trace.SpanKind.CLIENT,
            table=table.table_name,
            scope_id=target_scope,
            dry_run=dry_run,
        ):
            with ScopedRowCursor(
                self.connection,
                queries.select_overrides(),
                (target_scope,),
                dialect=self.dialect,
                chunk_size=self.chunk_size,
            ) as overrides:
                for override in scan_rows(overrides, table.table_name, "scan override rows"):
                    default = self._find_matching_default(queries, override)
                    if default is None:
                        continue
                    if not dry_run:
                        with storage_operation(table.table_name, "delete duplicate override"):
                            execute(self.connection, queries.delete_value(), (override.value_id,))
                            self.connection.commit()
                    removed += 1
                    if report is not None:
                        report.record_duplicate_removal(
                            table.table_name,
                            override.attribute_id,
                            override=override,
                            default=default,
                        )
                    if self.metrics is not None:
                        self.metrics.record_duplicate_removal(table.table_name, dry_run)

            add_span_attributes(duplicates_removed=removed)

        logger.info(f"{removed} duplicate override(s) in {table.table_name}")
        return removed

    def _find_matching_default(
        self, queries: ValueTableQueries, override: ValueRow
    ) -> ValueRow | None:
        lookup = ScopedRowCursor(
            self.connection,
            queries.select_matching_defaults(),
            (override.attribute_id, DEFAULT_SCOPE_ID, override.entity_key, override.value),
            dialect=self.dialect,
            chunk_size=LOOKUP_CHUNK_SIZE,
            server_side=False,
        )
        with storage_operation(queries.table, "look up default value"), lookup:
            return next(iter(lookup), None)
