"""
Store-scope reconciliation engine.

For one value table and one override scope, every non-NULL override row is
paired with the default-scope rows of the same (attribute, entity) whose
value differs exactly. The override is then treated as authoritative: its
value is promoted into the default row and the override row is deleted.

Each promote+delete pair is committed on its own. A failure aborts the table,
but rows handled before it stay applied. Re-running is safe because a
deleted override never shows up in the next scan.
"""

import logging
import time
from typing import Any

from opentelemetry import trace

from utils.logging import ContextLogger
from utils.metrics import CleanupMetrics
from utils.tracing import add_span_attributes, add_span_event, trace_operation

from .cursor import DEFAULT_CHUNK_SIZE, ScopedRowCursor, ensure_chunk_size
from .descriptor import DEFAULT_SCOPE_ID, ValueRow, ValueTableDescriptor
from .dialect import Dialect, detect_dialect
from .errors import InvalidScopeError
from .queries import ValueTableQueries
from .report import ReconciliationReport
from .storage import execute, scan_rows, storage_operation

logger = logging.getLogger(__name__)

# Default rows per (attribute, entity) pair; more than one is a data anomaly
LOOKUP_CHUNK_SIZE = 16


def ensure_override_scope(scope_id: Any) -> int:
    """
    Check that scope_id names an override scope.

    Raises:
        InvalidScopeError: For the default scope, negative ids and non-integers
    """
    if not isinstance(scope_id, int) or isinstance(scope_id, bool):
        raise InvalidScopeError(f"Store id must be an integer, got {scope_id!r}")
    if scope_id == DEFAULT_SCOPE_ID:
        raise InvalidScopeError(
            "Store id 0 is the default scope and cannot be reconciled as an override"
        )
    if scope_id < 0:
        raise InvalidScopeError(f"Store id must be positive, got {scope_id}")
    return scope_id


class ScopeReconciler:
    """
    Promotes differing override values into the default scope.

    Args:
        connection: DB-API connection used for reads and writes
        dialect: SQL dialect (detected from the connection when omitted)
        chunk_size: Rows fetched per round trip for the override scan
        metrics: Optional Prometheus metrics sink
    """

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

    def reconcile(
        self,
        table: ValueTableDescriptor,
        target_scope: int,
        dry_run: bool,
        report: ReconciliationReport | None = None,
    ) -> ReconciliationReport:
        """
        Reconcile one value table for one override scope.

        Args:
            table: Value table to scan
            target_scope: Override scope id (never 0)
            dry_run: Only report what would change
            report: Report to accumulate into (a new one is created if omitted)

        Returns:
            The report holding this table's counters

        Raises:
            InvalidScopeError: If target_scope is not an override scope
            StorageAccessError: If a scan or write fails
        """
        ensure_override_scope(target_scope)
        if report is None:
            report = ReconciliationReport(scope_id=target_scope, dry_run=dry_run)

        queries = ValueTableQueries(table, self.dialect)
        log = ContextLogger(
            __name__, table_name=table.table_name, scope_id=target_scope, dry_run=dry_run
        )
        table_report = report.table(table.table_name)
        promoted_before = table_report.promotions

        with trace_operation(
            "reconcile_value_table",
            kind=trace.SpanKind.CLIENT,
            table=table.table_name,
            scope_id=target_scope,
            dry_run=dry_run,
        ):
            log.debug("Scanning override rows")
            scanned = 0
            with ScopedRowCursor(
                self.connection,
                queries.select_overrides(),
                (target_scope,),
                dialect=self.dialect,
                chunk_size=self.chunk_size,
            ) as overrides:
                for override in scan_rows(overrides, table.table_name, "scan override rows"):
                    scanned += 1
                    self._reconcile_row(queries, override, dry_run, report)

            promoted = table_report.promotions - promoted_before
            add_span_attributes(rows_scanned=scanned, promotions=promoted)
            log.info(
                f"Override scan finished: {scanned} row(s) scanned, {promoted} promoted",
                rows_scanned=scanned,
                promotions=promoted,
            )

        return report

    def _find_mismatching_defaults(
        self, queries: ValueTableQueries, override: ValueRow
    ) -> list[ValueRow]:
        lookup = ScopedRowCursor(
            self.connection,
            queries.select_mismatching_defaults(),
            (override.attribute_id, DEFAULT_SCOPE_ID, override.entity_key, override.value),
            dialect=self.dialect,
            chunk_size=LOOKUP_CHUNK_SIZE,
            server_side=False,
        )
        # Drain before writing so one override row is judged against one snapshot
        with storage_operation(queries.table, "look up default value"), lookup:
            return list(lookup)

    def _reconcile_row(
        self,
        queries: ValueTableQueries,
        override: ValueRow,
        dry_run: bool,
        report: ReconciliationReport,
    ) -> None:
        defaults = self._find_mismatching_defaults(queries, override)
        if len(defaults) > 1:
            logger.warning(
                f"{len(defaults)} default rows for attribute {override.attribute_id}, "
                f"entity {override.entity_key} in {queries.table}; promoting into all of them"
            )
            add_span_event(
                "multiple_default_rows",
                attribute_id=override.attribute_id,
                entity_key=override.entity_key,
                count=len(defaults),
            )

        for default in defaults:
            if not dry_run:
                self._promote(queries, override, default)
            report.record_promotion(
                queries.table, override.attribute_id, override=override, default=default
            )
            if self.metrics is not None:
                self.metrics.record_promotion(queries.table, dry_run)

    def _promote(
        self, queries: ValueTableQueries, override: ValueRow, default: ValueRow
    ) -> None:
        started = time.monotonic()
        with storage_operation(queries.table, "promote override value"):
            execute(self.connection, queries.update_value(), (override.value, default.value_id))
        with storage_operation(queries.table, "delete override row"):
            execute(self.connection, queries.delete_value(), (override.value_id,))
            self.connection.commit()
        logger.debug(
            f"Promoted value {override.value_id} into {default.value_id} "
            f"in {(time.monotonic() - started) * 1000:.1f}ms"
        )
