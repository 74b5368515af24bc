"""
Runs the cleanup passes over an entity's value tables in fixed order.
"""

import logging
import time
from collections.abc import Sequence
from typing import Any

from utils.metrics import CleanupMetrics

from .cursor import DEFAULT_CHUNK_SIZE, ensure_chunk_size
from .descriptor import ValueTableDescriptor
from .dialect import Dialect, detect_dialect
from .errors import StorageAccessError
from .pruner import DuplicateOverridePruner, NullOverridePruner
from .reconciler import ScopeReconciler, ensure_override_scope
from .report import ReconciliationReport

logger = logging.getLogger(__name__)


def run_cleanup(
    connection: Any,
    tables: Sequence[ValueTableDescriptor],
    scope_id: int,
    dry_run: bool,
    *,
    remove_duplicates: bool = False,
    report: ReconciliationReport | None = None,
    dialect: Dialect | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    metrics: CleanupMetrics | None = None,
) -> ReconciliationReport:
    """
    Reconcile every table for one override scope.

    Per table: promote differing overrides, optionally drop exact duplicates,
    then prune NULL overrides, then emit the table's status line. A storage
    failure aborts the current table and all tables after it.

    Args:
        connection: Autocommit DB-API connection to the catalog database
        tables: Value tables in processing order
        scope_id: Override scope (store) id, never 0
        dry_run: Only report what would change
        remove_duplicates: Also delete overrides equal to their default
        report: Report to accumulate into (created when omitted)
        dialect: SQL dialect (detected from the connection when omitted)
        chunk_size: Rows fetched per round trip for override scans
        metrics: Optional Prometheus metrics sink

    Returns:
        The accumulated report

    Raises:
        InvalidScopeError: If scope_id is the default scope
        PreconditionError: If chunk_size is not a positive integer
        StorageAccessError: If any scan or write fails
    """
    ensure_override_scope(scope_id)
    ensure_chunk_size(chunk_size)
    dialect = dialect or detect_dialect(connection)
    if report is None:
        report = ReconciliationReport(scope_id=scope_id, dry_run=dry_run)

    reconciler = ScopeReconciler(connection, dialect, chunk_size=chunk_size, metrics=metrics)
    null_pruner = NullOverridePruner(connection, dialect, metrics=metrics)
    duplicate_pruner = (
        DuplicateOverridePruner(connection, dialect, chunk_size=chunk_size, metrics=metrics)
        if remove_duplicates
        else None
    )

    mode = "dry run" if dry_run else "execute"
    logger.info(f"Cleaning up {len(tables)} value table(s) for store {scope_id} ({mode})")

    for table in tables:
        started = time.monotonic()
        try:
            reconciler.reconcile(table, scope_id, dry_run, report)
            if duplicate_pruner is not None:
                duplicate_pruner.prune(table, scope_id, dry_run, report)
            null_pruner.prune(table, scope_id, dry_run, report)
        except StorageAccessError as e:
            logger.error(f"Aborting cleanup at {table.table_name}: {e}")
            if metrics is not None:
                metrics.record_table_run(table.table_name, False, time.monotonic() - started)
            raise

        report.finish_table(table.table_name)
        if metrics is not None:
            metrics.record_table_run(table.table_name, True, time.monotonic() - started)

    logger.info(
        f"Cleanup finished: {report.total_promotions} promoted, "
        f"{report.total_duplicates_removed} duplicate(s), "
        f"{report.total_null_pruned} NULL value(s)"
    )
    return report
