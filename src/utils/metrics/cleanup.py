"""
Metrics for store-scope cleanup runs.

Tracks promotions, pruned NULL overrides, removed duplicates and table
run durations so repeated cleanups can be graphed per value table.
"""

import logging
import time
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

logger = logging.getLogger(__name__)


class CleanupMetrics:
    """
    Prometheus metrics for scope cleanup operations

    Pass a dedicated CollectorRegistry in tests or when pushing to a
    Pushgateway; the default is the process-wide REGISTRY.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.promotions_total = Counter(
            "eav_scope_promotions_total",
            "Override values promoted into the default scope",
            ["table_name", "dry_run"],
            registry=self.registry,
        )

        self.null_overrides_pruned_total = Counter(
            "eav_scope_null_overrides_pruned_total",
            "NULL override rows removed (or counted in dry-run)",
            ["table_name", "dry_run"],
            registry=self.registry,
        )

        self.duplicate_overrides_removed_total = Counter(
            "eav_scope_duplicate_overrides_removed_total",
            "Override rows removed because they equal the default value",
            ["table_name", "dry_run"],
            registry=self.registry,
        )

        self.table_runs_total = Counter(
            "eav_scope_table_runs_total",
            "Value table cleanup runs",
            ["table_name", "status"],
            registry=self.registry,
        )

        self.table_duration_seconds = Histogram(
            "eav_scope_table_duration_seconds",
            "Duration of a value table cleanup in seconds",
            ["table_name"],
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 300, 900, 1800, 3600),
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "eav_scope_last_run_timestamp",
            "Timestamp of the last cleanup run per value table",
            ["table_name"],
            registry=self.registry,
        )

    def record_promotion(self, table_name: str, dry_run: bool) -> None:
        self.promotions_total.labels(table_name=table_name, dry_run=str(dry_run).lower()).inc()

    def record_null_prune(self, table_name: str, count: int, dry_run: bool) -> None:
        if count:
            self.null_overrides_pruned_total.labels(
                table_name=table_name, dry_run=str(dry_run).lower()
            ).inc(count)

    def record_duplicate_removal(self, table_name: str, dry_run: bool) -> None:
        self.duplicate_overrides_removed_total.labels(
            table_name=table_name, dry_run=str(dry_run).lower()
        ).inc()

    def record_table_run(self, table_name: str, success: bool, duration: float) -> None:
        """
        Record a finished (or aborted) value table run

        Args:
            table_name: Physical value table name
            success: Whether the table finished without a storage error
            duration: Wall-clock seconds spent on the table
        """
        status = "success" if success else "failure"
        self.table_runs_total.labels(table_name=table_name, status=status).inc()
        self.table_duration_seconds.labels(table_name=table_name).observe(duration)
        self.last_run_timestamp.labels(table_name=table_name).set(time.time())

        logger.debug(
            f"Recorded table run: table={table_name}, status={status}, "
            f"duration={duration:.2f}s"
        )
