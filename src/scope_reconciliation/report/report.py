"""
Accumulated results and audit transcript of a cleanup run.

The report never touches the database. It counts what the reconciler and
pruners did (or would do in dry-run), and writes the audit lines. The lines
are identical in both modes, so a dry-run transcript previews an execute run.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from ..descriptor import ValueRow

logger = logging.getLogger(__name__)

DONE_MESSAGE = "Done"
NO_VALUES_MESSAGE = "There were no attribute values to clean up"


@dataclass
class TableReport:
    """Counters for one value table."""

    table: str
    counts: dict[int, int] = field(default_factory=dict)
    duplicates_removed: dict[int, int] = field(default_factory=dict)
    null_pruned: int = 0
    finished: bool = False

    @property
    def promotions(self) -> int:
        return sum(self.counts.values())

    @property
    def duplicates(self) -> int:
        return sum(self.duplicates_removed.values())

    @property
    def status(self) -> str:
        if self.promotions or self.duplicates:
            return DONE_MESSAGE
        return NO_VALUES_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "status": self.status,
            "finished": self.finished,
            "promotions": self.promotions,
            "null_pruned": self.null_pruned,
            "duplicates_removed": self.duplicates,
            "counts": {str(k): v for k, v in sorted(self.counts.items())},
            "duplicate_counts": {
                str(k): v for k, v in sorted(self.duplicates_removed.items())
            },
        }


class ReconciliationReport:
    """
    Per-table counters plus the audit transcript of one run.

    Args:
        scope_id: Override scope being reconciled
        dry_run: Whether the run only previews its actions
        entity_type: Entity whose tables are processed (informational)
        stream: Optional text stream receiving audit lines as they happen
        keep_lines: Hold emitted lines in ``lines`` (off for streamed CLI runs)
    """

    def __init__(
        self,
        scope_id: int,
        dry_run: bool,
        entity_type: str | None = None,
        stream: TextIO | None = None,
        keep_lines: bool = True,
    ):
        self.scope_id = scope_id
        self.dry_run = dry_run
        self.entity_type = entity_type
        self.stream = stream
        self.keep_lines = keep_lines
        self.started_at = datetime.now(UTC)
        self.tables: dict[str, TableReport] = {}
        self.lines: list[str] = []

    def table(self, name: str) -> TableReport:
        """Counters for a table, created on first use."""
        if name not in self.tables:
            self.tables[name] = TableReport(table=name)
        return self.tables[name]

    def emit(self, line: str) -> None:
        """Append a line to the audit transcript."""
        if self.keep_lines:
            self.lines.append(line)
        if self.stream is not None:
            print(line, file=self.stream)

    def record_promotion(
        self,
        table: str,
        attribute_id: int,
        override: ValueRow | None = None,
        default: ValueRow | None = None,
    ) -> None:
        """
        Count a promotion of an override into the default scope.

        When both rows are given, the promotion and deletion audit lines are
        emitted as well.
        """
        counts = self.table(table).counts
        counts[attribute_id] = counts.get(attribute_id, 0) + 1

        if override is not None and default is not None:
            self.emit(
                f'Update value {default.value_id} with store value "{override.value}" '
                f"for attribute {attribute_id} in table {table}"
            )
            self.emit(
                f'Delete value {override.value_id} "{override.value}" in favor of '
                f"{default.value_id} for attribute {attribute_id} in table {table}"
            )

    def record_duplicate_removal(
        self,
        table: str,
        attribute_id: int,
        override: ValueRow | None = None,
        default: ValueRow | None = None,
    ) -> None:
        """Count removal of an override that equals its default value."""
        removed = self.table(table).duplicates_removed
        removed[attribute_id] = removed.get(attribute_id, 0) + 1

        if override is not None and default is not None:
            self.emit(
                f"Delete value {override.value_id} in favor of {default.value_id} "
                f"for attribute {attribute_id} in table {table}"
            )

    def record_null_prune(self, table: str, count: int) -> None:
        """Count NULL overrides removed from a table in one batch."""
        self.table(table).null_pruned += count
        if count > 0:
            self.emit(f"Deleting {count} NULL value(s) from {table}")

    def finish_table(self, table: str) -> TableReport:
        """Mark a table as completely processed and emit its status line."""
        table_report = self.table(table)
        table_report.finished = True
        self.emit(table_report.status)
        return table_report

    @property
    def total_promotions(self) -> int:
        return sum(t.promotions for t in self.tables.values())

    @property
    def total_null_pruned(self) -> int:
        return sum(t.null_pruned for t in self.tables.values())

    @property
    def total_duplicates_removed(self) -> int:
        return sum(t.duplicates for t in self.tables.values())

    def summarize(self) -> str:
        """Human-readable per-table summary of the run."""
        mode = "dry run" if self.dry_run else "executed"
        lines = [f"Store scope {self.scope_id} cleanup ({mode})"]

        for table_report in self.tables.values():
            if table_report.status == DONE_MESSAGE:
                detail = (
                    f"{DONE_MESSAGE} ({table_report.promotions} value(s) promoted, "
                    f"{table_report.duplicates} duplicate(s) removed, "
                    f"{table_report.null_pruned} NULL value(s) deleted)"
                )
            else:
                detail = NO_VALUES_MESSAGE
                if table_report.null_pruned:
                    detail += f" ({table_report.null_pruned} NULL value(s) deleted)"
            if not table_report.finished:
                detail += " [aborted]"
            lines.append(f"{table_report.table}: {detail}")

        lines.append(
            f"Total: {self.total_promotions} promoted, "
            f"{self.total_duplicates_removed} duplicate(s) removed, "
            f"{self.total_null_pruned} NULL value(s) deleted"
        )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope_id": self.scope_id,
            "entity_type": self.entity_type,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat(),
            "total_promotions": self.total_promotions,
            "total_null_pruned": self.total_null_pruned,
            "total_duplicates_removed": self.total_duplicates_removed,
            "tables": [t.to_dict() for t in self.tables.values()],
        }
