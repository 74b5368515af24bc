"""
Report formatting and export utilities.

Exports a finished cleanup report as JSON, CSV (one row per table and
attribute) or a console block.
"""

import csv
import json

from .report import ReconciliationReport


def export_report_json(report: ReconciliationReport, output_path: str) -> None:
    """
    Export report to JSON file

    Args:
        report: Finished cleanup report
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report.to_dict(), f, indent=2)


def export_report_csv(report: ReconciliationReport, output_path: str) -> None:
    """
    Export report to CSV file, one row per (table, attribute) pair

    Tables without any promotion or duplicate removal get a single row with
    an empty attribute column so their NULL-prune count is not lost.
    """
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)

        writer.writerow([
            "Table",
            "Status",
            "Attribute ID",
            "Promotions",
            "Duplicates Removed",
            "NULL Values Deleted",
            "Dry Run",
        ])

        for table_report in report.tables.values():
            attribute_ids = sorted(
                set(table_report.counts) | set(table_report.duplicates_removed)
            )
            if not attribute_ids:
                writer.writerow([
                    table_report.table,
                    table_report.status,
                    "",
                    0,
                    0,
                    table_report.null_pruned,
                    report.dry_run,
                ])
                continue

            for attribute_id in attribute_ids:
                writer.writerow([
                    table_report.table,
                    table_report.status,
                    attribute_id,
                    table_report.counts.get(attribute_id, 0),
                    table_report.duplicates_removed.get(attribute_id, 0),
                    table_report.null_pruned,
                    report.dry_run,
                ])


def format_report_console(report: ReconciliationReport) -> str:
    """
    Format report for console output

    Returns:
        Formatted string for terminal display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("STORE SCOPE CLEANUP REPORT")
    lines.append("=" * 80)
    lines.append(f"Store ID: {report.scope_id}")
    lines.append(f"Entity: {report.entity_type or 'n/a'}")
    lines.append(f"Mode: {'DRY RUN' if report.dry_run else 'EXECUTE'}")
    lines.append(f"Started: {report.started_at.isoformat()}")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.append(report.summarize())
    lines.append("")

    promoted_tables = [t for t in report.tables.values() if t.counts]
    if promoted_tables:
        lines.append("PROMOTIONS BY ATTRIBUTE")
        lines.append("-" * 80)
        for table_report in promoted_tables:
            lines.append(f"Table: {table_report.table}")
            for attribute_id, count in sorted(table_report.counts.items()):
                lines.append(f"  Attribute {attribute_id}: {count}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
