"""
Unit tests for the cleanup report and its exports.
"""

import csv
import io
import json

from scope_reconciliation.descriptor import ValueRow
from scope_reconciliation.report import (
    DONE_MESSAGE,
    NO_VALUES_MESSAGE,
    ReconciliationReport,
    export_report_csv,
    export_report_json,
    format_report_console,
)

TABLE = "catalog_product_entity_varchar"


def promote(report, attribute_id=9, value_id=2, default_id=1, value="Blue", table=TABLE):
    override = ValueRow(value_id, 3, attribute_id, report.scope_id, value)
    default = ValueRow(default_id, 3, attribute_id, 0, "Red")
    report.record_promotion(table, attribute_id, override=override, default=default)


class TestReconciliationReport:
    """Test counters and transcript."""

    def test_counts_per_attribute(self):
        report = ReconciliationReport(scope_id=7, dry_run=False)

        report.record_promotion(TABLE, 9)
        report.record_promotion(TABLE, 9)
        report.record_promotion(TABLE, 12)

        assert report.tables[TABLE].counts == {9: 2, 12: 1}
        assert report.total_promotions == 3
        # No rows given, so no audit lines
        assert report.lines == []

    def test_promotion_lines(self):
        report = ReconciliationReport(scope_id=7, dry_run=True)

        promote(report)

        assert report.lines == [
            f'Update value 1 with store value "Blue" for attribute 9 in table {TABLE}',
            f'Delete value 2 "Blue" in favor of 1 for attribute 9 in table {TABLE}',
        ]

    def test_lines_are_streamed(self):
        stream = io.StringIO()
        report = ReconciliationReport(scope_id=7, dry_run=False, stream=stream)

        promote(report)
        report.record_null_prune(TABLE, 3)
        report.finish_table(TABLE)

        assert stream.getvalue().splitlines() == report.lines
        assert report.lines[-2:] == [f"Deleting 3 NULL value(s) from {TABLE}", DONE_MESSAGE]

    def test_streamed_lines_are_not_kept(self):
        stream = io.StringIO()
        report = ReconciliationReport(
            scope_id=7, dry_run=False, stream=stream, keep_lines=False
        )

        for value_id in range(2, 502):
            promote(report, value_id=value_id)
        report.finish_table(TABLE)

        assert report.lines == []
        assert len(stream.getvalue().splitlines()) == 1001
        assert report.total_promotions == 500
        assert report.tables[TABLE].status == DONE_MESSAGE

    def test_status_without_promotions(self):
        report = ReconciliationReport(scope_id=7, dry_run=False)

        report.record_null_prune(TABLE, 4)
        table_report = report.finish_table(TABLE)

        assert table_report.status == NO_VALUES_MESSAGE
        assert table_report.finished
        assert report.lines[-1] == NO_VALUES_MESSAGE

    def test_zero_null_prune_is_silent(self):
        report = ReconciliationReport(scope_id=7, dry_run=False)

        report.record_null_prune(TABLE, 0)

        assert report.lines == []
        assert TABLE in report.tables

    def test_duplicate_removal_counts_as_done(self):
        report = ReconciliationReport(scope_id=7, dry_run=False)

        report.record_duplicate_removal(TABLE, 5)

        assert report.tables[TABLE].status == DONE_MESSAGE
        assert report.total_duplicates_removed == 1

    def test_summarize(self):
        report = ReconciliationReport(scope_id=7, dry_run=False)
        promote(report)
        report.record_null_prune(TABLE, 2)
        report.finish_table(TABLE)
        report.finish_table("catalog_product_entity_int")

        summary = report.summarize().splitlines()

        assert summary[0] == "Store scope 7 cleanup (executed)"
        assert summary[1] == (
            f"{TABLE}: Done (1 value(s) promoted, 0 duplicate(s) removed, "
            "2 NULL value(s) deleted)"
        )
        assert summary[2] == f"catalog_product_entity_int: {NO_VALUES_MESSAGE}"
        assert summary[3] == "Total: 1 promoted, 0 duplicate(s) removed, 2 NULL value(s) deleted"

    def test_summarize_marks_aborted_tables(self):
        report = ReconciliationReport(scope_id=7, dry_run=True)
        promote(report)

        summary = report.summarize()

        assert "(dry run)" in summary
        assert summary.splitlines()[1].endswith("[aborted]")

    def test_to_dict(self):
        report = ReconciliationReport(scope_id=7, dry_run=True, entity_type="product")
        promote(report)
        report.finish_table(TABLE)

        result = report.to_dict()

        assert result["scope_id"] == 7
        assert result["entity_type"] == "product"
        assert result["dry_run"] is True
        assert result["total_promotions"] == 1
        assert result["tables"][0]["counts"] == {"9": 1}
        assert result["tables"][0]["status"] == DONE_MESSAGE


class TestReportExports:
    """Test JSON, CSV and console formatting."""

    def make_report(self):
        report = ReconciliationReport(scope_id=2, dry_run=False, entity_type="product")
        promote(report, attribute_id=9)
        promote(report, attribute_id=12, value_id=4, default_id=3)
        report.record_null_prune(TABLE, 1)
        report.finish_table(TABLE)
        report.record_null_prune("catalog_product_entity_int", 5)
        report.finish_table("catalog_product_entity_int")
        return report

    def test_export_json(self, tmp_path):
        path = tmp_path / "report.json"

        export_report_json(self.make_report(), str(path))

        data = json.loads(path.read_text())
        assert data["total_promotions"] == 2
        assert data["total_null_pruned"] == 6
        assert [t["table"] for t in data["tables"]] == [TABLE, "catalog_product_entity_int"]

    def test_export_csv(self, tmp_path):
        path = tmp_path / "report.csv"

        export_report_csv(self.make_report(), str(path))

        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Table"
        assert [r[2] for r in rows[1:3]] == ["9", "12"]
        assert rows[3][0] == "catalog_product_entity_int"
        assert rows[3][2] == ""
        assert rows[3][5] == "5"

    def test_format_console(self):
        output = format_report_console(self.make_report())

        assert "STORE SCOPE CLEANUP REPORT" in output
        assert "Store ID: 2" in output
        assert "Mode: EXECUTE" in output
        assert "Attribute 12: 1" in output
