"""
Cleanup report accumulation and formatting.
"""

from .formatters import export_report_csv, export_report_json, format_report_console
from .report import DONE_MESSAGE, NO_VALUES_MESSAGE, ReconciliationReport, TableReport

__all__ = [
    'ReconciliationReport',
    'TableReport',
    'DONE_MESSAGE',
    'NO_VALUES_MESSAGE',
    'export_report_json',
    'export_report_csv',
    'format_report_console',
]
