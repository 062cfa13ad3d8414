"""
Report emitters.
"""

from cdn_traffic_report.report.csv_report import (
    REPORT_COLUMNS,
    format_row,
    rank_reports,
    write_report,
)
from cdn_traffic_report.report.summaries import write_service_summary, write_user_summary

__all__ = [
    "REPORT_COLUMNS",
    "format_row",
    "rank_reports",
    "write_report",
    "write_service_summary",
    "write_user_summary",
]
