"""
Ranking and CSV serialization of aggregated service reports.

Records are ranked by request count, highest first, with service name and
then service id as tie-breakers so output is deterministic. Multi-valued
fields are written as a bracketed, space-separated list ("[a b]") so they
never contain the column separator.
"""

import csv
from collections.abc import Iterable
from datetime import datetime
from typing import TextIO

from cdn_traffic_report.constants import STATUS_CODES
from cdn_traffic_report.domain.models import AggregatedServiceReport

REPORT_COLUMNS = (
    "service name",
    "origin",
    "domains",
    "hit-ratio",
    *(f"{code}status" for code in STATUS_CODES),
)

WIDE_COLUMNS = (
    *REPORT_COLUMNS,
    "service id",
    "requests",
    "created date",
    "last updated",
    "ip",
    "name-servers",
    "errors",
)


def rank_reports(reports: Iterable[AggregatedServiceReport]) -> list[AggregatedServiceReport]:
    """Sort by requests descending; ties by service name, then service id."""
    return sorted(
        reports,
        key=lambda r: (-r.traffic.requests, r.service_name, r.service_id),
    )


def format_list(values: Iterable[str]) -> str:
    """Render a multi-valued field, e.g. ["a", "b"] -> "[a b]"."""
    return "[" + " ".join(values) + "]"


def format_ratio(value: float) -> str:
    return f"{value:.6f}"


def _format_time(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def format_row(report: AggregatedServiceReport) -> list[str]:
    """One report as a row in REPORT_COLUMNS order."""
    traffic = report.traffic
    return [
        report.service_name,
        format_list(report.origins),
        format_list(report.domains.render()),
        format_ratio(traffic.hit_ratio),
        *(str(traffic.status(code)) for code in STATUS_CODES),
    ]


def format_wide_row(report: AggregatedServiceReport) -> list[str]:
    """One report as a row in WIDE_COLUMNS order."""
    return [
        *format_row(report),
        report.service_id,
        str(report.traffic.requests),
        _format_time(report.created_at),
        _format_time(report.updated_at),
        format_list(report.addresses),
        format_list(sorted(report.name_servers)),
        "; ".join(report.errors),
    ]


def has_s3_domain(report: AggregatedServiceReport) -> bool:
    """True if any domain of the service has an "s3" label."""
    return any("s3" in domain.split(".") for domain in report.domains.values)


def write_report(
    reports: Iterable[AggregatedServiceReport],
    stream: TextIO,
    wide: bool = False,
) -> int:
    """
    Rank reports and write them as CSV.

    Args:
        reports: Aggregated service reports (any order)
        stream: Text stream to write to
        wide: Include the extra diagnostic columns

    Returns:
        Number of data rows written
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(WIDE_COLUMNS if wide else REPORT_COLUMNS)
    row_format = format_wide_row if wide else format_row

    count = 0
    for report in rank_reports(reports):
        writer.writerow(row_format(report))
        count += 1
    return count
