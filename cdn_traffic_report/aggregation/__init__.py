"""
Concurrent fan-out of service enrichment.
"""

from cdn_traffic_report.aggregation.engine import (
    AggregationResult,
    ReportCollector,
    aggregate_services,
)

__all__ = ["AggregationResult", "ReportCollector", "aggregate_services"]
