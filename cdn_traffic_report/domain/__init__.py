"""
Domain models for service enrichment.
"""

from cdn_traffic_report.domain.models import (
    AccountUser,
    AggregatedServiceReport,
    BackendOrigin,
    LookupFailure,
    LookupResult,
    ServiceRef,
    ServiceSummary,
    TrafficStats,
)

__all__ = [
    "AccountUser",
    "AggregatedServiceReport",
    "BackendOrigin",
    "LookupFailure",
    "LookupResult",
    "ServiceRef",
    "ServiceSummary",
    "TrafficStats",
]
