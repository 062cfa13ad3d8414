"""
CDN Traffic Report - per-service network and traffic reporting for Fastly accounts.

This package provides utilities for:
- Listing services, backends, domains and stats from the Fastly API
- Resolving origin addresses and authoritative name servers
- Enriching every service concurrently with a bounded worker pool
- Ranking services by traffic and emitting a CSV report
"""

import logging

# Set up NullHandler to prevent "No handler found" warnings
# when used as a library. Applications should configure their own handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Re-export commonly used items
from cdn_traffic_report.config import (
    get_fastly_api_token,
    get_max_workers,
)
from cdn_traffic_report.constants import (
    DEFAULT_WORKERS,
    STATS_BY,
    STATS_FROM,
    STATUS_CODES,
)

__all__ = [
    "__version__",
    # Config
    "get_fastly_api_token",
    "get_max_workers",
    # Constants
    "DEFAULT_WORKERS",
    "STATS_BY",
    "STATS_FROM",
    "STATUS_CODES",
]
