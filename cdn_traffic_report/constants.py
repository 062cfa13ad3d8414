"""
Constants for cdn_traffic_report package.

Centralizes magic numbers and configuration defaults.
"""

# Fastly API
FASTLY_API_URL = "https://api.fastly.com"
FASTLY_AUTH_HEADER = "Fastly-Key"

# Traffic stats window (fixed, not user-configurable)
STATS_FROM = "two months ago"
STATS_BY = "day"

# Status code counters reported per service, in column order
STATUS_CODES = (400, 401, 403, 404, 500, 501, 502, 503, 504, 505)

# Sentinel strings rendered in place of failed lookups
HOST_RESOLUTION_FAILED = "Host resolution failed"
NS_RESOLUTION_FAILED = "NS resolution failed"
NO_DOMAINS_FOUND = "No Domains Found"

# Timeouts (seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0  # Per Fastly API call
DEFAULT_DNS_TIMEOUT = 5.0  # Per DNS query (lifetime across retries)

# API rate limits (requests per second)
FASTLY_RATE_LIMIT = 10.0  # Shared across all worker threads

# Parallel processing defaults
DEFAULT_WORKERS = 8  # Concurrent enrichment tasks (services in flight)
TASK_SUBWORKERS = 3  # Concurrent lookups inside one enrichment task
