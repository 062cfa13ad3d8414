"""
DNS resolution of origin hostnames and service domains.
"""

from cdn_traffic_report.resolution.resolver import (
    HostnameResolver,
    resolve_hostname,
    resolve_name_servers,
)

__all__ = ["HostnameResolver", "resolve_hostname", "resolve_name_servers"]
