"""
Provider API sources.
"""

from cdn_traffic_report.sources.fastly import FastlyAPIError, FastlyClient

__all__ = ["FastlyAPIError", "FastlyClient"]
