"""
Per-service enrichment.
"""

from cdn_traffic_report.enrichment.service import degraded_report, enrich_service

__all__ = ["degraded_report", "enrich_service"]
