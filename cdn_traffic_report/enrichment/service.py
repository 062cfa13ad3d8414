"""
Per-service enrichment task.

Gathers everything the report needs for one service: backend origins and
their addresses, domains and their name servers, and traffic stats. The
three provider lookups are independent, so they run concurrently on a small
per-task pool.

A failed lookup degrades the record (empty origins, "No Domains Found",
zeroed stats) and is noted in report.errors; it never propagates to sibling
tasks.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from cdn_traffic_report.constants import STATS_BY, STATS_FROM, TASK_SUBWORKERS
from cdn_traffic_report.domain.models import (
    AggregatedServiceReport,
    BackendOrigin,
    LookupFailure,
    LookupResult,
    ServiceRef,
    TrafficStats,
)
from cdn_traffic_report.resolution.resolver import HostnameResolver, get_resolver
from cdn_traffic_report.sources.fastly import (
    FastlyAPIError,
    FastlyClient,
    parse_backends,
    parse_domains,
    parse_traffic_stats,
)

logger = logging.getLogger(__name__)

# Raised by the parsers when a 200 response has an unexpected shape
PAYLOAD_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def fetch_backends(client: FastlyClient, ref: ServiceRef) -> tuple[list[BackendOrigin], str | None]:
    """List backends of the active version; (backends, error)."""
    if ref.active_version is None:
        return [], "no active version in service metadata"
    try:
        return parse_backends(client.list_backends(ref.id, ref.active_version)), None
    except FastlyAPIError as e:
        return [], f"backends: {e}"
    except PAYLOAD_ERRORS as e:
        return [], f"backends: malformed payload: {type(e).__name__}: {e}"


def fetch_domains(
    client: FastlyClient, service_id: str, resolver: HostnameResolver
) -> tuple[LookupResult, set[str], str | None]:
    """List domains and resolve their name servers; (domains, name_servers, error)."""
    try:
        domains = parse_domains(client.list_service_domains(service_id))
    except FastlyAPIError as e:
        return LookupResult.failed(LookupFailure.NO_DOMAINS), set(), f"domains: {e}"
    except PAYLOAD_ERRORS as e:
        error = f"domains: malformed payload: {type(e).__name__}: {e}"
        return LookupResult.failed(LookupFailure.NO_DOMAINS), set(), error
    return LookupResult.success(domains), resolver.resolve_name_servers(domains), None


def fetch_traffic(
    client: FastlyClient,
    service_id: str,
    from_window: str = STATS_FROM,
    by: str = STATS_BY,
) -> tuple[TrafficStats, str | None]:
    """Query stats over the fixed window; zero stats on failure."""
    try:
        return parse_traffic_stats(client.get_stats(service_id, from_window, by)), None
    except FastlyAPIError as e:
        return TrafficStats.zero(), f"stats: {e}"
    except PAYLOAD_ERRORS as e:
        return TrafficStats.zero(), f"stats: malformed payload: {type(e).__name__}: {e}"


def enrich_service(
    client: FastlyClient,
    ref: ServiceRef,
    resolver: HostnameResolver | None = None,
) -> AggregatedServiceReport:
    """
    Build the aggregated report for one service.

    Args:
        client: Fastly API client
        ref: Service to enrich
        resolver: DNS resolver (default: shared module resolver)

    Returns:
        AggregatedServiceReport; always returned, even if every lookup failed
    """
    resolver = resolver or get_resolver()
    report = AggregatedServiceReport(service_name=ref.name, service_id=ref.id)

    with ThreadPoolExecutor(max_workers=TASK_SUBWORKERS) as executor:
        backends_future = executor.submit(fetch_backends, client, ref)
        domains_future = executor.submit(fetch_domains, client, ref.id, resolver)
        traffic_future = executor.submit(fetch_traffic, client, ref.id)

        backends, backends_error = backends_future.result()
        report.domains, report.name_servers, domains_error = domains_future.result()
        report.traffic, traffic_error = traffic_future.result()

    for backend in backends:
        if not backend.hostname:
            continue
        report.origins.append(backend.hostname)
        report.addresses.extend(resolver.resolve_hostname(backend.hostname))
        # Earliest creation, latest update across backends
        if backend.created_at:
            report.created_at = min(filter(None, (report.created_at, backend.created_at)))
        if backend.updated_at:
            report.updated_at = max(filter(None, (report.updated_at, backend.updated_at)))

    report.errors = [e for e in (backends_error, domains_error, traffic_error) if e]
    for error in report.errors:
        logger.warning(f"{ref.name} ({ref.id}): {error}")

    return report


def degraded_report(ref: ServiceRef, error: Exception) -> AggregatedServiceReport:
    """Record for a service whose enrichment task raised unexpectedly."""
    return AggregatedServiceReport(
        service_name=ref.name,
        service_id=ref.id,
        domains=LookupResult.failed(LookupFailure.NO_DOMAINS),
        errors=[f"enrichment failed: {type(error).__name__}: {error}"],
    )
