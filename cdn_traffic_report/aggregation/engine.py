"""
Aggregation engine: fan out one enrichment task per service.

Tasks run on a bounded worker pool. Every finished task appends exactly one
record to a lock-guarded collector; a task that raises is turned into a
degraded record instead of aborting its siblings. The engine returns only
after every launched task has finished, with the collection frozen.

Cancellation is cooperative: once the cancel event is set (by the caller or
by the optional deadline timer) services that have not started are skipped,
and services already in flight run to completion.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from threading import Lock

from cdn_traffic_report.config import get_max_workers
from cdn_traffic_report.domain.models import AggregatedServiceReport, ServiceRef
from cdn_traffic_report.enrichment.service import degraded_report, enrich_service
from cdn_traffic_report.resolution.resolver import HostnameResolver, get_resolver
from cdn_traffic_report.sources.fastly import FastlyClient
from cdn_traffic_report.utils.parallel import TaskCancelled, execute_parallel
from cdn_traffic_report.utils.stats import ExecutionStats

logger = logging.getLogger(__name__)

EnrichFunc = Callable[[FastlyClient, ServiceRef, HostnameResolver], AggregatedServiceReport]


class ReportCollector:
    """
    Append-only, thread-safe collection of service reports.

    Each append is one critical section. freeze() ends the collection phase
    and returns an immutable snapshot; appends after that raise RuntimeError.
    """

    def __init__(self):
        self._lock = Lock()
        self._reports: list[AggregatedServiceReport] = []
        self._frozen = False

    def append(self, report: AggregatedServiceReport) -> None:
        with self._lock:
            if self._frozen:
                raise RuntimeError("collector is frozen")
            self._reports.append(report)

    def freeze(self) -> tuple[AggregatedServiceReport, ...]:
        with self._lock:
            self._frozen = True
            return tuple(self._reports)

    @property
    def frozen(self) -> bool:
        with self._lock:
            return self._frozen

    def __len__(self) -> int:
        with self._lock:
            return len(self._reports)


@dataclass(frozen=True)
class AggregationResult:
    """Outcome of one fan-out."""

    reports: tuple[AggregatedServiceReport, ...]
    skipped: tuple[ServiceRef, ...]  # Not started because of cancellation
    stats: ExecutionStats


def _unique_refs(refs: Iterable[ServiceRef]) -> list[ServiceRef]:
    """Drop repeated service ids, keeping the first occurrence."""
    seen: dict[str, ServiceRef] = {}
    for ref in refs:
        if ref.id in seen:
            logger.warning(f"Duplicate service id {ref.id} ({ref.name}); enriching once")
            continue
        seen[ref.id] = ref
    return list(seen.values())


def aggregate_services(
    client: FastlyClient,
    refs: Iterable[ServiceRef],
    max_workers: int | None = None,
    resolver: HostnameResolver | None = None,
    deadline: float | None = None,
    cancel_event: threading.Event | None = None,
    show_progress: bool = False,
    enrich_func: EnrichFunc = enrich_service,
) -> AggregationResult:
    """
    Enrich every service concurrently and collect one record per service.

    Args:
        client: Fastly API client shared by all tasks
        refs: Services to enrich
        max_workers: Maximum services in flight (default: max_workers setting)
        resolver: DNS resolver shared by all tasks (default: module resolver)
        deadline: Optional seconds after which unstarted services are skipped
        cancel_event: Optional event the caller can set to stop launching tasks
        show_progress: Show a tqdm progress bar on stderr
        enrich_func: Enrichment task (client, ref, resolver) -> report

    Returns:
        AggregationResult with the frozen reports, skipped services and counters
        (complete, degraded, failed, skipped)
    """
    services = _unique_refs(refs)
    max_workers = max_workers or get_max_workers()
    resolver = resolver or get_resolver()
    cancel_event = cancel_event or threading.Event()

    collector = ReportCollector()
    stats = ExecutionStats(complete=0, degraded=0, failed=0, skipped=0)
    skipped: list[ServiceRef] = []

    def enrich(ref: ServiceRef) -> AggregatedServiceReport:
        report = enrich_func(client, ref, resolver)
        collector.append(report)
        stats.increment("degraded" if report.degraded else "complete")
        return report

    def on_error(ref: ServiceRef, error: Exception) -> None:
        if isinstance(error, TaskCancelled):
            skipped.append(ref)
            stats.increment("skipped")
            return
        logger.error(f"Enrichment of {ref.name} ({ref.id}) failed: {error}")
        collector.append(degraded_report(ref, error))
        stats.increment("failed")

    timer = None
    if deadline is not None:
        timer = threading.Timer(deadline, cancel_event.set)
        timer.daemon = True
        timer.start()

    logger.debug(f"Enriching {len(services)} services with {max_workers} workers")
    try:
        execute_parallel(
            services,
            enrich,
            max_workers=max_workers,
            desc="Enriching services",
            unit="service",
            show_progress=show_progress,
            error_handler=on_error,
            cancel_event=cancel_event,
            progress_postfix=lambda: {
                "degraded": stats.get("degraded"),
                "failed": stats.get("failed"),
            },
        )
    finally:
        if timer is not None:
            timer.cancel()

    if skipped:
        logger.warning(f"Skipped {len(skipped)} services after cancellation")

    return AggregationResult(reports=collector.freeze(), skipped=tuple(skipped), stats=stats)
