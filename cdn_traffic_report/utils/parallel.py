"""
Bounded parallel execution with progress tracking and cancellation.

Provides the worker-pool pattern used by the aggregation engine: a fixed
number of threads, one task per item, per-task error capture, and a shared
cancellation event that stops tasks which have not started yet.
"""

import logging
import sys
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, TypeVar

from tqdm import tqdm

from cdn_traffic_report.utils.stats import ExecutionStats

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Input type
R = TypeVar("R")  # Result type


class TaskCancelled(Exception):
    """Raised in place of running a task once cancellation has been requested."""


def execute_parallel(
    items: Iterable[T],
    worker_func: Callable[[T], R],
    max_workers: int = 8,
    desc: str = "Processing",
    unit: str = "item",
    show_progress: bool = True,
    error_handler: Callable[[T, Exception], None] | None = None,
    result_handler: Callable[[T, R], None] | None = None,
    stats: ExecutionStats | None = None,
    stats_key: str | None = None,
    cancel_event: threading.Event | None = None,
    progress_postfix: Callable[[], dict[str, Any]] | None = None,
) -> list[tuple[T, R | None, Exception | None]]:
    """
    Execute a function in parallel across multiple items with progress tracking.

    At most max_workers items run at once. Once cancel_event is set, items that
    have not started are not run: their error is TaskCancelled. Items already
    running finish normally.

    Args:
        items: Iterable of items to process
        worker_func: Function to call for each item (takes item, returns result)
        max_workers: Maximum number of parallel workers
        desc: Progress bar description
        unit: Progress bar unit name
        show_progress: Whether to show progress bar (on stderr)
        error_handler: Optional callback for errors (item, exception) -> None
        result_handler: Optional callback for results (item, result) -> None
        stats: Optional ExecutionStats instance for tracking
        stats_key: Optional key to increment in stats on success
        cancel_event: Optional event; when set, unstarted items are skipped
        progress_postfix: Optional callable returning progress bar postfix values

    Returns:
        List of tuples: (item, result, exception) for each item, in completion order

    Example:
        results = execute_parallel(
            service_refs,
            enrich,
            max_workers=8,
            desc="Enriching services",
            unit="service",
        )

        for ref, report, error in results:
            if error:
                print(f"Error enriching {ref.name}: {error}")
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    items_list = list(items)  # Convert to list to get length
    total = len(items_list)

    if total == 0:
        return []

    def run_item(item: T) -> R:
        if cancel_event is not None and cancel_event.is_set():
            raise TaskCancelled(f"cancelled before start: {item}")
        return worker_func(item)

    results: list[tuple[T, R | None, Exception | None]] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_item = {executor.submit(run_item, item): item for item in items_list}

        progress_bar = None
        if show_progress:
            progress_bar = tqdm(
                total=total,
                desc=desc,
                unit=unit,
                file=sys.stderr,  # stdout carries the report
                mininterval=1.0,  # Update at most once per second
                dynamic_ncols=True,
            )

        try:
            for future in as_completed(future_to_item):
                item = future_to_item[future]
                result = None
                error = None

                try:
                    result = future.result()

                    if result_handler:
                        result_handler(item, result)

                    if stats and stats_key:
                        stats.increment(stats_key)

                except Exception as e:
                    error = e

                    if error_handler:
                        error_handler(item, e)
                    else:
                        logger.debug(f"Error processing {item}: {e}")

                    if stats:
                        stats.increment("skipped" if isinstance(e, TaskCancelled) else "failed")

                finally:
                    results.append((item, result, error))
                    if progress_bar:
                        if progress_postfix:
                            progress_bar.set_postfix(progress_postfix())
                        progress_bar.update(1)

        finally:
            if progress_bar:
                progress_bar.close()

    return results
