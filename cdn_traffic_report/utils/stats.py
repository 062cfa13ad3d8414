"""
Thread-safe outcome counters for the enrichment fan-out.
"""

from threading import Lock


class ExecutionStats:
    """
    Named counters shared by worker threads.

    Example:
        stats = ExecutionStats(complete=0, degraded=0)
        stats.increment("complete")
        stats.get("complete")  # 1
    """

    def __init__(self, **initial_values: int):
        self._lock = Lock()
        self._counters: dict[str, int] = dict(initial_values)

    def increment(self, key: str, amount: int = 1) -> None:
        """Thread-safe increment of a counter (created at 0 if missing)."""
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, key: str, default: int = 0) -> int:
        with self._lock:
            return self._counters.get(key, default)

    def total(self) -> int:
        """Sum of all counters."""
        with self._lock:
            return sum(self._counters.values())

    def to_dict(self) -> dict[str, int]:
        """Get a copy of all counters."""
        with self._lock:
            return self._counters.copy()

    def __getitem__(self, key: str) -> int:
        return self.get(key)

    def __repr__(self) -> str:
        with self._lock:
            items = ", ".join(f"{k}={v}" for k, v in sorted(self._counters.items()))
        return f"ExecutionStats({items})"
