"""
Data models for service enrichment results.

These dataclasses represent the services listed from the provider API,
the per-lookup results gathered while enriching them, and the final
aggregated record that the report emitter serializes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from cdn_traffic_report.constants import (
    HOST_RESOLUTION_FAILED,
    NO_DOMAINS_FOUND,
    NS_RESOLUTION_FAILED,
    STATUS_CODES,
)


class LookupFailure(str, Enum):
    """Named failure kinds; the value is the string shown in the report."""

    HOST_RESOLUTION = HOST_RESOLUTION_FAILED
    NS_RESOLUTION = NS_RESOLUTION_FAILED
    NO_DOMAINS = NO_DOMAINS_FOUND


@dataclass(frozen=True)
class LookupResult:
    """
    Tagged result of a lookup: either values or a named failure.

    Failures are carried as a LookupFailure rather than a sentinel string;
    render() produces the sentinel only when the result is serialized.
    """

    values: tuple[str, ...] = ()
    failure: LookupFailure | None = None

    @classmethod
    def success(cls, values) -> "LookupResult":
        return cls(values=tuple(values))

    @classmethod
    def failed(cls, failure: LookupFailure) -> "LookupResult":
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def render(self) -> list[str]:
        """Values as a list, or the single sentinel string on failure."""
        if self.failure is not None:
            return [self.failure.value]
        return list(self.values)


@dataclass(frozen=True)
class ServiceRef:
    """A service on the account, as listed by the provider API."""

    name: str
    id: str
    active_version: int | None  # None when version metadata is malformed


@dataclass(frozen=True)
class BackendOrigin:
    """Backend (origin) configured on a service version."""

    hostname: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TrafficStats:
    """Traffic statistics for one service over the stats window."""

    requests: int = 0
    hit_ratio: float = 0.0
    status_counters: dict[int, int] = field(
        default_factory=lambda: dict.fromkeys(STATUS_CODES, 0)
    )

    @classmethod
    def zero(cls) -> "TrafficStats":
        return cls()

    def status(self, code: int) -> int:
        return self.status_counters.get(code, 0)


@dataclass
class AggregatedServiceReport:
    """Final enriched record for one service."""

    service_name: str
    service_id: str
    origins: list[str] = field(default_factory=list)
    addresses: list[str] = field(default_factory=list)  # Rendered, in origin order
    created_at: datetime | None = None
    updated_at: datetime | None = None
    domains: LookupResult = field(default_factory=LookupResult)
    name_servers: set[str] = field(default_factory=set)
    traffic: TrafficStats = field(default_factory=TrafficStats.zero)
    errors: list[str] = field(default_factory=list)  # Per-record error annotations

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


@dataclass(frozen=True)
class AccountUser:
    """User on a Fastly customer account."""

    login: str
    name: str
    role: str
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ServiceSummary:
    """Service details used by the service summary report."""

    id: str
    name: str
    version_count: int
    active: bool
    updated_at: datetime | None = None
