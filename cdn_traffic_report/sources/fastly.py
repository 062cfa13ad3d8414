"""
Fastly management API source.

Thin requests-based client for the handful of endpoints the report needs,
plus parsers that turn raw JSON payloads into domain models. No pagination
or retries: a failed call raises FastlyAPIError and the caller decides
whether the failure is fatal (listing services) or degrades one record.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import requests

from cdn_traffic_report.config import (
    get_api_rate_limit,
    get_fastly_api_token,
    get_fastly_api_url,
    get_request_timeout,
)
from cdn_traffic_report.constants import FASTLY_AUTH_HEADER, STATS_BY, STATS_FROM, STATUS_CODES
from cdn_traffic_report.domain.models import (
    AccountUser,
    BackendOrigin,
    ServiceRef,
    ServiceSummary,
    TrafficStats,
)
from cdn_traffic_report.utils.rate_limiting import RateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)


class FastlyAPIError(Exception):
    """A Fastly API call failed (transport error, non-2xx status or bad payload)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FastlyClient:
    """
    Minimal Fastly API client.

    Safe to share between threads: each call is a single request on a
    requests.Session, and all calls pass through one shared RateLimiter.

    Args:
        api_token: Fastly API token (sent as the Fastly-Key header)
        base_url: API base URL
        timeout: Timeout in seconds for each request
        session: Optional requests.Session (created if not given)
        rate_limiter: Optional RateLimiter (default: shared "fastly" limiter)
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.fastly.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        if not api_token:
            raise ValueError("Fastly API token must not be empty")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                FASTLY_AUTH_HEADER: api_token,
                "Accept": "application/json",
                "User-Agent": "cdn-traffic-report",
            }
        )
        self._rate_limiter = rate_limiter

    @classmethod
    def from_settings(cls) -> "FastlyClient":
        """Build a client from environment settings (raises ValueError if no token)."""
        return cls(
            api_token=get_fastly_api_token(),
            base_url=get_fastly_api_url(),
            timeout=get_request_timeout(),
            rate_limiter=get_rate_limiter("fastly", get_api_rate_limit()),
        )

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if self._rate_limiter is not None:
            self._rate_limiter()

        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise FastlyAPIError(f"GET {path} failed: {e}") from e

        if response.status_code != 200:
            raise FastlyAPIError(
                f"GET {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FastlyAPIError(f"GET {path} returned invalid JSON") from e

    def list_services(self) -> list[dict]:
        """List all services on the account, with their versions."""
        return self._get("/service")

    def list_backends(self, service_id: str, version: int) -> list[dict]:
        """List backends configured on one version of a service."""
        return self._get(f"/service/{service_id}/version/{version}/backend")

    def list_service_domains(self, service_id: str) -> list[dict]:
        """List domains of a service."""
        return self._get(f"/service/{service_id}/domain")

    def get_stats(self, service_id: str, from_window: str = STATS_FROM, by: str = STATS_BY) -> dict:
        """Get historical stats for a service over a window."""
        payload = self._get(f"/stats/service/{service_id}", params={"from": from_window, "by": by})
        if isinstance(payload, dict) and payload.get("status") not in (None, "success"):
            raise FastlyAPIError(f"stats query for {service_id} failed: {payload.get('msg')}")
        return payload

    def get_service_details(self, service_id: str) -> dict:
        return self._get(f"/service/{service_id}/details")

    def list_customer_users(self, customer_id: str) -> list[dict]:
        return self._get(f"/customer/{customer_id}/users")


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse a Fastly ISO-8601 timestamp; None if missing or malformed.

    Timestamps without an offset are taken as UTC, so every parsed value is
    comparable with every other.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _active_version(service: dict) -> int | None:
    """
    Pick the active version number of a listed service.

    Preference: highest version flagged active, then the service's "version"
    field, then the last listed version. None if none of these is usable.
    """
    versions = service.get("versions") or []
    active = [
        v.get("number")
        for v in versions
        if isinstance(v, dict) and v.get("active") and isinstance(v.get("number"), int)
    ]
    if active:
        return max(active)

    current = service.get("version")
    if isinstance(current, int) and not isinstance(current, bool) and current > 0:
        return current

    for v in reversed(versions):
        if isinstance(v, dict) and isinstance(v.get("number"), int):
            return v["number"]
    return None


def service_refs_from_listing(services: list[dict]) -> list[ServiceRef]:
    """
    Convert a service listing into ServiceRefs.

    Services without an id are dropped; services with unusable version
    metadata are kept with active_version=None so they still get a record.
    """
    refs = []
    for service in services:
        service_id = service.get("id")
        if not service_id:
            logger.warning(f"Skipping service without id: {service.get('name')!r}")
            continue
        refs.append(
            ServiceRef(
                name=service.get("name") or service_id,
                id=service_id,
                active_version=_active_version(service),
            )
        )
    return refs


def parse_backends(backends: list[dict]) -> list[BackendOrigin]:
    return [
        BackendOrigin(
            hostname=(backend.get("hostname") or "").strip(),
            created_at=parse_timestamp(backend.get("created_at")),
            updated_at=parse_timestamp(backend.get("updated_at")),
        )
        for backend in backends
    ]


def parse_domains(domains: list[dict]) -> list[str]:
    return [d["name"] for d in domains if d.get("name")]


def parse_traffic_stats(payload: dict) -> TrafficStats:
    """
    Sum daily stats over the window.

    Request and status counters are summed. The hit ratio is the daily ratio
    weighted by each day's requests (unweighted mean if no day had requests).
    """
    rows = payload.get("data") or []
    if isinstance(rows, dict):
        rows = list(rows.values())

    requests_total = 0
    counters = dict.fromkeys(STATUS_CODES, 0)
    weighted_ratio = 0.0
    ratios = []

    for row in rows:
        day_requests = int(row.get("requests") or 0)
        requests_total += day_requests
        for code in STATUS_CODES:
            counters[code] += int(row.get(f"status_{code}") or 0)
        ratio = row.get("hit_ratio")
        if ratio is not None:
            ratios.append(float(ratio))
            weighted_ratio += float(ratio) * day_requests

    if requests_total > 0:
        hit_ratio = weighted_ratio / requests_total
    elif ratios:
        hit_ratio = sum(ratios) / len(ratios)
    else:
        hit_ratio = 0.0

    return TrafficStats(requests=requests_total, hit_ratio=hit_ratio, status_counters=counters)


def parse_users(users: list[dict]) -> list[AccountUser]:
    return [
        AccountUser(
            login=user.get("login", ""),
            name=user.get("name", ""),
            role=user.get("role", ""),
            updated_at=parse_timestamp(user.get("updated_at")),
        )
        for user in users
    ]


def parse_service_summary(details: dict) -> ServiceSummary:
    """
    Summarize a service details payload.

    The active flag comes from active_version. The update time is that of the
    latest version, falling back to the service's own updated_at.
    """
    active_version = details.get("active_version") or {}
    latest_version = details.get("version") or {}
    return ServiceSummary(
        id=details.get("id", ""),
        name=details.get("name", ""),
        version_count=len(details.get("versions") or []),
        active=bool(active_version.get("active")),
        updated_at=parse_timestamp(latest_version.get("updated_at") or details.get("updated_at")),
    )
