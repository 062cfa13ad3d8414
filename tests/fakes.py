"""
Fakes for the DNS resolver and the Fastly API client.
"""

import threading
import time
from types import SimpleNamespace

import dns.resolver

from cdn_traffic_report.sources.fastly import FastlyAPIError


class FakeDNSResolver:
    """
    Stand-in for dns.resolver.Resolver.

    records maps (name, rtype) to a list of values or an exception instance.
    Missing entries raise NXDOMAIN.
    """

    def __init__(self, records: dict | None = None, latency: float = 0.0):
        self.records = records or {}
        self.latency = latency
        self.queries: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def resolve(self, qname, rdtype, raise_on_no_answer=True, lifetime=None):
        with self._lock:
            self.queries.append((qname, rdtype))
        if self.latency:
            time.sleep(self.latency)

        value = self.records.get((qname, rdtype))
        if value is None:
            raise dns.resolver.NXDOMAIN()
        if isinstance(value, Exception):
            raise value
        if not value and raise_on_no_answer:
            raise dns.resolver.NoAnswer()
        if rdtype in ("A", "AAAA"):
            return [SimpleNamespace(address=v) for v in value]
        return [SimpleNamespace(target=v) for v in value]


class FakeFastlyClient:
    """
    Stand-in for FastlyClient backed by dicts keyed by service id.

    Any value may be a FastlyAPIError instance, which is raised instead.
    """

    def __init__(
        self,
        services=None,
        backends=None,
        domains=None,
        stats=None,
        details=None,
        users=None,
        latency: float = 0.0,
    ):
        self.services = services if services is not None else []
        self.backends = backends or {}
        self.domains = domains or {}
        self.stats = stats or {}
        self.details = details or {}
        self.users = users or {}
        self.latency = latency
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _answer(self, call: tuple, value):
        with self._lock:
            self.calls.append(call)
        if self.latency:
            time.sleep(self.latency)
        if isinstance(value, Exception):
            raise value
        return value

    def list_services(self):
        return self._answer(("list_services",), self.services)

    def list_backends(self, service_id, version):
        value = self.backends.get(service_id, [])
        return self._answer(("list_backends", service_id, version), value)

    def list_service_domains(self, service_id):
        value = self.domains.get(service_id, [])
        return self._answer(("list_service_domains", service_id), value)

    def get_stats(self, service_id, from_window="two months ago", by="day"):
        value = self.stats.get(service_id, {"status": "success", "data": []})
        return self._answer(("get_stats", service_id, from_window, by), value)

    def get_service_details(self, service_id):
        value = self.details.get(service_id, FastlyAPIError("not found", status_code=404))
        return self._answer(("get_service_details", service_id), value)

    def list_customer_users(self, customer_id):
        value = self.users.get(customer_id, FastlyAPIError("not found", status_code=404))
        return self._answer(("list_customer_users", customer_id), value)


def stats_payload(requests=0, hit_ratio=0.0, **statuses):
    """One-day stats payload; statuses given as status_404=3 etc."""
    row = {"requests": requests, "hit_ratio": hit_ratio}
    row.update(statuses)
    return {"status": "success", "data": [row]}
