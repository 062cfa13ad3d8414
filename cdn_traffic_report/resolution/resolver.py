"""
Hostname and name-server resolution for service enrichment.

Forward lookups query A and AAAA records through dnspython and fall back to
the operating system resolver (socket.getaddrinfo) when DNS returns nothing,
so names that only exist in /etc/hosts still resolve.

Name-server lookups query NS records. Domains configured on a CDN service are
often aliases rather than zone apexes, so a failed NS lookup falls back to the
domain's CNAME target before giving up.

Lookups never raise: failures are returned as a LookupResult carrying a
LookupFailure, and rendered to the report's sentinel strings only by
resolve_hostname() / resolve_name_servers().
"""

import logging
import socket
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import dns.exception
import dns.resolver

from cdn_traffic_report.config import get_dns_timeout
from cdn_traffic_report.domain.models import LookupFailure, LookupResult

logger = logging.getLogger(__name__)

# Threads available to OS resolver fallbacks across all workers
FALLBACK_WORKERS = 4


def _strip_root(name) -> str:
    """Convert a DNS name to text without the trailing root dot."""
    return str(name).rstrip(".")


class HostnameResolver:
    """
    DNS resolver with a per-query timeout.

    Thread-safe: dns.resolver.Resolver.resolve() keeps no per-query state on
    the resolver, so one instance is shared by all enrichment workers.

    Args:
        timeout: Lifetime in seconds of a single query (default: dns_timeout setting)
        dns_resolver: Optional pre-built dns.resolver.Resolver (mainly for tests)
    """

    def __init__(
        self,
        timeout: float | None = None,
        dns_resolver: dns.resolver.Resolver | None = None,
    ):
        self.timeout = timeout if timeout is not None else get_dns_timeout()
        if dns_resolver is None:
            dns_resolver = dns.resolver.Resolver()
            dns_resolver.timeout = self.timeout
            dns_resolver.lifetime = self.timeout
        self._resolver = dns_resolver
        self._fallback_pool = ThreadPoolExecutor(
            max_workers=FALLBACK_WORKERS, thread_name_prefix="getaddrinfo"
        )

    def lookup_addresses(self, hostname: str) -> LookupResult:
        """
        Resolve a hostname to its IP addresses.

        Args:
            hostname: Origin hostname

        Returns:
            LookupResult with addresses in resolver order (A first, then AAAA),
            or LookupFailure.HOST_RESOLUTION if nothing resolved
        """
        addresses: list[str] = []
        for rtype in ("A", "AAAA"):
            try:
                answer = self._resolver.resolve(
                    hostname, rtype, raise_on_no_answer=False, lifetime=self.timeout
                )
                addresses.extend(rdata.address for rdata in answer)
            except dns.exception.DNSException as e:
                logger.debug(f"{rtype} lookup failed for {hostname}: {e}")

        if not addresses:
            addresses = self._os_addresses(hostname)

        if not addresses:
            return LookupResult.failed(LookupFailure.HOST_RESOLUTION)

        # Deduplicate, keeping first-seen order
        return LookupResult.success(dict.fromkeys(addresses))

    def _os_addresses(self, hostname: str) -> list[str]:
        """
        Resolve through the OS resolver, waiting at most the query timeout.

        getaddrinfo cannot be interrupted; on timeout the call is abandoned to
        its pool thread and the caller moves on.
        """
        future = self._fallback_pool.submit(socket.getaddrinfo, hostname, None)
        try:
            infos = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.debug(f"getaddrinfo timed out for {hostname} after {self.timeout}s")
            return []
        except (OSError, UnicodeError) as e:
            logger.debug(f"getaddrinfo failed for {hostname}: {e}")
            return []
        return [info[4][0] for info in infos]

    def lookup_cname(self, domain: str) -> str | None:
        """Return the CNAME target of a domain, or None if it has none."""
        try:
            answer = self._resolver.resolve(domain, "CNAME", lifetime=self.timeout)
        except dns.exception.DNSException as e:
            logger.debug(f"CNAME lookup failed for {domain}: {e}")
            return None
        for rdata in answer:
            return _strip_root(rdata.target)
        return None

    def lookup_name_servers(self, domain: str) -> LookupResult:
        """
        Resolve the authoritative name servers of a domain.

        Falls back to the CNAME target when the NS lookup fails.

        Args:
            domain: Domain configured on a service

        Returns:
            LookupResult with name-server hostnames, a one-element result
            holding the CNAME target, or LookupFailure.NS_RESOLUTION
        """
        try:
            answer = self._resolver.resolve(domain, "NS", lifetime=self.timeout)
            hosts = [_strip_root(rdata.target) for rdata in answer]
            if hosts:
                return LookupResult.success(dict.fromkeys(hosts))
        except dns.exception.DNSException as e:
            logger.debug(f"NS lookup failed for {domain}: {e}")

        cname = self.lookup_cname(domain)
        if cname:
            return LookupResult.success([cname])
        return LookupResult.failed(LookupFailure.NS_RESOLUTION)

    def resolve_hostname(self, hostname: str) -> list[str]:
        """Resolve a hostname; ["Host resolution failed"] when it cannot be resolved."""
        return self.lookup_addresses(hostname).render()

    def resolve_name_servers(self, domains: Iterable[str]) -> set[str]:
        """
        Resolve name servers for all domains of one service.

        Args:
            domains: Domain names configured on the service

        Returns:
            One deduplicated set covering every domain. Domains whose NS and
            CNAME lookups both fail contribute "NS resolution failed".
        """
        name_servers: set[str] = set()
        for domain in domains:
            name_servers.update(self.lookup_name_servers(domain).render())
        return name_servers


_default_resolver: HostnameResolver | None = None


def get_resolver() -> HostnameResolver:
    """Get the shared module-level resolver (created on first use)."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = HostnameResolver()
    return _default_resolver


def resolve_hostname(hostname: str) -> list[str]:
    """
    Resolve a hostname to IP address strings.

    Never raises and never returns an empty list.

    Example:
        >>> resolve_hostname("does-not-exist.invalid")
        ['Host resolution failed']
    """
    return get_resolver().resolve_hostname(hostname)


def resolve_name_servers(domains: Iterable[str]) -> set[str]:
    """Resolve and merge the name servers of several domains into one set."""
    return get_resolver().resolve_name_servers(domains)
