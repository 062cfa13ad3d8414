"""
Pytest configuration and shared fixtures for cdn_traffic_report tests.

No test touches the network: DNS goes through FakeDNSResolver and the
Fastly API through FakeFastlyClient (see tests/fakes.py).
"""

import os
import socket

import pytest

from cdn_traffic_report.resolution import resolver as resolver_module
from cdn_traffic_report.resolution.resolver import HostnameResolver
from tests.fakes import FakeDNSResolver

# Keep settings independent of any developer .env
os.environ.setdefault("FASTLY_API_TOKEN", "test-token")


@pytest.fixture(autouse=True)
def no_os_resolver(monkeypatch):
    """Make the getaddrinfo fallback fail unless a test overrides it."""

    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(resolver_module.socket, "getaddrinfo", fail)


@pytest.fixture
def fake_dns():
    return FakeDNSResolver()


@pytest.fixture
def hostname_resolver(fake_dns):
    return HostnameResolver(timeout=1.0, dns_resolver=fake_dns)


@pytest.fixture
def default_resolver(monkeypatch, hostname_resolver):
    """Install hostname_resolver as the module-level default resolver."""
    monkeypatch.setattr(resolver_module, "_default_resolver", hostname_resolver)
    return hostname_resolver
