"""
Unit tests for the Fastly API source.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import requests

from cdn_traffic_report.sources.fastly import (
    FastlyAPIError,
    FastlyClient,
    parse_backends,
    parse_domains,
    parse_service_summary,
    parse_timestamp,
    parse_traffic_stats,
    parse_users,
    service_refs_from_listing,
)


def _response(status_code=200, payload=None, invalid_json=False):
    response = MagicMock()
    response.status_code = status_code
    if invalid_json:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


class TestFastlyClient:
    """Tests for FastlyClient request handling."""

    def test_auth_header_set(self, session):
        FastlyClient("secret", session=session)
        assert session.headers["Fastly-Key"] == "secret"

    def test_empty_token_rejected(self, session):
        with pytest.raises(ValueError, match="token"):
            FastlyClient("", session=session)

    def test_list_services(self, session):
        session.get.return_value = _response(payload=[{"id": "svc1"}])
        client = FastlyClient("secret", base_url="https://api.example.com/", session=session)

        assert client.list_services() == [{"id": "svc1"}]
        url = session.get.call_args.args[0]
        assert url == "https://api.example.com/service"
        assert session.get.call_args.kwargs["timeout"] == 30.0

    def test_list_backends_path(self, session):
        session.get.return_value = _response(payload=[])
        client = FastlyClient("secret", session=session)

        client.list_backends("svc1", 7)

        assert session.get.call_args.args[0].endswith("/service/svc1/version/7/backend")

    def test_list_service_domains_path(self, session):
        session.get.return_value = _response(payload=[])
        client = FastlyClient("secret", session=session)

        client.list_service_domains("svc1")

        assert session.get.call_args.args[0].endswith("/service/svc1/domain")

    def test_get_stats_window_params(self, session):
        session.get.return_value = _response(payload={"status": "success", "data": []})
        client = FastlyClient("secret", session=session)

        client.get_stats("svc1")

        assert session.get.call_args.args[0].endswith("/stats/service/svc1")
        assert session.get.call_args.kwargs["params"] == {"from": "two months ago", "by": "day"}

    def test_get_stats_error_status(self, session):
        session.get.return_value = _response(payload={"status": "error", "msg": "bad window"})
        client = FastlyClient("secret", session=session)

        with pytest.raises(FastlyAPIError, match="bad window"):
            client.get_stats("svc1")

    def test_non_200_raises(self, session):
        session.get.return_value = _response(status_code=401, payload={"msg": "unauthorized"})
        client = FastlyClient("secret", session=session)

        with pytest.raises(FastlyAPIError) as exc_info:
            client.list_services()
        assert exc_info.value.status_code == 401

    def test_transport_error_wrapped(self, session):
        session.get.side_effect = requests.ConnectionError("connection refused")
        client = FastlyClient("secret", session=session)

        with pytest.raises(FastlyAPIError, match="connection refused"):
            client.list_service_domains("svc1")

    def test_invalid_json(self, session):
        session.get.return_value = _response(invalid_json=True)
        client = FastlyClient("secret", session=session)

        with pytest.raises(FastlyAPIError, match="invalid JSON"):
            client.list_services()

    def test_rate_limiter_called_per_request(self, session):
        session.get.return_value = _response(payload=[])
        limiter = MagicMock()
        client = FastlyClient("secret", session=session, rate_limiter=limiter)

        client.list_services()
        client.list_service_domains("svc1")

        assert limiter.call_count == 2


class TestServiceRefsFromListing:
    """Tests for picking the active version of listed services."""

    def test_active_flag_wins(self):
        refs = service_refs_from_listing(
            [
                {
                    "id": "svc1",
                    "name": "www",
                    "version": 2,
                    "versions": [
                        {"number": 1, "active": False},
                        {"number": 3, "active": True},
                        {"number": 4, "active": False},
                    ],
                }
            ]
        )
        assert refs[0].active_version == 3
        assert refs[0].name == "www"
        assert refs[0].id == "svc1"

    def test_version_field_used_without_active_flag(self):
        refs = service_refs_from_listing(
            [{"id": "svc1", "name": "www", "version": 5, "versions": [{"number": 6}]}]
        )
        assert refs[0].active_version == 5

    def test_last_listed_version_fallback(self):
        refs = service_refs_from_listing(
            [{"id": "svc1", "name": "www", "versions": [{"number": 1}, {"number": 2}]}]
        )
        assert refs[0].active_version == 2

    def test_malformed_versions_kept_without_version(self):
        refs = service_refs_from_listing([{"id": "svc1", "name": "www", "versions": None}])
        assert len(refs) == 1
        assert refs[0].active_version is None

    def test_service_without_id_dropped(self):
        refs = service_refs_from_listing([{"name": "ghost"}, {"id": "svc2", "name": "api"}])
        assert [r.id for r in refs] == ["svc2"]

    def test_missing_name_falls_back_to_id(self):
        refs = service_refs_from_listing([{"id": "svc1", "version": 1}])
        assert refs[0].name == "svc1"


class TestParsers:
    """Tests for payload parsers."""

    def test_parse_timestamp(self):
        assert parse_timestamp("2023-04-01T12:30:00Z") == datetime(2023, 4, 1, 12, 30, tzinfo=UTC)
        assert parse_timestamp(None) is None
        assert parse_timestamp("not a date") is None

    def test_parse_timestamp_without_offset_is_utc(self):
        assert parse_timestamp("2023-04-01T12:30:00") == datetime(2023, 4, 1, 12, 30, tzinfo=UTC)

    def test_parse_backends(self):
        backends = parse_backends(
            [
                {
                    "hostname": "origin.example.com",
                    "created_at": "2022-01-01T00:00:00Z",
                    "updated_at": "2023-01-01T00:00:00Z",
                },
                {"hostname": None},
            ]
        )
        assert backends[0].hostname == "origin.example.com"
        assert backends[0].created_at.year == 2022
        assert backends[0].updated_at.year == 2023
        assert backends[1].hostname == ""

    def test_parse_domains_skips_blank(self):
        assert parse_domains([{"name": "a.example.com"}, {"name": ""}, {}]) == ["a.example.com"]

    def test_parse_traffic_stats_sums_window(self):
        stats = parse_traffic_stats(
            {
                "status": "success",
                "data": [
                    {"requests": 100, "hit_ratio": 0.9, "status_400": 1, "status_500": 2},
                    {"requests": 300, "hit_ratio": 0.5, "status_400": 3, "status_503": 4},
                ],
            }
        )
        assert stats.requests == 400
        assert stats.hit_ratio == pytest.approx((100 * 0.9 + 300 * 0.5) / 400)
        assert stats.status(400) == 4
        assert stats.status(500) == 2
        assert stats.status(503) == 4
        assert stats.status(404) == 0

    def test_status_500_not_copied_from_400(self):
        stats = parse_traffic_stats({"data": [{"requests": 1, "status_400": 9, "status_500": 1}]})
        assert stats.status(500) == 1

    def test_parse_traffic_stats_no_requests(self):
        stats = parse_traffic_stats({"data": [{"requests": 0, "hit_ratio": 0.4}]})
        assert stats.requests == 0
        assert stats.hit_ratio == pytest.approx(0.4)

    def test_parse_traffic_stats_empty(self):
        stats = parse_traffic_stats({"data": []})
        assert stats.requests == 0
        assert stats.hit_ratio == 0.0
        assert set(stats.status_counters.values()) == {0}

    def test_parse_traffic_stats_null_fields(self):
        stats = parse_traffic_stats({"data": [{"requests": None, "hit_ratio": None}]})
        assert stats.requests == 0
        assert stats.hit_ratio == 0.0

    def test_parse_users(self):
        users = parse_users(
            [{"login": "a@example.com", "name": "A", "role": "superuser", "updated_at": None}]
        )
        assert users[0].login == "a@example.com"
        assert users[0].role == "superuser"
        assert users[0].updated_at is None

    def test_parse_service_summary(self):
        summary = parse_service_summary(
            {
                "id": "svc1",
                "name": "www",
                "versions": [{}, {}, {}],
                "active_version": {"active": True},
                "updated_at": "2023-01-01T00:00:00Z",
            }
        )
        assert summary.version_count == 3
        assert summary.active is True
        assert summary.updated_at.year == 2023

    def test_parse_service_summary_uses_latest_version_update(self):
        summary = parse_service_summary(
            {
                "id": "svc1",
                "name": "www",
                "updated_at": "2020-01-01T00:00:00Z",
                "version": {"number": 4, "updated_at": "2024-02-01T00:00:00Z"},
            }
        )
        assert summary.updated_at == datetime(2024, 2, 1, tzinfo=UTC)

    def test_parse_service_summary_without_active_version(self):
        summary = parse_service_summary({"id": "svc1", "name": "www", "active_version": None})
        assert summary.active is False
        assert summary.version_count == 0
