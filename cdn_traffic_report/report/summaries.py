"""
Account summary reports: active services and customer users.

Both are sequential listings sorted newest-update first; records without a
timestamp sort last.
"""

import csv
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TextIO

from cdn_traffic_report.domain.models import AccountUser, ServiceSummary

SERVICE_COLUMNS = ("service id", "service name", "versions", "active", "last updated")
USER_COLUMNS = ("last updated", "login", "name", "role")

_OLDEST = datetime.min.replace(tzinfo=UTC)


def _newest_first(updated_at: datetime | None) -> datetime:
    if updated_at is None:
        return _OLDEST
    if updated_at.tzinfo is None:
        return updated_at.replace(tzinfo=UTC)
    return updated_at


def write_service_summary(
    services: Iterable[ServiceSummary],
    stream: TextIO,
    active_only: bool = True,
) -> int:
    """Write services sorted by last update (newest first); returns row count."""
    rows = [s for s in services if s.active or not active_only]
    rows.sort(key=lambda s: _newest_first(s.updated_at), reverse=True)

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(SERVICE_COLUMNS)
    for service in rows:
        writer.writerow(
            [
                service.id,
                service.name,
                service.version_count,
                str(service.active).lower(),
                service.updated_at.isoformat() if service.updated_at else "",
            ]
        )
    return len(rows)


def write_user_summary(users: Iterable[AccountUser], stream: TextIO) -> int:
    """Write users sorted by last update (newest first); returns row count."""
    rows = sorted(users, key=lambda u: _newest_first(u.updated_at), reverse=True)

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(USER_COLUMNS)
    for user in rows:
        writer.writerow(
            [
                user.updated_at.isoformat() if user.updated_at else "",
                user.login,
                user.name,
                user.role,
            ]
        )
    return len(rows)
