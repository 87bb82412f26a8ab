from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable

from src.domain.exceptions import FeedFormatError
from src.domain.models import CalendarException, ExceptionType, ServiceCalendarIndex

# strptime accepts single-digit months and days, so check the shape first.
_DATE_FORMATS = (
    (re.compile(r"\d{8}"), "%Y%m%d"),
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
)


def parse_service_date(raw: str) -> date:
    """Parse a GTFS service date (YYYYMMDD; ISO YYYY-MM-DD is tolerated)."""

    value = (raw or "").strip()
    for pattern, fmt in _DATE_FORMATS:
        if not pattern.fullmatch(value):
            continue
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            break
    raise FeedFormatError(f"Unparseable service date: {raw!r}")


def expand_service_calendar(
    exceptions: Iterable[CalendarException],
    *,
    known_service_ids: Iterable[str] = (),
) -> ServiceCalendarIndex:
    """Build the service <-> date tables from calendar exceptions.

    Only ADDED exceptions produce dates. Weekly patterns from calendar.txt are
    not expanded, so REMOVED exceptions have nothing to remove and are skipped.
    Services that never gain a date still get an empty entry, which keeps
    "runs on no date" distinguishable from "unknown service".

    Raises FeedFormatError on the first unparseable date: a partially read
    calendar cannot be trusted.
    """

    added: dict[str, set[date]] = {sid: set() for sid in known_service_ids}

    for exc in exceptions:
        dates = added.setdefault(exc.service_id, set())
        # Parse REMOVED rows too; a malformed date is fatal regardless of type.
        service_date = parse_service_date(exc.date)
        if exc.exception_type is ExceptionType.ADDED:
            dates.add(service_date)

    services_by_date: dict[date, set[str]] = {}
    for service_id, dates in added.items():
        for d in dates:
            services_by_date.setdefault(d, set()).add(service_id)

    return ServiceCalendarIndex(
        dates_by_service={sid: tuple(sorted(ds)) for sid, ds in added.items()},
        services_by_date={
            d: tuple(sorted(sids)) for d, sids in sorted(services_by_date.items())
        },
    )


def iter_service_dates(calendar: ServiceCalendarIndex) -> tuple[date, ...]:
    """All dates with at least one active service, ascending."""

    return tuple(sorted(calendar.services_by_date))
