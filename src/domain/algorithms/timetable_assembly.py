from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

from src.domain.algorithms.time_format import format_offset
from src.domain.models import (
    Direction,
    FeedIssue,
    GtfsTrip,
    IssueKind,
    RouteStopOrder,
    ServiceCalendarIndex,
    TimetableRecord,
    TripTimetable,
)


@dataclass(frozen=True, slots=True)
class AssembledDay:
    service_date: date
    records: tuple[TimetableRecord, ...] = field(default_factory=tuple)
    issues: tuple[FeedIssue, ...] = field(default_factory=tuple)


def build_trip_timetable(
    trip: GtfsTrip, *, service_date: date | None = None
) -> tuple[TripTimetable | None, list[FeedIssue]]:
    """Format a trip's arrivals keyed by stop id.

    Stop-times without an arrival are skipped and reported. A trip left with
    no timed stop at all yields no timetable.
    """

    issues: list[FeedIssue] = []
    times: dict[str, str] = {}
    earliest: int | None = None

    for st in trip.stop_times:
        if st.arrival_s is None:
            issues.append(
                FeedIssue(
                    kind=IssueKind.MISSING_ARRIVAL,
                    message="Stop-time has no arrival time; skipped",
                    service_date=service_date,
                    route_id=trip.route_id,
                    trip_id=trip.trip_id,
                    stop_id=st.stop_id,
                )
            )
            continue
        times[st.stop_id] = format_offset(st.arrival_s)
        if earliest is None or st.arrival_s < earliest:
            earliest = st.arrival_s

    if earliest is None:
        issues.append(
            FeedIssue(
                kind=IssueKind.UNTIMED_TRIP,
                message="Trip has no timed stop-times; skipped",
                service_date=service_date,
                route_id=trip.route_id,
                trip_id=trip.trip_id,
            )
        )
        return None, issues

    return TripTimetable(trip_id=trip.trip_id, times=times, earliest_s=earliest), issues


def assemble_day(
    service_date: date,
    *,
    trips_by_id: Mapping[str, GtfsTrip],
    calendar: ServiceCalendarIndex,
    trips_by_service: Mapping[str, tuple[str, ...]],
    stop_orders: Mapping[str, RouteStopOrder],
) -> AssembledDay:
    """Build one TimetableRecord per route with trips running on `service_date`.

    Bad trip references are reported and skipped; they never discard the
    rest of the day.
    """

    issues: list[FeedIssue] = []

    trip_ids: set[str] = set()
    for service_id in calendar.services_on(service_date):
        trip_ids.update(trips_by_service.get(service_id, ()))

    buckets: dict[str, dict[Direction, list[TripTimetable]]] = {}
    for trip_id in sorted(trip_ids):
        trip = trips_by_id.get(trip_id)
        if trip is None:
            issues.append(
                FeedIssue(
                    kind=IssueKind.MISSING_TRIP,
                    message="Service references a trip absent from the trip table",
                    service_date=service_date,
                    trip_id=trip_id,
                )
            )
            continue

        timetable, trip_issues = build_trip_timetable(trip, service_date=service_date)
        issues.extend(trip_issues)
        if timetable is None:
            continue

        if trip.direction is Direction.UNKNOWN:
            issues.append(
                FeedIssue(
                    kind=IssueKind.UNKNOWN_DIRECTION,
                    message="Trip has no direction; listed under 'unknown'",
                    service_date=service_date,
                    route_id=trip.route_id,
                    trip_id=trip.trip_id,
                )
            )

        route_bucket = buckets.setdefault(trip.route_id, {})
        route_bucket.setdefault(trip.direction, []).append(timetable)

    records: list[TimetableRecord] = []
    for route_id in sorted(buckets):
        by_direction = buckets[route_id]
        order = stop_orders.get(route_id)
        records.append(
            TimetableRecord(
                route_id=route_id,
                service_date=service_date,
                inbound=tuple(by_direction.get(Direction.INBOUND, ())),
                outbound=tuple(by_direction.get(Direction.OUTBOUND, ())),
                unknown=tuple(by_direction.get(Direction.UNKNOWN, ())),
                inbound_order=order.inbound if order else None,
                outbound_order=order.outbound if order else None,
            )
        )

    return AssembledDay(
        service_date=service_date, records=tuple(records), issues=tuple(issues)
    )
