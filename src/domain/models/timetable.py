from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True, slots=True)
class ServiceCalendarIndex:
    """Service <-> date lookup tables.

    Every date listed under a service also lists that service back.
    """

    dates_by_service: dict[str, tuple[date, ...]]
    services_by_date: dict[date, tuple[str, ...]]

    def dates_for(self, service_id: str) -> tuple[date, ...] | None:
        """Dates a service runs on; None for a service the feed never mentions."""

        return self.dates_by_service.get(service_id)

    def services_on(self, service_date: date) -> tuple[str, ...]:
        return self.services_by_date.get(service_date, ())


@dataclass(frozen=True, slots=True)
class StopOrder:
    stop_ids: tuple[str, ...]
    is_total: bool = True
    reversed_from_opposite: bool = False

    def reversed(self) -> "StopOrder":
        return StopOrder(
            stop_ids=tuple(reversed(self.stop_ids)),
            is_total=self.is_total,
            reversed_from_opposite=True,
        )


@dataclass(frozen=True, slots=True)
class RouteStopOrder:
    route_id: str
    outbound: StopOrder | None = None
    inbound: StopOrder | None = None

    @property
    def is_total(self) -> bool:
        orders = [o for o in (self.outbound, self.inbound) if o is not None]
        return all(o.is_total for o in orders)


@dataclass(frozen=True, slots=True)
class TripTimetable:
    trip_id: str
    times: dict[str, str]
    earliest_s: int


@dataclass(frozen=True, slots=True)
class TimetableRecord:
    route_id: str
    service_date: date
    inbound: tuple[TripTimetable, ...] = field(default_factory=tuple)
    outbound: tuple[TripTimetable, ...] = field(default_factory=tuple)
    unknown: tuple[TripTimetable, ...] = field(default_factory=tuple)
    inbound_order: StopOrder | None = None
    outbound_order: StopOrder | None = None
