from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .stop import Stop


class Direction(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"
    UNKNOWN = "unknown"

    @staticmethod
    def from_gtfs(raw: str | None) -> "Direction":
        # GTFS direction_id: 0 = one direction, 1 = the opposite one.
        value = (raw or "").strip()
        if value == "0":
            return Direction.OUTBOUND
        if value == "1":
            return Direction.INBOUND
        return Direction.UNKNOWN


class ExceptionType(str, Enum):
    ADDED = "1"
    REMOVED = "2"


@dataclass(frozen=True, slots=True)
class StopTime:
    """A single stop visit within a trip.

    Times are seconds since service day midnight (GTFS time semantics; may exceed 24h).
    """

    stop_id: str
    arrival_s: int | None
    stop_sequence: int = 0


@dataclass(frozen=True, slots=True)
class GtfsRoute:
    route_id: str
    short_name: str | None = None
    long_name: str | None = None


@dataclass(frozen=True, slots=True)
class GtfsTrip:
    trip_id: str
    route_id: str
    service_id: str
    direction: Direction = Direction.UNKNOWN
    stop_times: tuple[StopTime, ...] = ()

    @property
    def stop_ids(self) -> tuple[str, ...]:
        return tuple(st.stop_id for st in self.stop_times)


@dataclass(frozen=True, slots=True)
class CalendarException:
    """One calendar_dates.txt row. `date` is kept as the raw feed text."""

    service_id: str
    date: str
    exception_type: ExceptionType


@dataclass(frozen=True, slots=True)
class ServicePattern:
    """A service declared in calendar.txt. Weekly patterns are not expanded."""

    service_id: str


@dataclass(frozen=True, slots=True)
class GtfsFeed:
    """In-memory representation of the subset of GTFS needed for timetables."""

    stops_by_id: dict[str, Stop]
    routes_by_id: dict[str, GtfsRoute]
    trips_by_id: dict[str, GtfsTrip]
    service_patterns_by_id: dict[str, ServicePattern]
    calendar_exceptions: tuple[CalendarException, ...]
