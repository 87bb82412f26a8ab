from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class IssueKind(str, Enum):
    MISSING_TRIP = "missing_trip"
    MISSING_ARRIVAL = "missing_arrival"
    UNTIMED_TRIP = "untimed_trip"
    UNKNOWN_DIRECTION = "unknown_direction"
    PARTIAL_STOP_ORDER = "partial_stop_order"
    SINK_FAILURE = "sink_failure"


@dataclass(frozen=True, slots=True)
class FeedIssue:
    """A non-fatal problem tied to a single trip, stop-time, route or output unit."""

    kind: IssueKind
    message: str
    service_date: date | None = None
    route_id: str | None = None
    trip_id: str | None = None
    stop_id: str | None = None

    def describe(self) -> str:
        parts = [self.kind.value]
        if self.service_date is not None:
            parts.append(f"date={self.service_date.isoformat()}")
        if self.route_id:
            parts.append(f"route={self.route_id}")
        if self.trip_id:
            parts.append(f"trip={self.trip_id}")
        if self.stop_id:
            parts.append(f"stop={self.stop_id}")
        return f"[{' '.join(parts)}] {self.message}"
