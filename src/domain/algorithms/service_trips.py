from __future__ import annotations

from typing import Iterable

from src.domain.models import GtfsTrip


def index_trips_by_service(trips: Iterable[GtfsTrip]) -> dict[str, tuple[str, ...]]:
    """Group trip ids under the service id named on each trip."""

    grouped: dict[str, set[str]] = {}
    for trip in trips:
        grouped.setdefault(trip.service_id, set()).add(trip.trip_id)
    return {sid: tuple(sorted(trip_ids)) for sid, trip_ids in grouped.items()}
