from __future__ import annotations

import csv
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from src.app.ports.output import IGtfsRepository
from src.domain.algorithms.time_format import parse_offset
from src.domain.exceptions import FeedFormatError, FeedIntegrityError
from src.domain.models import (
    CalendarException,
    Direction,
    ExceptionType,
    GtfsFeed,
    GtfsRoute,
    GtfsTrip,
    ServicePattern,
    Stop,
    StopTime,
)

logger = logging.getLogger(__name__)


def _field(row: dict[str, str], name: str) -> str:
    return (row.get(name) or "").strip()


def _parse_optional_time(raw: str) -> int | None:
    # Untimed stops leave both arrival and departure empty.
    if not raw:
        return None
    return parse_offset(raw)


@dataclass(slots=True)
class LocalGtfsRepository(IGtfsRepository):
    """Loads a GTFS feed from a directory of .txt files.

    Env vars:
      - GTFS_PATH: path to directory containing stops.txt, routes.txt, trips.txt,
        stop_times.txt and optionally calendar.txt / calendar_dates.txt
    """

    base_path: str | Path | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def _rows(self, filename: str, *, required: bool) -> Iterator[dict[str, str]]:
        path = self._base() / filename
        if not path.exists():
            if required:
                raise FeedIntegrityError(f"Missing required feed file: {path}")
            logger.debug("Optional feed file %s not found", path)
            return
        with path.open("r", encoding="utf-8-sig", newline="") as fp:
            yield from csv.DictReader(fp)

    def load_feed(self) -> GtfsFeed:
        started = time.perf_counter()

        stops_by_id: dict[str, Stop] = {}
        for row in self._rows("stops.txt", required=True):
            stop_id = _field(row, "stop_id")
            if not stop_id:
                continue
            stops_by_id[stop_id] = Stop(
                id=stop_id, name=_field(row, "stop_name") or stop_id
            )

        routes_by_id: dict[str, GtfsRoute] = {}
        for row in self._rows("routes.txt", required=True):
            route_id = _field(row, "route_id")
            if not route_id:
                continue
            routes_by_id[route_id] = GtfsRoute(
                route_id=route_id,
                short_name=_field(row, "route_short_name") or None,
                long_name=_field(row, "route_long_name") or None,
            )

        # Build stop_times per trip with ordering.
        stop_times_by_trip: dict[str, list[StopTime]] = {}
        for row in self._rows("stop_times.txt", required=True):
            trip_id = _field(row, "trip_id")
            stop_id = _field(row, "stop_id")
            if not trip_id or not stop_id:
                continue

            try:
                seq = int(_field(row, "stop_sequence") or 0)
            except ValueError as exc:
                raise FeedFormatError(
                    f"Invalid stop_sequence for trip {trip_id}: {row.get('stop_sequence')!r}"
                ) from exc

            arrival_s = _parse_optional_time(_field(row, "arrival_time"))
            if arrival_s is None:
                arrival_s = _parse_optional_time(_field(row, "departure_time"))

            stop_times_by_trip.setdefault(trip_id, []).append(
                StopTime(stop_id=stop_id, arrival_s=arrival_s, stop_sequence=seq)
            )

        trips_by_id: dict[str, GtfsTrip] = {}
        for row in self._rows("trips.txt", required=True):
            trip_id = _field(row, "trip_id")
            if not trip_id:
                continue
            route_id = _field(row, "route_id")
            service_id = _field(row, "service_id")
            if not route_id or not service_id:
                raise FeedFormatError(f"Trip {trip_id} lacks route_id or service_id")

            entries = stop_times_by_trip.get(trip_id, [])
            entries.sort(key=lambda st: st.stop_sequence)
            trips_by_id[trip_id] = GtfsTrip(
                trip_id=trip_id,
                route_id=route_id,
                service_id=service_id,
                direction=Direction.from_gtfs(row.get("direction_id")),
                stop_times=tuple(entries),
            )

        service_patterns_by_id: dict[str, ServicePattern] = {}
        for row in self._rows("calendar.txt", required=False):
            service_id = _field(row, "service_id")
            if not service_id:
                continue
            service_patterns_by_id[service_id] = ServicePattern(service_id=service_id)

        exceptions: list[CalendarException] = []
        for row in self._rows("calendar_dates.txt", required=False):
            service_id = _field(row, "service_id")
            if not service_id:
                continue
            raw_type = _field(row, "exception_type")
            try:
                exception_type = ExceptionType(raw_type)
            except ValueError as exc:
                raise FeedFormatError(
                    f"Invalid exception_type for service {service_id}: {raw_type!r}"
                ) from exc
            exceptions.append(
                CalendarException(
                    service_id=service_id,
                    date=_field(row, "date"),
                    exception_type=exception_type,
                )
            )

        logger.info(
            "Parsed gtfs files in %.2fs (%d stops, %d routes, %d trips)",
            time.perf_counter() - started,
            len(stops_by_id),
            len(routes_by_id),
            len(trips_by_id),
        )

        return GtfsFeed(
            stops_by_id=stops_by_id,
            routes_by_id=routes_by_id,
            trips_by_id=trips_by_id,
            service_patterns_by_id=service_patterns_by_id,
            calendar_exceptions=tuple(exceptions),
        )
