from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from src.adapters.persistence.timetable_document import timetable_key, timetable_to_dict
from src.app.ports.output import ITimetableSink
from src.app.services.timetable_build_service import TimetableBuildService
from src.domain.exceptions import FeedFormatError
from src.domain.models import (
    CalendarException,
    Direction,
    ExceptionType,
    GtfsFeed,
    GtfsRoute,
    GtfsTrip,
    IssueKind,
    ServicePattern,
    Stop,
    StopTime,
    TimetableRecord,
)


@dataclass(slots=True)
class FakeGtfsRepository:
    feed: GtfsFeed

    def load_feed(self) -> GtfsFeed:
        return self.feed


@dataclass
class InMemorySink(ITimetableSink):
    fail_routes: frozenset[str] = frozenset()
    fail_commit: bool = False
    documents: dict[str, dict[str, Any]] = field(default_factory=dict)
    committed: bool = False
    aborted: bool = False

    def put_timetable(self, record: TimetableRecord) -> str:
        if record.route_id in self.fail_routes:
            raise OSError("disk full")
        key = timetable_key(record.service_date, record.route_id)
        self.documents[key] = timetable_to_dict(record)
        return key

    def commit(self) -> None:
        if self.fail_commit:
            raise OSError("rename failed")
        self.committed = True

    def abort(self) -> None:
        self.aborted = True
        self.documents.clear()


def _trip(
    trip_id: str,
    stops: list[str],
    times: list[int],
    *,
    route_id: str = "R1",
    service_id: str = "WD",
    direction: Direction = Direction.OUTBOUND,
) -> GtfsTrip:
    return GtfsTrip(
        trip_id=trip_id,
        route_id=route_id,
        service_id=service_id,
        direction=direction,
        stop_times=tuple(
            StopTime(stop_id=s, arrival_s=t, stop_sequence=i + 1)
            for i, (s, t) in enumerate(zip(stops, times))
        ),
    )


def _feed(
    trips: list[GtfsTrip], exceptions: list[CalendarException] | None = None
) -> GtfsFeed:
    if exceptions is None:
        exceptions = [
            CalendarException("WD", "20210118", ExceptionType.ADDED),
            CalendarException("WD", "20210119", ExceptionType.ADDED),
        ]
    return GtfsFeed(
        stops_by_id={s: Stop(id=s, name=f"Stop {s}") for s in ("S1", "S2", "S3")},
        routes_by_id={"R1": GtfsRoute(route_id="R1", short_name="1")},
        trips_by_id={t.trip_id: t for t in trips},
        service_patterns_by_id={"SAT": ServicePattern(service_id="SAT")},
        calendar_exceptions=tuple(exceptions),
    )


def _scenario_trips() -> list[GtfsTrip]:
    return [
        _trip("T1", ["S1", "S2", "S3"], [0, 300, 600]),
        _trip("T2", ["S1", "S2", "S3"], [3600, 3900, 4200]),
    ]


def test_one_document_per_date_and_route() -> None:
    sink = InMemorySink()
    service = TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(_scenario_trips())), sink=sink
    )

    summary = service.run()

    assert sink.committed
    assert summary.dates == 2
    assert summary.documents == 2
    assert summary.issues == ()
    assert set(sink.documents) == {"2021-01-18/R1.json", "2021-01-19/R1.json"}
    for key, doc in sink.documents.items():
        assert doc["route_id"] == "R1"
        assert doc["date"] == key.split("/")[0]
        assert doc["outbound"] == [
            {"S1": "0:00", "S2": "0:05", "S3": "0:10"},
            {"S1": "1:00", "S2": "1:05", "S3": "1:10"},
        ]
        assert doc["inbound"] == []
        assert doc["outbound_order"] == ["S1", "S2", "S3"]
        assert "inbound_order" not in doc


def test_service_without_added_dates_never_produces_output() -> None:
    trips = _scenario_trips() + [
        _trip("T9", ["S1", "S2"], [0, 60], route_id="R9", service_id="SAT")
    ]
    sink = InMemorySink()

    summary = TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(trips)), sink=sink
    ).run()

    assert summary.documents == 2
    assert not any("R9" in key for key in sink.documents)


def test_parallel_run_matches_sequential_run() -> None:
    trips = _scenario_trips() + [
        _trip("T3", ["S3", "S2", "S1"], [100, 200, 300], direction=Direction.INBOUND),
        _trip("T4", ["S1", "S3"], [50, 70], route_id="R2"),
    ]
    exceptions = [
        CalendarException("WD", f"202101{day:02d}", ExceptionType.ADDED)
        for day in range(1, 29)
    ]

    sequential, parallel = InMemorySink(), InMemorySink()
    TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(trips, exceptions)), sink=sequential
    ).run()
    TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(trips, exceptions)),
        sink=parallel,
        max_workers=4,
    ).run()

    assert len(sequential.documents) == 28 * 2
    assert parallel.documents == sequential.documents


def test_sink_failure_is_contained_to_its_route() -> None:
    trips = _scenario_trips() + [_trip("T4", ["S1", "S3"], [50, 70], route_id="R2")]
    sink = InMemorySink(fail_routes=frozenset({"R2"}))

    summary = TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(trips)), sink=sink
    ).run()

    assert sink.committed
    assert set(sink.documents) == {"2021-01-18/R1.json", "2021-01-19/R1.json"}
    assert summary.issue_counts == {IssueKind.SINK_FAILURE: 2}


def test_partial_stop_order_is_reported_and_flagged() -> None:
    trips = [
        _trip("T1", ["S1", "S2", "S3"], [0, 60, 120]),
        _trip("T2", ["S1", "S3", "S2"], [0, 60, 120]),
    ]
    sink = InMemorySink()

    summary = TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(trips)), sink=sink
    ).run()

    assert summary.issue_counts == {IssueKind.PARTIAL_STOP_ORDER: 1}
    doc = sink.documents["2021-01-18/R1.json"]
    assert doc["outbound_order"] == ["S1"]
    assert doc["outbound_order_partial"] is True


def test_malformed_calendar_aborts_before_any_output() -> None:
    exceptions = [
        CalendarException("WD", "20210118", ExceptionType.ADDED),
        CalendarException("WD", "18/01/2021", ExceptionType.ADDED),
    ]
    sink = InMemorySink()
    service = TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(_scenario_trips(), exceptions)),
        sink=sink,
    )

    with pytest.raises(FeedFormatError):
        service.run()

    assert sink.documents == {}
    assert not sink.committed


def test_failed_commit_aborts_the_sink() -> None:
    sink = InMemorySink(fail_commit=True)
    service = TimetableBuildService(
        gtfs_repository=FakeGtfsRepository(_feed(_scenario_trips())), sink=sink
    )

    with pytest.raises(OSError):
        service.run()

    assert sink.aborted
    assert sink.documents == {}
