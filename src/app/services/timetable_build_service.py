from __future__ import annotations

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date

from src.app.ports.output import IGtfsRepository, ITimetableSink
from src.domain.algorithms.calendar import expand_service_calendar, iter_service_dates
from src.domain.algorithms.service_trips import index_trips_by_service
from src.domain.algorithms.stop_order import resolve_stop_orders
from src.domain.algorithms.timetable_assembly import assemble_day
from src.domain.models import (
    FeedIssue,
    GtfsFeed,
    IssueKind,
    RouteStopOrder,
    ServiceCalendarIndex,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimetableIndexes:
    """Lookup tables built once per run and only read afterwards."""

    calendar: ServiceCalendarIndex
    trips_by_service: dict[str, tuple[str, ...]]
    stop_orders: dict[str, RouteStopOrder]


@dataclass(frozen=True, slots=True)
class DateResult:
    service_date: date
    keys: tuple[str, ...] = ()
    issues: tuple[FeedIssue, ...] = ()


@dataclass(frozen=True, slots=True)
class BuildSummary:
    dates: int
    documents: int
    issues: tuple[FeedIssue, ...] = field(default_factory=tuple)

    @property
    def issue_counts(self) -> dict[IssueKind, int]:
        return dict(Counter(issue.kind for issue in self.issues))


def build_indexes(feed: GtfsFeed) -> TimetableIndexes:
    """Expand the calendar, group trips by service and resolve stop orders.

    Raises FeedFormatError when the calendar cannot be parsed.
    """

    calendar = expand_service_calendar(
        feed.calendar_exceptions, known_service_ids=feed.service_patterns_by_id
    )
    trips = list(feed.trips_by_id.values())
    return TimetableIndexes(
        calendar=calendar,
        trips_by_service=index_trips_by_service(trips),
        stop_orders=resolve_stop_orders(trips),
    )


def stop_order_issues(stop_orders: dict[str, RouteStopOrder]) -> list[FeedIssue]:
    issues: list[FeedIssue] = []
    for route_id, route_order in stop_orders.items():
        for name, order in (
            ("outbound", route_order.outbound),
            ("inbound", route_order.inbound),
        ):
            if order is None or order.is_total:
                continue
            issues.append(
                FeedIssue(
                    kind=IssueKind.PARTIAL_STOP_ORDER,
                    message=(
                        f"Trips disagree on the {name} stop order; "
                        f"kept {len(order.stop_ids)} stops before the cycle"
                    ),
                    route_id=route_id,
                )
            )
    return issues


@dataclass(slots=True)
class TimetableBuildService:
    """Application service (use case) turning a GTFS feed into timetable documents.

    Fatal feed errors propagate before anything is committed. Per-trip and
    per-document problems are collected into the returned BuildSummary.
    """

    gtfs_repository: IGtfsRepository
    sink: ITimetableSink
    max_workers: int = 1

    def run(self) -> BuildSummary:
        feed = self.gtfs_repository.load_feed()

        started = time.perf_counter()
        indexes = build_indexes(feed)
        logger.info(
            "Built indexes in %.2fs (%d services, %d dates, %d routes ordered)",
            time.perf_counter() - started,
            len(indexes.calendar.dates_by_service),
            len(indexes.calendar.services_by_date),
            len(indexes.stop_orders),
        )

        issues = stop_order_issues(indexes.stop_orders)
        dates = iter_service_dates(indexes.calendar)

        try:
            results = self._process_dates(dates, feed=feed, indexes=indexes)
            self.sink.commit()
        except BaseException:
            self.sink.abort()
            raise

        documents = 0
        for result in results:
            documents += len(result.keys)
            issues.extend(result.issues)

        for issue in issues:
            logger.warning("%s", issue.describe())
        summary = BuildSummary(
            dates=len(dates), documents=documents, issues=tuple(issues)
        )
        logger.info(
            "Wrote %d timetable documents for %d dates (%d issues)",
            summary.documents,
            summary.dates,
            len(summary.issues),
        )
        return summary

    def _process_dates(
        self, dates: tuple[date, ...], *, feed: GtfsFeed, indexes: TimetableIndexes
    ) -> list[DateResult]:
        def work(service_date: date) -> DateResult:
            return self.process_date(service_date, feed=feed, indexes=indexes)

        if self.max_workers <= 1 or len(dates) <= 1:
            return [work(d) for d in dates]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(work, dates))

    def process_date(
        self, service_date: date, *, feed: GtfsFeed, indexes: TimetableIndexes
    ) -> DateResult:
        day = assemble_day(
            service_date,
            trips_by_id=feed.trips_by_id,
            calendar=indexes.calendar,
            trips_by_service=indexes.trips_by_service,
            stop_orders=indexes.stop_orders,
        )

        keys: list[str] = []
        issues = list(day.issues)
        for record in day.records:
            try:
                keys.append(self.sink.put_timetable(record))
            except Exception as exc:
                # One unwritable document must not cost the other routes.
                logger.exception(
                    "Failed to write timetable for %s on %s",
                    record.route_id,
                    service_date.isoformat(),
                )
                issues.append(
                    FeedIssue(
                        kind=IssueKind.SINK_FAILURE,
                        message=f"{type(exc).__name__}: {exc}",
                        service_date=service_date,
                        route_id=record.route_id,
                    )
                )

        return DateResult(
            service_date=service_date, keys=tuple(keys), issues=tuple(issues)
        )
