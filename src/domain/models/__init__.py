from .gtfs import (
    CalendarException,
    Direction,
    ExceptionType,
    GtfsFeed,
    GtfsRoute,
    GtfsTrip,
    ServicePattern,
    StopTime,
)
from .issues import FeedIssue, IssueKind
from .stop import Stop
from .timetable import (
    RouteStopOrder,
    ServiceCalendarIndex,
    StopOrder,
    TimetableRecord,
    TripTimetable,
)

__all__ = [
    "CalendarException",
    "Direction",
    "ExceptionType",
    "FeedIssue",
    "GtfsFeed",
    "GtfsRoute",
    "GtfsTrip",
    "IssueKind",
    "RouteStopOrder",
    "ServiceCalendarIndex",
    "ServicePattern",
    "Stop",
    "StopOrder",
    "StopTime",
    "TimetableRecord",
    "TripTimetable",
]
