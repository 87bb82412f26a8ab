from .local_gtfs_repository import LocalGtfsRepository
from .local_timetable_sink import LocalTimetableSink
from .s3_timetable_sink import S3TimetableSink

__all__ = [
    "LocalGtfsRepository",
    "LocalTimetableSink",
    "S3TimetableSink",
]
