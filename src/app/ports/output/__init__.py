from .gtfs_repository import IGtfsRepository
from .timetable_sink import ITimetableSink

__all__ = [
    "IGtfsRepository",
    "ITimetableSink",
]
