from .timetable import FeedFormatError, FeedIntegrityError, TimetableError

__all__ = [
    "FeedFormatError",
    "FeedIntegrityError",
    "TimetableError",
]
