class TimetableError(Exception):
    """Base exception for timetable build failures."""


class FeedFormatError(TimetableError):
    """Raised when feed data is malformed in a way that invalidates the whole run."""


class FeedIntegrityError(TimetableError):
    """Raised when the feed cannot be read at all (missing required files)."""
