from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import TimetableRecord


class ITimetableSink(ABC):
    """Port for persisting one timetable document per (date, route)."""

    @abstractmethod
    def put_timetable(self, record: TimetableRecord) -> str:
        """Store one record and return the key it was written under."""

    @abstractmethod
    def commit(self) -> None:
        """Make everything written during this run visible."""

    @abstractmethod
    def abort(self) -> None:
        """Discard anything written during this run."""
