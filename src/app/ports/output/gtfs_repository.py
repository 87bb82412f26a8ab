from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models.gtfs import GtfsFeed


class IGtfsRepository(ABC):
    """Port for loading a static GTFS feed into memory."""

    @abstractmethod
    def load_feed(self) -> GtfsFeed:
        """Return the parsed feed.

        Raises FeedIntegrityError when required tables are missing and
        FeedFormatError when their content cannot be parsed.
        """
