from __future__ import annotations

from src.domain.exceptions import FeedFormatError


def format_offset(seconds: int) -> str:
    """Render seconds since service day midnight as "H:MM".

    Hours are not wrapped at 24 (a 25:10 arrival stays "25:10"); leftover
    seconds are truncated.
    """

    minutes, _ = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes:02d}"


def parse_offset(raw: str) -> int:
    """Parse "H:MM" or "H:MM:SS" (hours may exceed 24) into seconds."""

    parts = raw.strip().split(":")
    if len(parts) not in (2, 3):
        raise FeedFormatError(f"Invalid time value: {raw!r}")
    try:
        values = [int(p) for p in parts]
    except ValueError as exc:
        raise FeedFormatError(f"Invalid time value: {raw!r}") from exc
    if len(values) == 2:
        values.append(0)

    hh, mm, ss = values
    if hh < 0 or not (0 <= mm < 60) or not (0 <= ss < 60):
        raise FeedFormatError(f"Invalid time value: {raw!r}")
    return hh * 3600 + mm * 60 + ss
