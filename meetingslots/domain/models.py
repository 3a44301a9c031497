"""
Domain models for time ranges, busy intervals and meeting slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import pendulum
from pendulum import DateTime

from .exceptions import InvalidWindowError


WEEKDAY_NAMES = {
    0: "Montag",
    1: "Dienstag",
    2: "Mittwoch",
    3: "Donnerstag",
    4: "Freitag",
    5: "Samstag",
    6: "Sonntag",
}


def parse_instant(value: str) -> DateTime:
    """
    Parse an ISO-8601 string into a timezone-aware DateTime.

    Strings without an offset are read as UTC.

    Raises:
        ValueError: If the string is not a full datetime
    """
    parsed = pendulum.parse(value, exact=True)

    if not isinstance(parsed, DateTime):
        raise ValueError(f"Not a datetime: {value!r}")

    return parsed


def minutes_since_midnight(dt: DateTime) -> int:
    """Wall-clock minutes of the day, ignoring seconds."""
    return dt.hour * 60 + dt.minute


def is_weekend(dt: DateTime) -> bool:
    """Saturday or Sunday in the datetime's own timezone."""
    return dt.weekday() >= 5


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange | BusyInterval") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def in_timezone(self, tz) -> "TimeRange":
        """Return the same range expressed in another timezone."""
        return type(self)(start=self.start.in_timezone(tz), end=self.end.in_timezone(tz))

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class SearchWindow(TimeRange):
    """The global bound of a search. Violating the order invariant is a caller error."""

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidWindowError(
                f"Window end {self.end.to_iso8601_string()} must be after "
                f"window start {self.start.to_iso8601_string()}"
            )

    @property
    def timezone(self):
        """Timezone the window start is expressed in."""
        return self.start.tzinfo


@dataclass(frozen=True)
class BusyInterval:
    """
    A busy block as reported by a calendar provider.

    Unlike TimeRange, no ordering is enforced here: upstream data can be
    inverted, and such entries are discarded by the engine instead of failing
    at construction.
    """
    start: DateTime
    end: DateTime

    def is_valid(self) -> bool:
        return self.end > self.start

    def __str__(self) -> str:
        return f"{self.start.to_iso8601_string()} - {self.end.to_iso8601_string()}"


@dataclass(frozen=True)
class TimeSlot(TimeRange):
    """
    Represents a found available meeting slot.
    """

    def to_dict(self) -> Dict[str, str]:
        """Serialize as ISO-8601 strings with offset."""
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Wochentag, DD.MM.YYYY | HH:MM – HH:MM Uhr
        """
        weekday = WEEKDAY_NAMES[self.start.weekday()]
        date_str = self.start.format("DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')} Uhr"
        duration = self.duration_minutes()

        return f"{weekday}, {date_str} | {time_str} ({duration} Min.)"
