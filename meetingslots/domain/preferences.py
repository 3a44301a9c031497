"""
Scheduling preferences and the candidate slot filter built on them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .exceptions import InvalidPreferencesError
from .models import TimeSlot, is_weekend, minutes_since_midnight

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_clock_minutes(value: str, *, allow_end_of_day: bool = False) -> int:
    """
    Convert an "HH:MM" wall-clock string to minutes since midnight.

    "24:00" is only accepted as an end bound.
    """
    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        raise InvalidPreferencesError(f"Expected a time in HH:MM format, got '{value}'")

    hours, minutes = int(match.group(1)), int(match.group(2))

    if allow_end_of_day and hours == 24 and minutes == 0:
        return 24 * 60

    if hours > 23 or minutes > 59:
        raise InvalidPreferencesError(f"Time out of range: '{value}'")

    return hours * 60 + minutes


@dataclass(frozen=True)
class SchedulingPreferences:
    """
    Optional constraints on which candidate slots are acceptable.

    Each field is independent; leaving it unset disables the rule.
    """
    work_hours_start: Optional[str] = None
    work_hours_end: Optional[str] = None
    avoid_weekends: bool = False
    buffer_minutes: int = 0

    def __post_init__(self):
        # Validate eagerly so bad input fails before any calendar is queried.
        if self.work_hours_start is not None:
            parse_clock_minutes(self.work_hours_start)
        if self.work_hours_end is not None:
            parse_clock_minutes(self.work_hours_end, allow_end_of_day=True)
        if self.buffer_minutes < 0:
            raise InvalidPreferencesError(
                f"buffer_minutes must not be negative, got {self.buffer_minutes}"
            )

    @property
    def work_start_minutes(self) -> Optional[int]:
        if self.work_hours_start is None:
            return None
        return parse_clock_minutes(self.work_hours_start)

    @property
    def work_end_minutes(self) -> Optional[int]:
        if self.work_hours_end is None:
            return None
        return parse_clock_minutes(self.work_hours_end, allow_end_of_day=True)

    @property
    def has_work_hours_rule(self) -> bool:
        """True when at least one work-hour bound is configured."""
        return self.work_hours_start is not None or self.work_hours_end is not None

    def work_hours_midpoint(self) -> Optional[float]:
        """Midpoint of the working day in minutes, if both bounds are set."""
        start = self.work_start_minutes
        end = self.work_end_minutes
        if start is None or end is None:
            return None
        return (start + end) / 2

    def is_unconstrained(self) -> bool:
        return not self.avoid_weekends and not self.has_work_hours_rule


def _within_work_hours(
    slot: TimeSlot,
    work_start: Optional[int],
    work_end: Optional[int],
) -> bool:
    # Ending on a later day, midnight included: never inside a working day.
    if slot.end.date() != slot.start.date():
        return False

    slot_start = minutes_since_midnight(slot.start)
    slot_end = minutes_since_midnight(slot.end)

    if work_start is not None and slot_start < work_start:
        return False

    if work_end is not None and slot_end > work_end:
        return False

    return True


def filter_by_preferences(
    slots: Sequence[TimeSlot],
    preferences: SchedulingPreferences,
) -> List[TimeSlot]:
    """
    Keep only slots that satisfy the configured preferences.

    Slots are judged on their own wall clock, so callers express them in the
    reference timezone first. Order is preserved.
    """
    if preferences.is_unconstrained():
        return list(slots)

    work_start = preferences.work_start_minutes
    work_end = preferences.work_end_minutes
    check_hours = preferences.has_work_hours_rule

    accepted: List[TimeSlot] = []

    for slot in slots:
        if preferences.avoid_weekends and is_weekend(slot.start):
            continue

        if check_hours and not _within_work_hours(slot, work_start, work_end):
            continue

        accepted.append(slot)

    return accepted
