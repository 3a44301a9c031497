"""
Core business logic for calculating available meeting slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from pendulum import DateTime

from .exceptions import (
    InvalidDurationError,
    InvalidGranularityError,
    SchedulingInputError,
)
from .intervals import intersect_all, invert_busy_to_free
from .models import BusyInterval, SearchWindow, TimeRange, TimeSlot, minutes_since_midnight
from .preferences import SchedulingPreferences, filter_by_preferences
from .ranking import rank_slots

logger = logging.getLogger(__name__)

DEFAULT_GRANULARITY_MINUTES = 30
DEFAULT_MAX_RESULTS = 200


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_duration(duration_minutes) -> int:
    if not _is_positive_int(duration_minutes):
        raise InvalidDurationError(
            f"Duration must be a positive number of minutes, got {duration_minutes!r}"
        )
    return duration_minutes


def validate_granularity(granularity_minutes) -> int:
    if not _is_positive_int(granularity_minutes):
        raise InvalidGranularityError(
            f"Granularity must be a positive number of minutes, got {granularity_minutes!r}"
        )
    return granularity_minutes


def validate_max_results(max_results) -> int:
    if isinstance(max_results, bool) or not isinstance(max_results, int) or max_results < 0:
        raise SchedulingInputError(
            f"max_results must be a non-negative integer, got {max_results!r}"
        )
    return max_results


def round_up_to_granularity(moment: DateTime, granularity_minutes: int) -> DateTime:
    """
    Round up to the next wall-clock multiple of the granularity.

    Seconds are truncated first; the result is never earlier than ``moment``.

    Example (30 min): 09:10 -> 09:30, 09:30 -> 09:30, 09:30:15 -> 10:00
    """
    candidate = moment.set(second=0, microsecond=0)

    remainder = minutes_since_midnight(candidate) % granularity_minutes
    if remainder:
        candidate = candidate.add(minutes=granularity_minutes - remainder)

    if candidate < moment:
        candidate = candidate.add(minutes=granularity_minutes)

    return candidate


class SlotCalculator:
    """
    Calculates ranked meeting slots from every participant's busy times.

    Algorithm:
    1. For each participant, invert their busy times to free times
    2. Calculate intersection of all participants' free times
    3. Slice the common free time into fixed-length candidates
    4. Drop candidates violating the scheduling preferences
    5. Rank per day, interleave across days and cap the list
    """

    def __init__(
        self,
        granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
        max_results: int = DEFAULT_MAX_RESULTS,
    ):
        self.granularity_minutes = validate_granularity(granularity_minutes)
        self.max_results = validate_max_results(max_results)

    def find_available_slots(
        self,
        window: SearchWindow,
        busy_times: Dict[str, Sequence[BusyInterval]],
        duration_minutes: int,
        preferences: Optional[SchedulingPreferences] = None,
        max_results: Optional[int] = None,
        timezone=None,
    ) -> List[TimeSlot]:
        """
        Find the best meeting slots for all participants.

        Args:
            window: Bounds of the search
            busy_times: Dict mapping participant id to their busy intervals
            duration_minutes: Exact length of every returned slot
            preferences: Optional work-hour / weekend / buffer constraints
            max_results: Cap on the returned list, defaults to the calculator's
            timezone: Zone for all wall-clock decisions, defaults to the
                window start's zone

        Returns:
            Ranked list of TimeSlot objects, empty when no common time exists
        """
        validate_duration(duration_minutes)
        preferences = preferences or SchedulingPreferences()
        cap = self.max_results if max_results is None else validate_max_results(max_results)
        tz = timezone if timezone is not None else window.timezone

        if not busy_times:
            return []

        # Step 1: For each participant, calculate their free times
        free_time_lists: List[List[TimeRange]] = []

        for participant, busy_ranges in busy_times.items():
            free_times = invert_busy_to_free(
                busy_ranges,
                window,
                buffer_minutes=preferences.buffer_minutes,
            )
            logger.debug("%s: %d free period(s)", participant, len(free_times))
            free_time_lists.append(free_times)

        # Step 2: Intersect across participants
        common_free_times = intersect_all(free_time_lists)
        logger.debug("Common free periods: %d", len(common_free_times))

        # Step 3: Candidate slots in the reference timezone
        candidates = self.generate_candidate_slots(
            [period.in_timezone(tz) for period in common_free_times],
            duration_minutes,
        )
        logger.debug("Candidate slots: %d", len(candidates))

        # Step 4: Preferences
        filtered = filter_by_preferences(candidates, preferences)
        logger.debug("After preference filter: %d", len(filtered))

        # Step 5: Rank and cap
        ranked = rank_slots(filtered, preferences, max_results=cap)
        logger.debug("Returning %d slot(s)", len(ranked))

        return ranked

    def generate_candidate_slots(
        self,
        free_periods: Sequence[TimeRange],
        duration_minutes: int,
    ) -> List[TimeSlot]:
        """
        Slice free periods into slots of exactly ``duration_minutes``.

        Starts are aligned to the granularity and advance by it, so
        consecutive candidates overlap whenever the step is shorter than
        the duration.

        Example (60 min, 30 min step):
        Free: 09:10 - 11:00
        Result: [09:30-10:30, 10:00-11:00]
        """
        validate_duration(duration_minutes)
        slots: List[TimeSlot] = []

        for period in free_periods:
            current_start = round_up_to_granularity(period.start, self.granularity_minutes)

            while current_start.add(minutes=duration_minutes) <= period.end:
                slots.append(
                    TimeSlot(
                        start=current_start,
                        end=current_start.add(minutes=duration_minutes),
                    )
                )
                current_start = current_start.add(minutes=self.granularity_minutes)

        return slots
