"""
Interval algebra on sorted time ranges: busy-to-free inversion and the
N-way intersection of free time across participants.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .models import BusyInterval, TimeRange

logger = logging.getLogger(__name__)


def discard_malformed(busy_intervals: Iterable[BusyInterval]) -> List[BusyInterval]:
    """Drop intervals whose end is not after their start."""
    valid: List[BusyInterval] = []

    for busy in busy_intervals:
        if busy.is_valid():
            valid.append(busy)
        else:
            logger.warning("Discarding malformed busy interval %s", busy)

    return valid


def invert_busy_to_free(
    busy_intervals: Iterable[BusyInterval],
    window: TimeRange,
    buffer_minutes: int = 0,
) -> List[TimeRange]:
    """
    Convert one participant's busy times to free times within the window.

    Busy intervals may come unsorted and overlapping (several calendars per
    participant); the cursor only ever moves forward, so overlaps are
    absorbed without creating spurious gaps.

    Example:
    Window: 09:00 - 17:00
    Busy: [14:00-15:00, 10:00-11:00, 10:30-11:30]
    Result: [09:00-10:00, 11:30-14:00, 15:00-17:00]
    """
    valid_busy = discard_malformed(busy_intervals)

    if buffer_minutes:
        valid_busy = [
            BusyInterval(
                start=busy.start.subtract(minutes=buffer_minutes),
                end=busy.end.add(minutes=buffer_minutes),
            )
            for busy in valid_busy
        ]

    free_ranges: List[TimeRange] = []
    cursor = window.start

    for busy in sorted(valid_busy, key=lambda b: b.start):
        if cursor >= window.end:
            break

        gap_end = min(busy.start, window.end)
        if cursor < gap_end:
            free_ranges.append(TimeRange(start=cursor, end=gap_end))

        cursor = max(cursor, busy.end)

    if cursor < window.end:
        free_ranges.append(TimeRange(start=cursor, end=window.end))

    return free_ranges


def intersect_two_lists(
    list1: Sequence[TimeRange],
    list2: Sequence[TimeRange],
) -> List[TimeRange]:
    """
    Intersect two sorted, non-overlapping lists of time ranges.

    Walks both lists once; whichever range ends first cannot overlap
    anything further in the other list and is skipped.
    """
    intersections: List[TimeRange] = []
    i = j = 0

    while i < len(list1) and j < len(list2):
        range1 = list1[i]
        range2 = list2[j]

        overlap = range1.intersect(range2)
        if overlap is not None:
            intersections.append(overlap)

        if range1.end < range2.end:
            i += 1
        elif range2.end < range1.end:
            j += 1
        else:
            i += 1
            j += 1

    return intersections


def intersect_all(free_time_lists: Sequence[Sequence[TimeRange]]) -> List[TimeRange]:
    """
    Calculate the intersection of free times across all participants.

    Only times when ALL participants are free will be returned.
    """
    if not free_time_lists:
        return []

    result = list(free_time_lists[0])

    for free_times in free_time_lists[1:]:
        # Early exit if no common time
        if not result:
            return []

        result = intersect_two_lists(result, free_times)

    return result
