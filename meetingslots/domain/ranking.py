"""
Ranking of filtered slots with round-robin interleaving across days.

Returning the first N slots chronologically would cluster every suggestion
on the earliest common day. Instead the best slot of each day is offered
before any day's second-best one.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence

from .models import TimeSlot, minutes_since_midnight
from .preferences import SchedulingPreferences


def _date_sort_key(day: date):
    # Weekdays first, then chronological.
    return (day.weekday() >= 5, day)


def _slot_sort_key(slot: TimeSlot, midpoint: Optional[float]):
    if midpoint is None:
        return (slot.start,)
    distance = abs(minutes_since_midnight(slot.start) - midpoint)
    return (distance, slot.start)


def group_by_day(slots: Sequence[TimeSlot]) -> Dict[date, List[TimeSlot]]:
    """Bucket slots by the calendar date of their start."""
    buckets: Dict[date, List[TimeSlot]] = defaultdict(list)
    for slot in slots:
        buckets[slot.start.date()].append(slot)
    return dict(buckets)


def interleave(buckets: Sequence[Sequence[TimeSlot]]) -> List[TimeSlot]:
    """Take the n-th element of every bucket before the (n+1)-th of any."""
    result: List[TimeSlot] = []
    depth = max((len(bucket) for bucket in buckets), default=0)

    for index in range(depth):
        for bucket in buckets:
            if index < len(bucket):
                result.append(bucket[index])

    return result


def rank_slots(
    slots: Sequence[TimeSlot],
    preferences: SchedulingPreferences,
    max_results: Optional[int] = None,
) -> List[TimeSlot]:
    """
    Order slots by desirability, spread across days, and cap the result.

    Within a day, slots closest to the middle of the working day come first
    when both work-hour bounds are known; otherwise earlier is better.
    """
    midpoint = preferences.work_hours_midpoint()
    buckets = group_by_day(slots)

    ordered_days = sorted(buckets, key=_date_sort_key)
    ordered_buckets = [
        sorted(buckets[day], key=lambda slot: _slot_sort_key(slot, midpoint))
        for day in ordered_days
    ]

    ranked = interleave(ordered_buckets)

    if max_results is not None:
        ranked = ranked[:max_results]

    return ranked
