"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    CalendarAPIError,
    InvalidDurationError,
    InvalidGranularityError,
    InvalidPreferencesError,
    InvalidRequestError,
    InvalidWindowError,
    ProviderFetchError,
    SchedulingInputError,
    TimeslotError,
)
from .models import BusyInterval, SearchWindow, TimeRange, TimeSlot
from .preferences import SchedulingPreferences
from .slot_calculator import SlotCalculator

__all__ = [
    "BusyInterval",
    "CalendarAPIError",
    "InvalidDurationError",
    "InvalidGranularityError",
    "InvalidPreferencesError",
    "InvalidRequestError",
    "InvalidWindowError",
    "ProviderFetchError",
    "SchedulingInputError",
    "SchedulingPreferences",
    "SearchWindow",
    "SlotCalculator",
    "TimeRange",
    "TimeSlot",
    "TimeslotError",
]
