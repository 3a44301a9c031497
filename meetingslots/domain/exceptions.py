"""
Domain-specific exception hierarchy for the meeting slot finder.
"""

from __future__ import annotations

from typing import Optional


class TimeslotError(Exception):
    """Base class for all application-level errors."""


class SchedulingInputError(TimeslotError, ValueError):
    """Raised when a search is requested with invalid parameters."""


class InvalidWindowError(SchedulingInputError):
    """Raised when the search window does not end after it starts."""


class InvalidDurationError(SchedulingInputError):
    """Raised when the requested meeting duration is not a positive integer."""


class InvalidGranularityError(SchedulingInputError):
    """Raised when the slot step granularity is not a positive integer."""


class InvalidPreferencesError(SchedulingInputError):
    """Raised when scheduling preferences cannot be interpreted."""


class InvalidRequestError(SchedulingInputError):
    """Raised when an entry-point payload fails validation."""


class CalendarAPIError(TimeslotError):
    """Raised when calendar data cannot be fetched or parsed."""


class ProviderFetchError(TimeslotError):
    """
    Raised when busy data for a participant could not be obtained.

    A single failing participant aborts the whole search, since the
    remaining participants' common free time is not the group's.
    """

    def __init__(
        self,
        participant_id: str,
        reason: str,
        *,
        timed_out: bool = False,
    ) -> None:
        super().__init__(f"Could not fetch busy times for '{participant_id}': {reason}")
        self.participant_id = participant_id
        self.reason = reason
        self.timed_out = timed_out

    @classmethod
    def from_exception(
        cls,
        participant_id: str,
        exc: Optional[BaseException],
        *,
        timed_out: bool = False,
    ) -> "ProviderFetchError":
        if timed_out:
            reason = "request timed out"
        else:
            reason = str(exc) or type(exc).__name__
        return cls(participant_id, reason, timed_out=timed_out)
