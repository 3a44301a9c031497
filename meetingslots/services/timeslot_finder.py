"""
Application services for finding shared meeting slots.

The service fetches busy times for every participant through a provider
adapter and delegates the availability calculation to the domain-level
``SlotCalculator``. Fetches run concurrently but all of them must finish
before any slot is computed: a participant without data would make the
result meaningless for the group.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pendulum import DateTime

from ..domain.exceptions import ProviderFetchError
from ..domain.models import BusyInterval, SearchWindow, TimeSlot
from ..domain.preferences import SchedulingPreferences
from ..domain.slot_calculator import (
    SlotCalculator,
    validate_duration,
    validate_granularity,
    validate_max_results,
)
from .schemas import FindSlotsRequest, FindSlotsResponse

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONCURRENT_FETCHES = 5


class BusyPeriodProvider(Protocol):
    """Protocol describing the calendar source needed by the service."""

    async def get_busy_intervals(
        self,
        participant_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[BusyInterval]:
        """Return busy intervals from every calendar the participant owns."""


class TimeslotFinderService:
    """
    Orchestrates busy-time retrieval and slot calculation.

    Works against any ``BusyPeriodProvider``, such as the Google Calendar
    adapter or the mock provider.
    """

    def __init__(
        self,
        provider: BusyPeriodProvider,
        slot_calculator: Optional[SlotCalculator] = None,
        *,
        fetch_timeout_seconds: Optional[float] = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_concurrent_fetches: int = DEFAULT_MAX_CONCURRENT_FETCHES,
    ) -> None:
        if max_concurrent_fetches <= 0:
            raise ValueError("max_concurrent_fetches must be greater than zero")
        self._provider = provider
        self._slot_calculator = slot_calculator or SlotCalculator()
        self._fetch_timeout = fetch_timeout_seconds
        self._max_concurrent_fetches = max_concurrent_fetches

    async def find_best_slots(
        self,
        *,
        participants: Sequence[str],
        window: SearchWindow,
        duration_minutes: int,
        preferences: Optional[SchedulingPreferences] = None,
        max_results: Optional[int] = None,
        granularity_minutes: Optional[int] = None,
        timezone=None,
    ) -> List[TimeSlot]:
        """
        Retrieve busy data for everyone, then compute ranked common slots.

        Raises:
            SchedulingInputError: On invalid duration, granularity or cap,
                before any calendar is queried
            ProviderFetchError: If any participant's busy data is unavailable
        """
        validate_duration(duration_minutes)
        if max_results is not None:
            validate_max_results(max_results)

        calculator = self._slot_calculator
        if granularity_minutes is not None:
            calculator = SlotCalculator(
                granularity_minutes=validate_granularity(granularity_minutes),
                max_results=calculator.max_results,
            )

        participant_list = list(dict.fromkeys(participants))
        logger.info(
            "Searching %d-minute slots for %d participant(s) between %s and %s",
            duration_minutes,
            len(participant_list),
            window.start.to_iso8601_string(),
            window.end.to_iso8601_string(),
        )

        busy_times = await self.fetch_busy_times(
            participants=participant_list,
            window=window,
        )

        return calculator.find_available_slots(
            window=window,
            busy_times=busy_times,
            duration_minutes=duration_minutes,
            preferences=preferences,
            max_results=max_results,
            timezone=timezone,
        )

    async def fetch_busy_times(
        self,
        *,
        participants: Sequence[str],
        window: SearchWindow,
    ) -> Dict[str, List[BusyInterval]]:
        """
        Fetch busy times for all participants concurrently.

        The first failure cancels every fetch still in flight. Cancelling
        the caller does the same.
        """
        semaphore = asyncio.Semaphore(self._max_concurrent_fetches)
        tasks = [
            asyncio.ensure_future(self._fetch_one(participant, window, semaphore))
            for participant in participants
        ]

        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return dict(zip(participants, results))

    async def _fetch_one(
        self,
        participant: str,
        window: SearchWindow,
        semaphore: asyncio.Semaphore,
    ) -> List[BusyInterval]:
        async with semaphore:
            try:
                busy = await asyncio.wait_for(
                    self._provider.get_busy_intervals(participant, window.start, window.end),
                    timeout=self._fetch_timeout,
                )
            except asyncio.TimeoutError as exc:
                logger.error("Timed out fetching busy times for %s", participant)
                raise ProviderFetchError.from_exception(participant, exc, timed_out=True) from exc
            except ProviderFetchError:
                raise
            except Exception as exc:
                logger.error("Fetching busy times for %s failed: %s", participant, exc)
                raise ProviderFetchError.from_exception(participant, exc) from exc

        logger.debug("%s: %d busy interval(s)", participant, len(busy))
        return list(busy)

    async def handle_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Serve one entry-point request.

        Accepts the camelCase payload ``{participantIds, windowStart,
        windowEnd, durationMinutes, preferences, maxResults?}`` and returns
        ``{"slots": [{"start": ..., "end": ...}, ...]}``.

        Raises:
            InvalidRequestError: If the payload does not validate
            InvalidWindowError: If the window does not end after it starts
        """
        request = FindSlotsRequest.from_payload(payload)

        slots = await self.find_best_slots(
            participants=request.participant_ids,
            window=request.to_window(),
            duration_minutes=request.duration_minutes,
            preferences=request.to_preferences(),
            max_results=request.max_results,
            granularity_minutes=request.granularity_minutes,
            timezone=request.timezone,
        )

        return FindSlotsResponse.from_slots(slots).to_payload()
