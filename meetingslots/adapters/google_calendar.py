"""
Google Calendar API client for fetching busy times.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..config import AppConfig
from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://www.googleapis.com/calendar/v3"

# Roles on calendars shared *with* the user; their events are not the user's.
SHARED_ACCESS_ROLES = {"reader", "freeBusyReader", "writer"}


class GoogleCalendarClient:
    """
    Client for the Google Calendar REST API, authenticated as one user.

    Uses /users/me/calendarList to find the user's own calendars and
    /freeBusy to fetch their busy blocks.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 30.0,
    ):
        """
        Initialize the Google Calendar client.

        Args:
            access_token: Valid OAuth access token with calendar read scope
            base_url: API root, overridable for testing
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    def get_calendar_list(self) -> List[Dict[str, Any]]:
        """
        Return all calendar list entries, following pagination.

        Raises:
            CalendarAPIError: If the API call fails
        """
        url = f"{self.base_url}/users/me/calendarList"
        items: List[Dict[str, Any]] = []
        params: Dict[str, str] = {}

        while True:
            try:
                response = requests.get(
                    url,
                    headers=self.headers,
                    params=params,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
            except requests.exceptions.RequestException as e:
                raise CalendarAPIError(f"Failed to fetch calendar list from Google: {e}") from e

            items.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                return items
            params = {"pageToken": page_token}

    def get_owned_calendar_ids(self) -> List[str]:
        """IDs of the user's primary calendar and every calendar they own."""
        calendar_ids: List[str] = []

        for entry in self.get_calendar_list():
            calendar_id = entry.get("id")
            if not calendar_id:
                continue

            if entry.get("primary") is True or entry.get("accessRole") == "owner":
                calendar_ids.append(calendar_id)
            elif entry.get("accessRole") in SHARED_ACCESS_ROLES:
                logger.debug("Skipping shared calendar %s", calendar_id)

        return calendar_ids

    def get_free_busy(
        self,
        calendar_ids: List[str],
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[BusyInterval]:
        """
        Get busy blocks across the given calendars.

        Returns:
            Busy intervals from all calendars, unsorted and possibly overlapping

        Raises:
            CalendarAPIError: If the API call fails or a calendar reports errors
        """
        if not calendar_ids:
            return []

        url = f"{self.base_url}/freeBusy"
        payload = {
            "timeMin": start_time.to_iso8601_string(),
            "timeMax": end_time.to_iso8601_string(),
            "items": [{"id": calendar_id} for calendar_id in calendar_ids],
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch free/busy from Google: {e}") from e

        return self._parse_free_busy_response(data)

    def _parse_free_busy_response(self, response_data: Dict[str, Any]) -> List[BusyInterval]:
        """
        Parse the freeBusy API response into our domain model.

        Response format:
        {
            "calendars": {
                "primary@example.com": {
                    "busy": [{"start": "...", "end": "..."}],
                    "errors": []
                }
            }
        }
        """
        busy_intervals: List[BusyInterval] = []

        for calendar_id, calendar_data in response_data.get("calendars", {}).items():
            errors = calendar_data.get("errors") or []
            if errors:
                reasons = ", ".join(error.get("reason", "unknown") for error in errors)
                raise CalendarAPIError(f"Calendar {calendar_id} reported errors: {reasons}")

            for period in calendar_data.get("busy", []):
                try:
                    busy_intervals.append(
                        BusyInterval(
                            start=self._parse_datetime(period["start"]),
                            end=self._parse_datetime(period["end"]),
                        )
                    )
                except (KeyError, ValueError) as e:
                    logger.warning("Could not parse busy period in %s: %s", calendar_id, e)
                    continue

        return busy_intervals

    @staticmethod
    def _parse_datetime(datetime_str: str) -> DateTime:
        dt = pendulum.parse(datetime_str)

        if isinstance(dt, DateTime):
            return dt

        raise ValueError(f"Could not parse datetime: {datetime_str}")


class GoogleBusyPeriodProvider:
    """
    Busy period provider backed by each participant's Google Calendar.

    Requests are blocking, so each fetch runs in a worker thread.
    """

    def __init__(
        self,
        token_lookup: Callable[[str], str],
        base_url: str = DEFAULT_API_BASE_URL,
        request_timeout: float = 30.0,
    ):
        """
        Args:
            token_lookup: Returns an access token for a participant id
            base_url: API root
            request_timeout: Per-HTTP-request timeout in seconds
        """
        self._token_lookup = token_lookup
        self._base_url = base_url
        self._request_timeout = request_timeout

    async def get_busy_intervals(
        self,
        participant_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[BusyInterval]:
        return await asyncio.to_thread(
            self._fetch_busy_intervals,
            participant_id,
            window_start,
            window_end,
        )

    def _fetch_busy_intervals(
        self,
        participant_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[BusyInterval]:
        client = GoogleCalendarClient(
            access_token=self._token_lookup(participant_id),
            base_url=self._base_url,
            timeout=self._request_timeout,
        )

        calendar_ids = client.get_owned_calendar_ids()
        logger.debug("%s owns %d calendar(s)", participant_id, len(calendar_ids))

        return client.get_free_busy(calendar_ids, window_start, window_end)


def token_lookup_from_config(config: AppConfig) -> Callable[[str], str]:
    """
    Build a token lookup reading each colleague's token from the environment.

    Raises (when called):
        CalendarAPIError: If no token is configured or set for the participant
    """

    def lookup(participant_id: str) -> str:
        colleague = config.find_colleague_by_email(participant_id)
        if colleague is None or not colleague.token_env:
            raise CalendarAPIError(f"No access token configured for {participant_id}")

        token = os.environ.get(colleague.token_env)
        if not token:
            raise CalendarAPIError(
                f"Environment variable {colleague.token_env} is not set for {participant_id}"
            )
        return token

    return lookup
