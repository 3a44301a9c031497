"""
Mock busy period provider for running without calendar credentials.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.models import BusyInterval

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockBusyPeriodProvider:
    """
    Provider that serves busy times from static calendar data.

    Events are loaded from mock_calendar_data.json (or a given file or
    list) for testing purposes, without requiring OAuth or API access.
    """

    def __init__(
        self,
        config=None,
        data_file: Optional[Path] = None,
        events: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Initialize the mock provider.

        Args:
            config: Optional AppConfig for calendar_id mapping
            data_file: JSON file with a list of events, defaults to the packaged sample
            events: In-memory events, takes precedence over data_file
        """
        self.config = config
        if events is not None:
            self.calendar_events = list(events)
        else:
            self.calendar_events = self._load_calendar_data(data_file or DEFAULT_DATA_FILE)

    @staticmethod
    def _load_calendar_data(data_file: Path) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            raise FileNotFoundError(f"Mock calendar data not found: {data_file}")

        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise ValueError(f"Mock calendar data must be a list of events: {data_file}")

        return data

    def _get_calendar_id(self, participant_id: str) -> str:
        """Map participant to calendar_id using config."""
        if self.config:
            colleague = self.config.find_colleague_by_email(participant_id)
            if colleague and colleague.calendar_id:
                return colleague.calendar_id

        # Fallback: use participant id as calendar_id
        return participant_id

    async def get_busy_intervals(
        self,
        participant_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[BusyInterval]:
        """Return the participant's events that overlap the window."""
        calendar_id = self._get_calendar_id(participant_id)
        busy: List[BusyInterval] = []

        for event in self.calendar_events:
            if event.get("calendarId") != calendar_id:
                continue

            try:
                event_start = pendulum.parse(event["start"])
                event_end = pendulum.parse(event["end"])
            except (KeyError, ValueError):
                # Skip invalid events
                continue

            if event_start < window_end and event_end > window_start:
                busy.append(BusyInterval(start=event_start, end=event_end))

        return busy
