"""
Tests for scheduling preferences and the preference filter.
"""

import pendulum
import pytest

from meetingslots.domain.exceptions import InvalidPreferencesError
from meetingslots.domain.models import SearchWindow, TimeSlot
from meetingslots.domain.preferences import (
    SchedulingPreferences,
    filter_by_preferences,
    parse_clock_minutes,
)
from meetingslots.domain.slot_calculator import SlotCalculator


def _slot(start: str, end: str) -> TimeSlot:
    return TimeSlot(
        start=pendulum.parse(start, tz="UTC"),
        end=pendulum.parse(end, tz="UTC"),
    )


class TestParseClockMinutes:
    """Tests for HH:MM parsing."""

    def test_valid_times(self):
        assert parse_clock_minutes("00:00") == 0
        assert parse_clock_minutes("09:30") == 570
        assert parse_clock_minutes("9:30") == 570
        assert parse_clock_minutes("23:59") == 1439

    def test_end_of_day_only_allowed_for_end_bound(self):
        assert parse_clock_minutes("24:00", allow_end_of_day=True) == 1440

        with pytest.raises(InvalidPreferencesError):
            parse_clock_minutes("24:00")

    @pytest.mark.parametrize("value", ["9", "25:00", "12:60", "noon", "12:3"])
    def test_invalid_times(self, value):
        with pytest.raises(InvalidPreferencesError):
            parse_clock_minutes(value)


class TestSchedulingPreferences:
    """Tests for SchedulingPreferences."""

    def test_defaults_are_unconstrained(self):
        prefs = SchedulingPreferences()

        assert prefs.is_unconstrained()
        assert not prefs.has_work_hours_rule
        assert prefs.work_hours_midpoint() is None

    def test_invalid_work_hours_rejected_at_construction(self):
        with pytest.raises(InvalidPreferencesError):
            SchedulingPreferences(work_hours_start="nine")

    def test_negative_buffer_rejected(self):
        with pytest.raises(InvalidPreferencesError):
            SchedulingPreferences(buffer_minutes=-5)

    def test_midpoint(self):
        prefs = SchedulingPreferences(work_hours_start="09:00", work_hours_end="17:30")

        assert prefs.work_hours_midpoint() == 795  # 13:15

    def test_single_bound_activates_rule_without_midpoint(self):
        prefs = SchedulingPreferences(work_hours_end="17:00")

        assert prefs.has_work_hours_rule
        assert prefs.work_hours_midpoint() is None


class TestFilterByPreferences:
    """Tests for filter_by_preferences."""

    def test_no_preferences_keeps_everything(self):
        slots = [
            _slot("2024-11-23 23:30", "2024-11-24 00:30"),  # Saturday, crosses midnight
            _slot("2024-11-25 03:00", "2024-11-25 04:00"),
        ]

        assert filter_by_preferences(slots, SchedulingPreferences()) == slots

    def test_avoid_weekends(self):
        saturday = _slot("2024-11-23 10:00", "2024-11-23 11:00")
        sunday = _slot("2024-11-24 10:00", "2024-11-24 11:00")
        monday = _slot("2024-11-25 10:00", "2024-11-25 11:00")

        result = filter_by_preferences(
            [saturday, sunday, monday],
            SchedulingPreferences(avoid_weekends=True),
        )

        assert result == [monday]

    def test_weekend_judged_by_slot_start(self):
        friday_night = _slot("2024-11-22 23:30", "2024-11-23 00:30")

        result = filter_by_preferences(
            [friday_night],
            SchedulingPreferences(avoid_weekends=True),
        )

        assert result == [friday_night]

    def test_work_hours_bounds_are_inclusive(self):
        prefs = SchedulingPreferences(work_hours_start="09:00", work_hours_end="17:00")
        slots = [
            _slot("2024-11-25 08:30", "2024-11-25 09:30"),
            _slot("2024-11-25 09:00", "2024-11-25 10:00"),
            _slot("2024-11-25 16:00", "2024-11-25 17:00"),
            _slot("2024-11-25 16:30", "2024-11-25 17:30"),
        ]

        result = filter_by_preferences(slots, prefs)

        assert result == [slots[1], slots[2]]

    def test_midnight_crossing_rejected_when_work_hours_active(self):
        prefs = SchedulingPreferences(work_hours_start="00:00", work_hours_end="24:00")
        late = _slot("2024-11-25 23:30", "2024-11-26 00:30")

        assert filter_by_preferences([late], prefs) == []

    @pytest.mark.parametrize(
        "start, end",
        [
            ("2024-11-25 13:00", "2024-11-26 13:00"),  # 1440 minutes
            ("2024-11-25 13:00", "2024-11-26 14:00"),  # 1500 minutes
            ("2024-11-25 09:00", "2024-11-27 09:00"),
        ],
    )
    def test_multi_day_slots_rejected_when_work_hours_active(self, start, end):
        prefs = SchedulingPreferences(work_hours_start="09:00", work_hours_end="17:00")

        assert filter_by_preferences([_slot(start, end)], prefs) == []

    @pytest.mark.parametrize("duration", [1440, 1500])
    def test_calculator_offers_no_multi_day_slot_within_work_hours(self, duration):
        window = SearchWindow(
            start=pendulum.parse("2024-11-25 00:00", tz="UTC"),
            end=pendulum.parse("2024-11-28 00:00", tz="UTC"),
        )

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times={"a@example.com": []},
            duration_minutes=duration,
            preferences=SchedulingPreferences(work_hours_start="09:00", work_hours_end="17:00"),
        )

        assert slots == []

    def test_midnight_crossing_kept_without_work_hours(self):
        prefs = SchedulingPreferences(avoid_weekends=True)
        late = _slot("2024-11-25 23:30", "2024-11-26 00:30")

        assert filter_by_preferences([late], prefs) == [late]

    def test_only_start_bound(self):
        prefs = SchedulingPreferences(work_hours_start="10:00")
        slots = [
            _slot("2024-11-25 09:30", "2024-11-25 10:30"),
            _slot("2024-11-25 20:00", "2024-11-25 21:00"),
        ]

        assert filter_by_preferences(slots, prefs) == [slots[1]]

    def test_only_end_bound(self):
        prefs = SchedulingPreferences(work_hours_end="12:00")
        slots = [
            _slot("2024-11-25 06:00", "2024-11-25 07:00"),
            _slot("2024-11-25 11:30", "2024-11-25 12:30"),
        ]

        assert filter_by_preferences(slots, prefs) == [slots[0]]

    def test_order_is_preserved(self):
        prefs = SchedulingPreferences(work_hours_start="09:00", work_hours_end="17:00")
        slots = [
            _slot("2024-11-26 15:00", "2024-11-26 16:00"),
            _slot("2024-11-25 09:00", "2024-11-25 10:00"),
            _slot("2024-11-25 12:00", "2024-11-25 13:00"),
        ]

        assert filter_by_preferences(slots, prefs) == slots
