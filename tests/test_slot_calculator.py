"""
Tests for slot calculator.
"""

import pendulum
import pytest

from meetingslots.domain.exceptions import InvalidDurationError, InvalidGranularityError
from meetingslots.domain.models import BusyInterval, SearchWindow, TimeRange
from meetingslots.domain.preferences import SchedulingPreferences
from meetingslots.domain.slot_calculator import SlotCalculator, round_up_to_granularity


def _utc(value: str):
    return pendulum.parse(value, tz="UTC")


def _busy(start: str, end: str) -> BusyInterval:
    return BusyInterval(start=_utc(start), end=_utc(end))


def _full_day(day: str = "2024-11-25") -> SearchWindow:
    start = _utc(f"{day} 00:00")
    return SearchWindow(start=start, end=start.add(days=1))


class TestRoundUpToGranularity:
    """Tests for start alignment."""

    @pytest.mark.parametrize(
        "moment, expected",
        [
            ("2024-11-25 09:00", "2024-11-25 09:00"),
            ("2024-11-25 09:10", "2024-11-25 09:30"),
            ("2024-11-25 09:30", "2024-11-25 09:30"),
            ("2024-11-25 09:31", "2024-11-25 10:00"),
            ("2024-11-25 09:30:15", "2024-11-25 10:00"),
            ("2024-11-25 23:45", "2024-11-26 00:00"),
        ],
    )
    def test_thirty_minutes(self, moment, expected):
        assert round_up_to_granularity(_utc(moment), 30) == _utc(expected)

    def test_other_granularity(self):
        assert round_up_to_granularity(_utc("2024-11-25 09:07"), 15) == _utc("2024-11-25 09:15")
        assert round_up_to_granularity(_utc("2024-11-25 09:07"), 45) == _utc("2024-11-25 09:45")

    def test_uses_wall_clock_of_timezone(self):
        # 09:10 in Kolkata is 03:40 UTC; alignment follows the local clock.
        moment = pendulum.parse("2024-11-25 09:10", tz="Asia/Kolkata")

        rounded = round_up_to_granularity(moment, 30)

        assert (rounded.hour, rounded.minute) == (9, 30)


class TestGenerateCandidateSlots:
    """Tests for SlotCalculator.generate_candidate_slots."""

    def test_sliding_window_overlaps(self):
        calculator = SlotCalculator(granularity_minutes=30)
        free = [TimeRange(start=_utc("2024-11-25 09:10"), end=_utc("2024-11-25 11:00"))]

        slots = calculator.generate_candidate_slots(free, 60)

        assert [(s.start.format("HH:mm"), s.end.format("HH:mm")) for s in slots] == [
            ("09:30", "10:30"),
            ("10:00", "11:00"),
        ]

    def test_period_shorter_than_duration_after_rounding(self):
        calculator = SlotCalculator()
        free = [TimeRange(start=_utc("2024-11-25 09:10"), end=_utc("2024-11-25 10:10"))]

        assert calculator.generate_candidate_slots(free, 60) == []

    def test_exact_fit_is_kept(self):
        """An 8-hour free window yields exactly one 480-minute slot."""
        calculator = SlotCalculator()
        free = [TimeRange(start=_utc("2024-11-25 09:00"), end=_utc("2024-11-25 17:00"))]

        slots = calculator.generate_candidate_slots(free, 480)

        assert len(slots) == 1
        assert slots[0].start == free[0].start
        assert slots[0].end == free[0].end

    def test_slots_stay_inside_free_period(self):
        calculator = SlotCalculator(granularity_minutes=15)
        free = [TimeRange(start=_utc("2024-11-25 09:05:30"), end=_utc("2024-11-25 12:20"))]

        slots = calculator.generate_candidate_slots(free, 45)

        assert slots
        for slot in slots:
            assert slot.start >= free[0].start
            assert slot.end <= free[0].end
            assert slot.duration_minutes() == 45

    @pytest.mark.parametrize("duration", [0, -30, 1.5, True])
    def test_invalid_duration(self, duration):
        calculator = SlotCalculator()
        free = [TimeRange(start=_utc("2024-11-25 09:00"), end=_utc("2024-11-25 17:00"))]

        with pytest.raises(InvalidDurationError):
            calculator.generate_candidate_slots(free, duration)

    @pytest.mark.parametrize("granularity", [0, -15])
    def test_invalid_granularity(self, granularity):
        with pytest.raises(InvalidGranularityError):
            SlotCalculator(granularity_minutes=granularity)


class TestFindAvailableSlots:
    """Tests for the full pure pipeline."""

    def test_two_participants_busy_at_different_times(self):
        """Busy 09-10 and 14-15; every other hour of the day is offered on a 30-minute grid."""
        busy_times = {
            "user1@example.com": [_busy("2024-11-25 09:00", "2024-11-25 10:00")],
            "user2@example.com": [_busy("2024-11-25 14:00", "2024-11-25 15:00")],
        }

        slots = SlotCalculator().find_available_slots(
            window=_full_day(),
            busy_times=busy_times,
            duration_minutes=60,
        )

        # 00:00-09:00 -> 17, 10:00-14:00 -> 7, 15:00-24:00 -> 17
        assert len(slots) == 41
        assert slots[0].start == _utc("2024-11-25 00:00")
        assert slots[-1].start == _utc("2024-11-25 23:00")
        assert all(slot.start.minute in (0, 30) for slot in slots)
        assert all(slot.duration_minutes() == 60 for slot in slots)
        for busy_list in busy_times.values():
            for busy in busy_list:
                assert not any(slot.overlaps(busy) for slot in slots)

    def test_busy_times_cover_window(self):
        busy_times = {
            "user1@example.com": [_busy("2024-11-25 00:00", "2024-11-25 13:00")],
            "user2@example.com": [_busy("2024-11-25 12:00", "2024-11-26 00:00")],
        }

        slots = SlotCalculator().find_available_slots(
            window=_full_day(),
            busy_times=busy_times,
            duration_minutes=30,
        )

        assert slots == []

    def test_weekend_and_work_hours_preferences(self):
        """Saturday to Monday, both free: only Monday inside 09:00-17:00 remains."""
        window = SearchWindow(start=_utc("2024-11-23 00:00"), end=_utc("2024-11-26 00:00"))
        prefs = SchedulingPreferences(
            work_hours_start="09:00",
            work_hours_end="17:00",
            avoid_weekends=True,
        )

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times={"a@example.com": [], "b@example.com": []},
            duration_minutes=60,
            preferences=prefs,
        )

        assert len(slots) == 15  # 09:00 ... 16:00
        assert all(slot.start.weekday() == 0 for slot in slots)
        assert all(slot.start >= _utc("2024-11-25 09:00") for slot in slots)
        assert all(slot.end <= _utc("2024-11-25 17:00") for slot in slots)
        assert slots[0].start == _utc("2024-11-25 13:00")

    def test_single_participant(self):
        busy_times = {"solo@example.com": [_busy("2024-11-25 10:00", "2024-11-25 23:00")]}

        slots = SlotCalculator().find_available_slots(
            window=_full_day(),
            busy_times=busy_times,
            duration_minutes=30,
        )

        # Free 00:00-10:00 and 23:00-24:00
        assert len(slots) == 20 + 2
        assert slots[-1].start == _utc("2024-11-25 23:30")

    def test_exact_fit_window(self):
        window = SearchWindow(start=_utc("2024-11-25 09:00"), end=_utc("2024-11-25 17:00"))

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times={"a@example.com": []},
            duration_minutes=480,
        )

        assert len(slots) == 1
        assert (slots[0].start, slots[0].end) == (window.start, window.end)

    def test_no_participants(self):
        slots = SlotCalculator().find_available_slots(
            window=_full_day(),
            busy_times={},
            duration_minutes=30,
        )

        assert slots == []

    def test_interleaves_multiple_days(self):
        window = SearchWindow(start=_utc("2024-11-25 09:00"), end=_utc("2024-11-27 11:00"))
        busy_times = {
            "a@example.com": [
                _busy("2024-11-25 11:00", "2024-11-26 09:00"),
                _busy("2024-11-26 11:00", "2024-11-27 09:00"),
            ]
        }

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times=busy_times,
            duration_minutes=60,
        )

        assert [slot.start.day for slot in slots[:3]] == [25, 26, 27]

    def test_max_results(self):
        calculator = SlotCalculator(max_results=10)

        slots = calculator.find_available_slots(
            window=_full_day(),
            busy_times={"a@example.com": []},
            duration_minutes=30,
        )
        capped = calculator.find_available_slots(
            window=_full_day(),
            busy_times={"a@example.com": []},
            duration_minutes=30,
            max_results=4,
        )

        assert len(slots) == 10
        assert len(capped) == 4

    def test_default_cap(self):
        window = SearchWindow(start=_utc("2024-11-25 00:00"), end=_utc("2024-12-05 00:00"))

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times={"a@example.com": []},
            duration_minutes=30,
        )

        assert len(slots) == 200

    def test_buffer_keeps_distance_to_meetings(self):
        window = SearchWindow(start=_utc("2024-11-25 09:00"), end=_utc("2024-11-25 12:00"))
        busy_times = {"a@example.com": [_busy("2024-11-25 10:00", "2024-11-25 11:00")]}

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times=busy_times,
            duration_minutes=30,
            preferences=SchedulingPreferences(buffer_minutes=30),
        )

        assert [slot.start for slot in slots] == [_utc("2024-11-25 09:00"), _utc("2024-11-25 11:30")]

    def test_wall_clock_follows_reference_timezone(self):
        """Work hours apply to Berlin time when the window is given in Berlin time."""
        start = pendulum.parse("2024-11-25 00:00", tz="Europe/Berlin")
        window = SearchWindow(start=start, end=start.add(days=1))

        slots = SlotCalculator().find_available_slots(
            window=window,
            busy_times={"a@example.com": []},
            duration_minutes=60,
            preferences=SchedulingPreferences(work_hours_start="09:00", work_hours_end="10:00"),
        )

        assert len(slots) == 1
        assert slots[0].start.hour == 9
        assert slots[0].start == _utc("2024-11-25 08:00")

    def test_explicit_timezone_overrides_window_zone(self):
        slots = SlotCalculator().find_available_slots(
            window=_full_day(),
            busy_times={"a@example.com": []},
            duration_minutes=60,
            preferences=SchedulingPreferences(work_hours_start="09:00", work_hours_end="10:00"),
            timezone="Europe/Berlin",
        )

        assert len(slots) == 1
        assert slots[0].to_dict()["start"] == "2024-11-25T09:00:00+01:00"

    def test_deterministic(self):
        busy_times = {
            "a@example.com": [
                _busy("2024-11-25 12:00", "2024-11-25 13:00"),
                _busy("2024-11-25 10:00", "2024-11-25 11:30"),
            ],
            "b@example.com": [_busy("2024-11-26 09:00", "2024-11-26 17:00")],
        }
        window = SearchWindow(start=_utc("2024-11-25 00:00"), end=_utc("2024-11-28 00:00"))
        prefs = SchedulingPreferences(work_hours_start="08:00", work_hours_end="18:00")
        calculator = SlotCalculator()

        first = calculator.find_available_slots(window, busy_times, 45, prefs)
        second = calculator.find_available_slots(window, busy_times, 45, prefs)

        assert first == second
