"""
Tests for time-window selection
"""
from datetime import date, timedelta

from conftest import DAY, TZ, at, make_event
from src.calendar.time_window import (day_bounds, events_for_day, events_in_window,
                                      month_grid_dates, shift_month, week_dates)


class TestEventsInWindow:
    """Closed-interval overlap with the window"""

    def test_event_from_previous_evening_is_included(self):
        previous = DAY - timedelta(days=1)
        event = make_event("1", start=at(22, day=previous), end=at(2))
        start, end = day_bounds(DAY, TZ)

        assert events_in_window([event], start, end) == [event]

    def test_event_ending_exactly_at_window_start_is_included(self):
        previous = DAY - timedelta(days=1)
        event = make_event("1", start=at(20, day=previous), end=at(0))
        start, end = day_bounds(DAY, TZ)

        assert events_in_window([event], start, end) == [event]

    def test_events_outside_window_are_excluded(self):
        before = make_event("1", start=at(9, day=DAY - timedelta(days=1)), end=at(10, day=DAY - timedelta(days=1)))
        after = make_event("2", start=at(9, day=DAY + timedelta(days=1)), end=at(10, day=DAY + timedelta(days=1)))

        assert events_for_day([before, after], DAY, TZ) == []

    def test_multi_day_event_covers_middle_day(self):
        event = make_event("1", start=at(18, day=DAY - timedelta(days=1)), end=at(8, day=DAY + timedelta(days=1)))

        assert events_for_day([event], DAY, TZ) == [event]

    def test_preserves_input_order(self):
        a = make_event("a", start=at(12), end=at(13))
        b = make_event("b", start=at(8), end=at(9))

        assert [e.id for e in events_for_day([a, b], DAY, TZ)] == ["a", "b"]


class TestCalendarDates:

    def test_day_bounds_cover_whole_day(self):
        start, end = day_bounds(DAY, TZ)
        assert (start.hour, start.minute) == (0, 0)
        assert (end.hour, end.minute, end.second) == (23, 59, 59)
        assert start.tzinfo is TZ

    def test_week_starts_on_sunday(self):
        days = week_dates(DAY)
        assert days[0] == date(2025, 3, 9)
        assert days[-1] == date(2025, 3, 15)
        assert len(days) == 7

    def test_week_of_a_sunday_starts_that_day(self):
        assert week_dates(date(2025, 3, 9))[0] == date(2025, 3, 9)

    def test_month_grid_is_whole_weeks(self):
        grid = month_grid_dates(DAY)
        assert len(grid) % 7 == 0
        assert grid[0] == date(2025, 2, 23)
        assert date(2025, 3, 31) in grid
        assert grid[-1] == date(2025, 4, 5)

    def test_shift_month_clamps_day(self):
        assert shift_month(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert shift_month(date(2025, 12, 15), 1) == date(2026, 1, 15)
        assert shift_month(date(2025, 1, 15), -1) == date(2024, 12, 15)
