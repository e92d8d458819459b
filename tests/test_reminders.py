"""
Tests for the reminder due window
"""
from datetime import timedelta

import pytest

from conftest import at, make_event
from src.scheduler.reminders import due_reminders, is_reminder_due, reminder_lookback


class TestReminderWindow:
    """Due when 0 <= now - (start - reminder) < 6 minutes"""

    @pytest.mark.parametrize("hour, minute, due", [
        (8, 59, False),
        (9, 0, True),
        (9, 5, True),
        (9, 6, False),
    ])
    def test_window_edges(self, hour, minute, due):
        event = make_event("1", start=at(10), end=at(11), reminder_minutes=60)
        assert is_reminder_due(event, at(hour, minute)) is due

    def test_without_reminder(self):
        event = make_event("1", start=at(10), end=at(11))
        assert not is_reminder_due(event, at(10))

    def test_due_reminders_selects_due_only(self):
        events = [
            make_event("soon", start=at(10, 30), end=at(11), reminder_minutes=30),
            make_event("later", start=at(12), end=at(13), reminder_minutes=30),
            make_event("day-before", start=at(10, day=at(10).date() + timedelta(days=1)),
                       end=at(11, day=at(10).date() + timedelta(days=1)), reminder_minutes=1440),
        ]
        assert [e.id for e in due_reminders(events, at(10, 2))] == ["soon", "day-before"]

    def test_lookback(self):
        assert reminder_lookback(at(10)) == at(9)
