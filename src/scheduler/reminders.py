"""
Reminder due-window logic for the cron check
"""
from datetime import datetime, timedelta
from typing import Iterable, List

from config.settings import Config
from src.calendar.models import FamilyEvent


def reminder_lookback(now: datetime, minutes: int = Config.REMINDER_LOOKBACK_MINUTES) -> datetime:
    """Earliest start time still worth checking"""
    return now - timedelta(minutes=minutes)


def reminder_time(event: FamilyEvent) -> datetime:
    return event.start_time - timedelta(minutes=event.reminder_minutes or 0)


def is_reminder_due(event: FamilyEvent, now: datetime,
                    window_minutes: int = Config.REMINDER_WINDOW_MINUTES) -> bool:
    """
    True when the reminder moment fell within the last ``window_minutes``.

    The cron runs every few minutes, so the window is slightly wider than
    the run interval; an event may be picked up twice if runs overlap.
    """
    if not event.reminder_minutes:
        return False
    elapsed = now - reminder_time(event)
    return timedelta(0) <= elapsed < timedelta(minutes=window_minutes)


def due_reminders(events: Iterable[FamilyEvent], now: datetime,
                  window_minutes: int = Config.REMINDER_WINDOW_MINUTES) -> List[FamilyEvent]:
    return [e for e in events if is_reminder_due(e, now, window_minutes)]
