"""
Time-window selection of events for day, week and month views
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Tuple

from src.calendar.models import FamilyEvent


def day_bounds(day, tzinfo=None) -> Tuple[datetime, datetime]:
    """First and last instant of a calendar day"""
    if isinstance(day, datetime):
        tzinfo = tzinfo or day.tzinfo
        day = day.date()
    start = datetime.combine(day, time.min, tzinfo=tzinfo)
    end = datetime.combine(day, time.max, tzinfo=tzinfo)
    return start, end


def events_in_window(events: Iterable[FamilyEvent], window_start: datetime,
                     window_end: datetime) -> List[FamilyEvent]:
    """Events with any overlap with the closed window [window_start, window_end]"""
    return [e for e in events if e.start_time <= window_end and e.end_time >= window_start]


def events_for_day(events: Iterable[FamilyEvent], day, tzinfo=None) -> List[FamilyEvent]:
    start, end = day_bounds(day, tzinfo)
    return events_in_window(events, start, end)


def week_dates(day) -> List[date]:
    """The seven days of the Sunday-first week containing day"""
    if isinstance(day, datetime):
        day = day.date()
    sunday = day - timedelta(days=(day.weekday() + 1) % 7)
    return [sunday + timedelta(days=i) for i in range(7)]


def month_grid_dates(day) -> List[date]:
    """Whole weeks covering the month of day, Sunday first"""
    if isinstance(day, datetime):
        day = day.date()
    first = day.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    last = next_month - timedelta(days=1)

    grid_start = week_dates(first)[0]
    grid_end = week_dates(last)[-1]
    return [grid_start + timedelta(days=i) for i in range((grid_end - grid_start).days + 1)]


def shift_month(day: date, months: int) -> date:
    """Move by whole months, clamping the day-of-month"""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    first_next = date(year + (month // 12), month % 12 + 1, 1)
    last_day = (first_next - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))
