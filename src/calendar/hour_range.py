"""
Visible hour range for the day and week grids
"""
from typing import List, Sequence

from src.calendar.models import FamilyEvent

DEFAULT_MIN_HOUR = 8
DEFAULT_MAX_HOUR = 18
MIN_SPAN = 6
FIRST_HOUR = 0
LAST_HOUR = 23


class HourRange:
    """Hours shown in a grid, with whether more can be revealed on either side"""

    def __init__(self, min_hour: int, max_hour: int):
        self.min_hour = min_hour
        self.max_hour = max_hour
        self.hours: List[int] = list(range(min_hour, max_hour + 1))
        self.can_expand_start = min_hour > FIRST_HOUR
        self.can_expand_end = max_hour < LAST_HOUR

    def to_dict(self):
        return {
            "hours": self.hours,
            "min_hour": self.min_hour,
            "max_hour": self.max_hour,
            "can_expand_start": self.can_expand_start,
            "can_expand_end": self.can_expand_end,
        }

    def __repr__(self):
        return f"HourRange({self.min_hour}, {self.max_hour})"


def hours_range(events: Sequence[FamilyEvent], expand_start: int = 0,
                expand_end: int = 0) -> HourRange:
    """
    Compute the visible hour range for a set of events.

    Without events the range is 08-18. Otherwise it spans the earliest
    start/end hour to the latest start hour or end hour, where an end with
    minutes counts as the following hour. The manual expansion widens each
    side within 0-23, and ranges shorter than six hours grow upward to six.
    """
    min_hour, max_hour = DEFAULT_MIN_HOUR, DEFAULT_MAX_HOUR

    if events:
        min_hour, max_hour = LAST_HOUR, FIRST_HOUR
        for event in events:
            start_hour = event.start_time.hour
            end_hour = event.end_time.hour
            rounded_end = end_hour + 1 if event.end_time.minute > 0 else end_hour
            min_hour = min(min_hour, start_hour, end_hour)
            max_hour = max(max_hour, start_hour, rounded_end)

    min_hour = max(FIRST_HOUR, min_hour - max(0, expand_start))
    max_hour = min(LAST_HOUR, max_hour + max(0, expand_end))

    if max_hour - min_hour < MIN_SPAN:
        max_hour = min(LAST_HOUR, min_hour + MIN_SPAN)

    return HourRange(min_hour, max_hour)
