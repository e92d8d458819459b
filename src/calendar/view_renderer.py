"""
Calendar view renderer: day, week and month view-models plus gesture handling
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set
from zoneinfo import ZoneInfo

from config.settings import Config, FamilyConfig
from src.calendar.conflicts import filter_by_people, find_conflicts
from src.calendar.dialog import EventDialog
from src.calendar.hour_range import HourRange, hours_range
from src.calendar.layout import layout_overlapping_events
from src.calendar.models import FamilyEvent, LayoutEvent
from src.calendar.time_window import (day_bounds, events_for_day, events_in_window,
                                      month_grid_dates, shift_month, week_dates)

logger = logging.getLogger(__name__)

DAYS_HE = ["ראשון", "שני", "שלישי", "רביעי", "חמישי", "שישי", "שבת"]
DAYS_HE_SHORT = ["א׳", "ב׳", "ג׳", "ד׳", "ה׳", "ו׳", "ש׳"]
MONTHS_HE = ["ינואר", "פברואר", "מרץ", "אפריל", "מאי", "יוני", "יולי",
             "אוגוסט", "ספטמבר", "אוקטובר", "נובמבר", "דצמבר"]
ALL_DAY_LABEL = "כל היום"
UNTIL_LABEL = "עד"
END_OF_DAY = 23.99

VIEW_MODES = ("day", "week", "month")


def day_index(day) -> int:
    """Sunday-first weekday index"""
    return (day.weekday() + 1) % 7


def fmt_time(value: datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def fractional_hour(value: datetime) -> float:
    return value.hour + value.minute / 60


def family_today(tz: Optional[ZoneInfo] = None) -> date:
    """Today in the family's zone, independent of the host clock's zone"""
    return datetime.now(tz or ZoneInfo(Config.TIMEZONE)).date()


class CalendarState:
    """
    Navigation state of the calendar: view mode, reference date and the
    manual hour expansion. Any change of mode or range resets the expansion.
    """

    def __init__(self, view: str = "week", current_date: Optional[date] = None,
                 expand_start: int = 0, expand_end: int = 0):
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view}")
        self.view = view
        self.current_date = current_date or family_today()
        self.expand_start = max(0, expand_start)
        self.expand_end = max(0, expand_end)

    def reset_expansion(self):
        self.expand_start = 0
        self.expand_end = 0

    def set_view(self, view: str):
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view}")
        if view != self.view:
            self.view = view
            self.reset_expansion()

    def set_date(self, new_date: date):
        if new_date != self.current_date:
            self.current_date = new_date
            self.reset_expansion()

    def _shift(self, steps: int) -> date:
        if self.view == "day":
            return self.current_date + timedelta(days=steps)
        if self.view == "week":
            return self.current_date + timedelta(weeks=steps)
        return shift_month(self.current_date, steps)

    def navigate_back(self):
        self.current_date = self._shift(-1)
        self.reset_expansion()

    def navigate_forward(self):
        self.current_date = self._shift(1)
        self.reset_expansion()

    def go_to_today(self, today: Optional[date] = None):
        self.current_date = today or family_today()
        self.reset_expansion()

    def expand_earlier(self, current: HourRange) -> bool:
        if not current.can_expand_start:
            return False
        self.expand_start += 1
        return True

    def expand_later(self, current: HourRange) -> bool:
        if not current.can_expand_end:
            return False
        self.expand_end += 1
        return True

    def fetch_window(self, padding_days: int = Config.FETCH_PADDING_DAYS):
        """Date range to load around the current week"""
        week = week_dates(self.current_date)
        return week[0] - timedelta(days=padding_days), week[-1] + timedelta(days=padding_days)

    def to_query(self) -> Dict[str, Any]:
        return {
            "view": self.view,
            "date": self.current_date.isoformat(),
            "expand_start": self.expand_start,
            "expand_end": self.expand_end,
        }

    def copy(self) -> "CalendarState":
        return CalendarState(self.view, self.current_date, self.expand_start, self.expand_end)

    def navigation(self, hour_range: Optional[HourRange] = None,
                   today: Optional[date] = None) -> Dict[str, Any]:
        """
        Query of the state each control leads to, found by applying the
        gesture to a copy. Expansion links are None when the grid cannot
        grow that way (and always in month view).
        """
        def after(gesture, *args):
            target = self.copy()
            if gesture(target, *args) is False:
                return None
            return target.to_query()

        nav = {
            "prev": after(CalendarState.navigate_back),
            "next": after(CalendarState.navigate_forward),
            "today": after(CalendarState.go_to_today, today),
            "modes": {mode: after(CalendarState.set_view, mode) for mode in VIEW_MODES},
            "earlier": None,
            "later": None,
        }
        if hour_range is not None:
            nav["earlier"] = after(CalendarState.expand_earlier, hour_range)
            nav["later"] = after(CalendarState.expand_later, hour_range)
        return nav


def block_geometry(event: FamilyEvent, view_day: date, min_hour: int, col: int = 0,
                   total_cols: int = 1) -> Dict[str, Any]:
    """Pixel geometry of an event block within one day column"""
    first_day = event.start_time.date() == view_day
    last_day = event.end_time.date() == view_day

    if event.is_multi_day:
        if first_day:
            start_h, end_h = fractional_hour(event.start_time), END_OF_DAY
        elif last_day:
            start_h, end_h = min_hour, fractional_hour(event.end_time)
        else:
            start_h, end_h = min_hour, END_OF_DAY
    else:
        start_h, end_h = fractional_hour(event.start_time), fractional_hour(event.end_time)

    duration = max(0.0, end_h - start_h)
    width_pct = 100 / total_cols
    return {
        "top": (start_h - min_hour) * Config.HOUR_HEIGHT_PX,
        "height": max(duration * Config.HOUR_HEIGHT_PX, Config.MIN_BLOCK_HEIGHT_PX),
        "offset_pct": col * width_pct,
        "width_pct": width_pct - 1,
    }


def block_time_label(event: FamilyEvent, view_day: date) -> str:
    if not event.is_multi_day:
        return f"{fmt_time(event.start_time)} - {fmt_time(event.end_time)}"
    if event.start_time.date() == view_day:
        return f"{fmt_time(event.start_time)} →"
    if event.end_time.date() == view_day:
        return f"→ {fmt_time(event.end_time)}"
    return ALL_DAY_LABEL


def compact_time_label(event: FamilyEvent, view_day: date) -> str:
    if not event.is_multi_day:
        return fmt_time(event.start_time)
    if event.start_time.date() == view_day:
        return fmt_time(event.start_time)
    if event.end_time.date() == view_day:
        return f"{UNTIL_LABEL} {fmt_time(event.end_time)}"
    return ALL_DAY_LABEL


class CalendarView:
    """Builds grid view-models from a flat event list"""

    def __init__(self, family_config: FamilyConfig, categories: Optional[List[str]] = None):
        self.family = family_config
        self.tz = ZoneInfo(family_config.timezone)
        self.categories = list(categories or family_config.categories)

    # Configuration

    def add_category(self, name: str) -> bool:
        """Register a custom category; blank or duplicate names are ignored"""
        name = (name or "").strip()
        if not name or name in self.categories:
            return False
        self.categories.append(name)
        return True

    def category_color(self, category: str) -> str:
        return Config.CATEGORY_COLORS.get(category, Config.CATEGORY_COLORS[Config.FALLBACK_CATEGORY])

    # Rendering

    def visible_events(self, events: Iterable[FamilyEvent],
                       selected_people: Optional[Set[str]] = None) -> List[FamilyEvent]:
        events = [e.in_timezone(self.tz) for e in events]
        if selected_people is None:
            return events
        return filter_by_people(events, selected_people, self.family.everyone)

    def render(self, events: Sequence[FamilyEvent], state: CalendarState,
               selected_people: Optional[Set[str]] = None,
               now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(self.tz)
        visible = self.visible_events(events, selected_people)
        conflicts = find_conflicts(visible, self.family.everyone)

        if state.view == "day":
            view_model = self.render_day(visible, state, conflicts, now)
        elif state.view == "week":
            view_model = self.render_week(visible, state, conflicts, now)
        else:
            view_model = self.render_month(visible, state, conflicts, now)

        hour_range = view_model.pop("hour_range", None)
        view_model.update({
            "view": state.view,
            "date": state.current_date.isoformat(),
            "title": self.title(state),
            "conflicts": sorted(conflicts),
            "people": self.family.people,
            "categories": self.categories,
            "nav": state.navigation(hour_range, now.date()),
        })
        logger.debug(f"Rendered {state.view} view for {state.current_date}: "
                     f"{len(visible)} events, {len(conflicts)} conflicts")
        return view_model

    def _day_column(self, day_events: Sequence[FamilyEvent], day: date, min_hour: int,
                    conflicts: Set[str], now: datetime) -> Dict[str, Any]:
        laid = layout_overlapping_events(day_events, min_hour)
        return {
            "date": day.isoformat(),
            "day_name": DAYS_HE[day_index(day)],
            "day_short": DAYS_HE_SHORT[day_index(day)],
            "is_today": day == now.date(),
            "blocks": [self._block(le, day, min_hour, conflicts) for le in laid],
        }

    def _block(self, laid: LayoutEvent, day: date, min_hour: int, conflicts: Set[str]) -> Dict[str, Any]:
        event = laid.event
        block = {
            "id": event.id,
            "title": event.title,
            "person": event.person,
            "category": event.category,
            "color": self.category_color(event.category),
            "col": laid.col,
            "total_cols": laid.total_cols,
            "is_conflict": event.id in conflicts,
            "time_label": block_time_label(event, day),
        }
        block.update(block_geometry(event, day, min_hour, laid.col, laid.total_cols))
        return block

    def _now_offset(self, day: date, hour_range: HourRange, now: datetime) -> Optional[float]:
        if day != now.date():
            return None
        offset = (fractional_hour(now) - hour_range.min_hour) * Config.HOUR_HEIGHT_PX
        if offset < 0 or offset > len(hour_range.hours) * Config.HOUR_HEIGHT_PX:
            return None
        return offset

    def render_day(self, events: Sequence[FamilyEvent], state: CalendarState,
                   conflicts: Set[str], now: datetime) -> Dict[str, Any]:
        day = state.current_date
        day_events = events_for_day(events, day, self.tz)
        hour_range = hours_range(day_events, state.expand_start, state.expand_end)
        column = self._day_column(day_events, day, hour_range.min_hour, conflicts, now)
        return {
            "hours": hour_range.to_dict(),
            "hour_range": hour_range,
            "grid_height": len(hour_range.hours) * Config.HOUR_HEIGHT_PX,
            "days": [column],
            "now_offset": self._now_offset(day, hour_range, now),
        }

    def render_week(self, events: Sequence[FamilyEvent], state: CalendarState,
                    conflicts: Set[str], now: datetime) -> Dict[str, Any]:
        days = week_dates(state.current_date)
        week_start, _ = day_bounds(days[0], self.tz)
        _, week_end = day_bounds(days[-1], self.tz)
        week_events = events_in_window(events, week_start, week_end)
        hour_range = hours_range(week_events, state.expand_start, state.expand_end)

        columns = [
            self._day_column(events_for_day(week_events, day, self.tz), day,
                             hour_range.min_hour, conflicts, now)
            for day in days
        ]
        return {
            "hours": hour_range.to_dict(),
            "hour_range": hour_range,
            "grid_height": len(hour_range.hours) * Config.HOUR_HEIGHT_PX,
            "days": columns,
            "now_offset": None,
        }

    def render_month(self, events: Sequence[FamilyEvent], state: CalendarState,
                     conflicts: Set[str], now: datetime) -> Dict[str, Any]:
        cells = []
        for day in month_grid_dates(state.current_date):
            day_events = sorted(events_for_day(events, day, self.tz), key=lambda e: e.start_time)
            shown = day_events[:Config.MONTH_CELL_LIMIT]
            cells.append({
                "date": day.isoformat(),
                "day": day.day,
                "in_month": day.month == state.current_date.month,
                "is_today": day == now.date(),
                "events": [{
                    "id": e.id,
                    "title": e.title,
                    "color": self.category_color(e.category),
                    "is_conflict": e.id in conflicts,
                    "time_label": compact_time_label(e, day),
                } for e in shown],
                "more": max(0, len(day_events) - len(shown)),
            })
        return {"weekdays": DAYS_HE, "cells": cells}

    def title(self, state: CalendarState) -> str:
        current = state.current_date
        if state.view == "day":
            return f"{DAYS_HE[day_index(current)]} {current.day}/{current.month}"
        if state.view == "week":
            days = week_dates(current)
            return f"{days[0].day}/{days[0].month} - {days[-1].day}/{days[-1].month}"
        return f"{MONTHS_HE[current.month - 1]} {current.year}"

    # Gestures

    def new_dialog(self) -> EventDialog:
        return EventDialog(self.family, self.categories)

    def cell_click(self, day: date, hour: int) -> EventDialog:
        """Open a creation dialog prefilled with the clicked date and hour"""
        dialog = self.new_dialog()
        dialog.open_create(day, hour)
        return dialog

    def event_click(self, event: FamilyEvent) -> EventDialog:
        """Open an edit dialog prefilled from the event"""
        dialog = self.new_dialog()
        dialog.open_edit(event)
        return dialog

    def drop_event(self, event: FamilyEvent, day: date, hour: int) -> Dict[str, Any]:
        """Full-replacement update payload moving the event to day/hour, keeping its duration"""
        duration = event.end_time - event.start_time
        new_start = datetime.combine(day, time(hour=hour), tzinfo=self.tz)
        new_end = new_start + duration

        fields = event.to_fields()
        fields["start_time"] = new_start.isoformat()
        fields["end_time"] = new_end.isoformat()
        logger.info(f"Moving event {event.id} to {fields['start_time']} ({event.duration_minutes} min)")
        return fields
