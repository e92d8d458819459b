"""
Tests for the calendar view renderer and navigation state
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import DAY, TZ, at, make_event
from src.calendar.dialog import CREATE, EDIT
from src.calendar.hour_range import hours_range
from src.calendar import view_renderer
from src.calendar.view_renderer import (ALL_DAY_LABEL, CalendarState, CalendarView,
                                        block_geometry, block_time_label)


@pytest.fixture
def view(family_config):
    return CalendarView(family_config)


def blocks_by_id(view_model):
    return {b["id"]: b for day in view_model["days"] for b in day["blocks"]}


class TestBlockGeometry:

    def test_single_column_block(self):
        geometry = block_geometry(make_event("1", start=at(9), end=at(10)), DAY, min_hour=8)
        assert geometry["top"] == 60
        assert geometry["height"] == 60
        assert geometry["offset_pct"] == 0
        assert geometry["width_pct"] == 99

    def test_second_of_two_columns(self):
        geometry = block_geometry(make_event("1", start=at(9), end=at(10)), DAY, 8, col=1, total_cols=2)
        assert geometry["offset_pct"] == 50
        assert geometry["width_pct"] == 49

    def test_short_event_has_minimum_height(self):
        geometry = block_geometry(make_event("1", start=at(10), end=at(10, 10)), DAY, 8)
        assert geometry["height"] == 24

    def test_negative_duration_renders_minimum_height(self):
        geometry = block_geometry(make_event("1", start=at(10), end=at(9)), DAY, 8)
        assert geometry["top"] == 120
        assert geometry["height"] == 24

    def test_multi_day_event_per_day(self):
        event = make_event("1", start=at(20), end=at(8, day=DAY + timedelta(days=2)))

        first = block_geometry(event, DAY, 8)
        middle = block_geometry(event, DAY + timedelta(days=1), 8)
        last = block_geometry(event, DAY + timedelta(days=2), 8)

        assert first["top"] == 12 * 60
        assert first["height"] == pytest.approx(3.99 * 60)
        assert middle["top"] == 0
        assert middle["height"] == pytest.approx(15.99 * 60)
        assert last["top"] == 0
        assert last["height"] == 24

        assert block_time_label(event, DAY) == "20:00 →"
        assert block_time_label(event, DAY + timedelta(days=1)) == ALL_DAY_LABEL
        assert block_time_label(event, DAY + timedelta(days=2)) == "→ 08:00"


class TestCalendarState:

    def test_navigation_resets_expansion(self):
        state = CalendarState("week", DAY, expand_start=2, expand_end=1)
        state.navigate_forward()
        assert state.current_date == DAY + timedelta(days=7)
        assert (state.expand_start, state.expand_end) == (0, 0)

        state.navigate_back()
        assert state.current_date == DAY

    def test_day_and_month_steps(self):
        state = CalendarState("day", DAY)
        state.navigate_back()
        assert state.current_date == DAY - timedelta(days=1)

        monthly = CalendarState("month", date(2025, 1, 31))
        monthly.navigate_forward()
        assert monthly.current_date == date(2025, 2, 28)

    def test_changing_view_resets_expansion(self):
        state = CalendarState("week", DAY, expand_start=1)
        state.set_view("week")
        assert state.expand_start == 1
        state.set_view("day")
        assert state.expand_start == 0

    def test_go_to_today(self):
        state = CalendarState("week", DAY, expand_end=3)
        state.go_to_today(date(2025, 6, 1))
        assert state.current_date == date(2025, 6, 1)
        assert state.expand_end == 0

    def test_expand_only_while_possible(self):
        state = CalendarState("day", DAY)
        assert state.expand_earlier(hours_range([]))
        assert state.expand_start == 1

        full = hours_range([], expand_start=24, expand_end=24)
        assert not state.expand_earlier(full)
        assert not state.expand_later(full)
        assert state.expand_start == 1

    def test_unknown_view_rejected(self):
        with pytest.raises(ValueError):
            CalendarState("year", DAY)

    def test_fetch_window_pads_the_week(self):
        start, end = CalendarState("week", DAY).fetch_window()
        assert start == date(2025, 3, 9) - timedelta(days=35)
        assert end == date(2025, 3, 15) + timedelta(days=35)

    def test_default_date_follows_family_timezone(self, monkeypatch):
        class LateEveningUTC(datetime):
            @classmethod
            def now(cls, tz=None):
                # 00:30 on 2025-03-11 in Jerusalem
                return datetime(2025, 3, 10, 22, 30, tzinfo=timezone.utc).astimezone(tz)

        monkeypatch.setattr(view_renderer, "datetime", LateEveningUTC)

        assert CalendarState("day").current_date == date(2025, 3, 11)
        state = CalendarState("day", DAY)
        state.go_to_today()
        assert state.current_date == date(2025, 3, 11)

    def test_navigation_queries_come_from_gestures(self):
        state = CalendarState("week", DAY, expand_start=2, expand_end=1)
        nav = state.navigation(hours_range([], 2, 1), today=date(2025, 6, 1))

        assert nav["next"] == {"view": "week", "date": "2025-03-17", "expand_start": 0, "expand_end": 0}
        assert nav["prev"]["date"] == "2025-03-03"
        assert nav["today"]["date"] == "2025-06-01"
        assert nav["modes"]["week"]["expand_start"] == 2
        assert nav["modes"]["month"]["expand_start"] == 0
        assert nav["earlier"]["expand_start"] == 3
        assert nav["later"]["expand_end"] == 2
        assert state.to_query()["date"] == DAY.isoformat()

    def test_no_expansion_links_when_full(self):
        nav = CalendarState("day", DAY).navigation(hours_range([], 24, 24))
        assert nav["earlier"] is None and nav["later"] is None
        assert CalendarState("month", DAY).navigation()["earlier"] is None


class TestCalendarView:
    """Day, week and month view-models"""

    def test_week_view_lays_out_and_flags_conflicts(self, view):
        events = [
            make_event("1", person="אבא", start=at(9), end=at(10)),
            make_event("2", person="אבא", start=at(9, 30), end=at(10, 30)),
            make_event("3", person="אמא", start=at(12), end=at(13)),
        ]
        vm = view.render(events, CalendarState("week", DAY), now=at(11))

        assert len(vm["days"]) == 7
        assert vm["days"][1]["date"] == DAY.isoformat()
        assert vm["days"][1]["is_today"]
        assert vm["conflicts"] == ["1", "2"]
        assert vm["title"] == "9/3 - 15/3"

        blocks = blocks_by_id(vm)
        assert blocks["1"]["is_conflict"] and blocks["2"]["is_conflict"]
        assert not blocks["3"]["is_conflict"]
        assert (blocks["2"]["col"], blocks["2"]["total_cols"]) == (1, 2)
        assert blocks["1"]["time_label"] == "09:00 - 10:00"

    def test_week_hour_range_uses_week_events(self, view):
        events = [
            make_event("1", start=at(7), end=at(8)),
            make_event("far", start=at(2, day=DAY + timedelta(days=14)),
                       end=at(3, day=DAY + timedelta(days=14))),
        ]
        vm = view.render(events, CalendarState("week", DAY), now=at(11))
        assert vm["hours"]["min_hour"] == 7

    def test_person_filter(self, view):
        events = [
            make_event("dad", person="אבא", start=at(9), end=at(10)),
            make_event("dad2", person="אבא", start=at(9), end=at(10)),
            make_event("mom", person="אמא", start=at(9), end=at(10)),
            make_event("all", person="כולם", start=at(15), end=at(16)),
        ]
        vm = view.render(events, CalendarState("day", DAY), selected_people={"אמא"}, now=at(11))

        assert set(blocks_by_id(vm)) == {"mom", "all"}
        assert vm["conflicts"] == []

    def test_day_view_now_offset(self, view):
        vm = view.render([make_event("1", start=at(9), end=at(10))], CalendarState("day", DAY), now=at(12))
        assert vm["hours"]["min_hour"] == 9
        assert vm["now_offset"] == 180
        assert vm["title"] == "שני 10/3"

    def test_now_offset_only_today(self, view):
        vm = view.render([], CalendarState("day", DAY), now=at(12, day=DAY + timedelta(days=1)))
        assert vm["now_offset"] is None

    def test_events_in_other_zones_are_localized(self, view):
        utc_event = make_event("1", start=datetime(2025, 3, 10, 7, tzinfo=timezone.utc),
                               end=datetime(2025, 3, 10, 8, tzinfo=timezone.utc))
        vm = view.render([utc_event], CalendarState("day", DAY), now=at(8))
        assert blocks_by_id(vm)["1"]["time_label"] == "09:00 - 10:00"

    def test_month_view_limits_cell(self, view):
        events = [make_event(str(i), person="אבא", start=at(8 + i), end=at(8 + i, 30)) for i in range(5)]
        vm = view.render(events, CalendarState("month", DAY), now=at(7))

        cell = next(c for c in vm["cells"] if c["date"] == DAY.isoformat())
        assert [e["id"] for e in cell["events"]] == ["0", "1", "2"]
        assert cell["more"] == 2
        assert cell["events"][0]["time_label"] == "08:00"
        assert vm["title"] == "מרץ 2025"
        assert not vm["cells"][0]["in_month"]

    def test_render_is_idempotent(self, view):
        events = [make_event("1", start=at(9), end=at(10)), make_event("2", start=at(9), end=at(11))]
        state = CalendarState("week", DAY)
        assert view.render(events, state, now=at(8)) == view.render(events, state, now=at(8))

    def test_custom_categories(self, view):
        assert view.add_category("ים")
        assert not view.add_category("ים")
        assert not view.add_category("  ")
        assert "ים" in view.categories
        assert view.category_color("ים") == view.category_color("אחר")


class TestGestures:

    def test_cell_click_opens_create_dialog(self, view):
        dialog = view.cell_click(DAY, 14)
        assert dialog.mode == CREATE
        assert dialog.fields["start_date"] == DAY.isoformat()
        assert (dialog.fields["start_time"], dialog.fields["end_time"]) == ("14:00", "15:00")

    def test_event_click_opens_edit_dialog(self, view):
        dialog = view.event_click(make_event("7", title="חוג", start=at(16), end=at(17)))
        assert dialog.mode == EDIT
        assert dialog.event_id == "7"
        assert dialog.fields["title"] == "חוג"

    def test_drop_keeps_duration(self, view, caplog):
        caplog.set_level("INFO")
        event = make_event("1", start=at(9), end=at(10, 30), reminder_minutes=30)
        fields = view.drop_event(event, DAY + timedelta(days=1), 14)

        assert fields["start_time"] == at(14, day=DAY + timedelta(days=1)).isoformat()
        assert fields["end_time"] == at(15, 30, day=DAY + timedelta(days=1)).isoformat()
        assert fields["reminder_minutes"] == 30
        assert fields["title"] == event.title
        assert "(90 min)" in caplog.text
