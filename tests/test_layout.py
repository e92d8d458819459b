"""
Tests for the overlap layout
"""
from datetime import timedelta

import pytest

from conftest import at, make_event
from src.calendar.layout import group_overlapping, layout_overlapping_events


def max_concurrency(events):
    """Peak number of simultaneously running events (ends before starts at ties)"""
    points = []
    for e in events:
        points.append((e.start_time, 1))
        points.append((max(e.start_time, e.end_time), -1))
    points.sort(key=lambda p: (p[0], p[1]))
    running = peak = 0
    for _, delta in points:
        running += delta
        peak = max(peak, running)
    return peak


def by_id(laid):
    return {le.id: le for le in laid}


SCENARIOS = {
    "pair": [(9, 0, 10, 0), (9, 30, 10, 30)],
    "chain": [(9, 0, 10, 0), (9, 30, 11, 0), (10, 30, 12, 0)],
    "triple": [(9, 0, 12, 0), (9, 0, 10, 0), (9, 30, 10, 30), (10, 0, 11, 0)],
    "nested": [(8, 0, 14, 0), (9, 0, 10, 0), (9, 15, 9, 45), (11, 0, 12, 0), (11, 30, 13, 0)],
    "touching": [(9, 0, 10, 0), (10, 0, 11, 0), (11, 0, 12, 0)],
}


class TestLayoutOverlappingEvents:
    """Column assignment inside overlap groups"""

    def test_same_person_overlap_gets_two_columns(self):
        laid = by_id(layout_overlapping_events([
            make_event("1", start=at(9), end=at(10)),
            make_event("2", start=at(9, 30), end=at(10, 30)),
        ]))
        assert (laid["1"].col, laid["1"].total_cols) == (0, 2)
        assert (laid["2"].col, laid["2"].total_cols) == (1, 2)

    def test_touching_events_share_column_zero(self):
        laid = by_id(layout_overlapping_events([
            make_event("1", person="אבא", start=at(9), end=at(10)),
            make_event("2", person="אמא", start=at(10), end=at(11)),
        ]))
        assert laid["1"].col == laid["2"].col == 0
        assert laid["1"].total_cols == laid["2"].total_cols == 1

    @pytest.mark.parametrize("name", sorted(SCENARIOS))
    def test_columns_equal_peak_concurrency(self, name):
        events = [make_event(str(i), start=at(sh, sm), end=at(eh, em))
                  for i, (sh, sm, eh, em) in enumerate(SCENARIOS[name])]
        laid = layout_overlapping_events(events)

        for group in group_overlapping(events):
            ids = {e.id for e in group}
            total = {le.total_cols for le in laid if le.id in ids}
            assert total == {max_concurrency(group)}

    def test_concurrent_events_never_share_a_column(self):
        events = [make_event(str(i), start=at(sh, sm), end=at(eh, em))
                  for i, (sh, sm, eh, em) in enumerate(SCENARIOS["nested"])]
        laid = layout_overlapping_events(events)
        for a in laid:
            for b in laid:
                if a.id < b.id and a.event.overlaps_with(b.event):
                    assert a.col != b.col

    def test_every_event_placed_once(self):
        events = [make_event(str(i), start=at(sh, sm), end=at(eh, em))
                  for i, (sh, sm, eh, em) in enumerate(SCENARIOS["triple"])]
        laid = layout_overlapping_events(events)
        assert sorted(le.id for le in laid) == sorted(e.id for e in events)
        assert all(0 <= le.col < le.total_cols for le in laid)

    def test_idempotent(self):
        events = [make_event(str(i), start=at(sh, sm), end=at(eh, em))
                  for i, (sh, sm, eh, em) in enumerate(SCENARIOS["chain"])]
        assert layout_overlapping_events(events) == layout_overlapping_events(events)

    def test_groups_are_independent(self):
        laid = by_id(layout_overlapping_events([
            make_event("1", start=at(9), end=at(10)),
            make_event("2", start=at(9, 30), end=at(10, 30)),
            make_event("3", start=at(14), end=at(15)),
        ]))
        assert laid["3"].total_cols == 1

    def test_negative_duration_is_treated_as_zero(self):
        broken = make_event("1", start=at(10), end=at(10) - timedelta(hours=1))
        other = make_event("2", start=at(10), end=at(11))
        laid = by_id(layout_overlapping_events([broken, other]))
        assert laid["1"].col == laid["2"].col == 0

    def test_empty(self):
        assert layout_overlapping_events([]) == []
