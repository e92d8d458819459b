"""
Overlap layout: side-by-side columns for concurrent events
"""
from typing import List, Sequence

from src.calendar.models import FamilyEvent, LayoutEvent


def _effective_end(event: FamilyEvent):
    # Negative-duration events are treated as zero length
    return max(event.start_time, event.end_time)


def group_overlapping(events: Sequence[FamilyEvent]) -> List[List[FamilyEvent]]:
    """Split start-sorted events into maximal transitively-overlapping groups"""
    if not events:
        return []

    ordered = sorted(events, key=lambda e: e.start_time)
    groups: List[List[FamilyEvent]] = []
    current = [ordered[0]]
    group_end = _effective_end(ordered[0])

    for event in ordered[1:]:
        if event.start_time < group_end:
            current.append(event)
            group_end = max(group_end, _effective_end(event))
        else:
            groups.append(current)
            current = [event]
            group_end = _effective_end(event)

    groups.append(current)
    return groups


def assign_columns(group: Sequence[FamilyEvent]) -> List[List[FamilyEvent]]:
    """First-fit: each event goes to the leftmost column that is free at its start"""
    columns: List[List[FamilyEvent]] = []
    for event in group:
        for column in columns:
            if _effective_end(column[-1]) <= event.start_time:
                column.append(event)
                break
        else:
            columns.append([event])
    return columns


def layout_overlapping_events(events: Sequence[FamilyEvent], min_hour: int = 0) -> List[LayoutEvent]:
    """
    Place events into columns so that concurrent events never share one.

    Every event of a group is stamped with the group's final column count.
    The greedy first-fit over start-sorted intervals opens exactly as many
    columns as the group's peak concurrency. ``min_hour`` is accepted for
    parity with the geometry step and does not affect placement.
    """
    result: List[LayoutEvent] = []
    for group in group_overlapping(events):
        columns = assign_columns(group)
        total_cols = len(columns)
        for col_index, column in enumerate(columns):
            for event in column:
                result.append(LayoutEvent(event, col_index, total_cols))
    return result
