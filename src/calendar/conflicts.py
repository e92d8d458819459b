"""
Person-scheduling conflict detection
"""
from typing import List, Sequence, Set

from src.calendar.models import FamilyEvent

EVERYONE = "כולם"


def find_conflicts(events: Sequence[FamilyEvent], everyone: str = EVERYONE) -> Set[str]:
    """
    Return the ids of events that overlap another event of the same person.

    Pairs assigned to two different people are skipped unless one of them is
    the everyone sentinel. Touching events (one ends exactly when the other
    starts) do not conflict.
    """
    events = list(events)
    ids: Set[str] = set()

    for i in range(len(events)):
        for j in range(i + 1, len(events)):
            a, b = events[i], events[j]
            if a.person != b.person and a.person != everyone and b.person != everyone:
                continue
            if a.overlaps_with(b):
                ids.add(a.id)
                ids.add(b.id)

    return ids


def filter_by_people(events: Sequence[FamilyEvent], selected: Set[str],
                     everyone: str = EVERYONE) -> List[FamilyEvent]:
    """Keep events of selected people; everyone-events while anyone is selected"""
    return [e for e in events
            if e.person in selected or (e.person == everyone and len(selected) > 0)]
