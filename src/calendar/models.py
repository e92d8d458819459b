"""
Event and announcement models for the family calendar
"""
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional


def parse_timestamp(value, tz: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO timestamp (or pass through a datetime), optionally into tz"""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if tz is not None:
        dt = dt.replace(tzinfo=tz) if dt.tzinfo is None else dt.astimezone(tz)
    return dt


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


class FamilyEvent:
    """A scheduled family event"""

    FIELDS = ("title", "person", "category", "start_time", "end_time",
              "recurring", "reminder_minutes", "notes")

    def __init__(self, event_id: str, title: str, person: str, category: str,
                 start_time: datetime, end_time: datetime, recurring: bool = False,
                 reminder_minutes: Optional[int] = None, notes: Optional[str] = None,
                 created_at: Optional[str] = None, updated_at: Optional[str] = None):
        self.id = event_id
        self.title = title
        self.person = person
        self.category = category
        self.start_time = start_time
        self.end_time = end_time
        self.recurring = bool(recurring)
        self.reminder_minutes = reminder_minutes
        self.notes = notes
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_record(cls, record: Dict[str, Any], tz: Optional[tzinfo] = None) -> "FamilyEvent":
        """Build an event from a storage row"""
        return cls(
            event_id=str(record.get("id", "")),
            title=record.get("title", ""),
            person=record.get("person", ""),
            category=record.get("category", ""),
            start_time=parse_timestamp(record["start_time"], tz),
            end_time=parse_timestamp(record["end_time"], tz),
            recurring=record.get("recurring") or False,
            reminder_minutes=record.get("reminder_minutes"),
            notes=record.get("notes"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for JSON serialization"""
        data = {
            "id": self.id,
            "title": self.title,
            "person": self.person,
            "category": self.category,
            "start_time": format_timestamp(self.start_time),
            "end_time": format_timestamp(self.end_time),
            "recurring": self.recurring,
            "reminder_minutes": self.reminder_minutes,
            "notes": self.notes,
        }
        if self.created_at:
            data["created_at"] = self.created_at
        if self.updated_at:
            data["updated_at"] = self.updated_at
        return data

    def to_fields(self) -> Dict[str, Any]:
        """Mutable fields only, as sent on a full-replacement update"""
        data = self.to_dict()
        return {key: data[key] for key in self.FIELDS}

    def in_timezone(self, tz: tzinfo) -> "FamilyEvent":
        """Copy of the event with its instants expressed in tz"""
        if self.start_time.tzinfo is tz and self.end_time.tzinfo is tz:
            return self
        record = self.to_dict()
        record["start_time"] = self.start_time
        record["end_time"] = self.end_time
        return FamilyEvent.from_record(record, tz)

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    @property
    def is_multi_day(self) -> bool:
        return self.start_time.date() != self.end_time.date()

    def overlaps_with(self, other: "FamilyEvent") -> bool:
        """Half-open overlap; touching events do not overlap"""
        return self.start_time < other.end_time and other.start_time < self.end_time

    def __repr__(self):
        return f"FamilyEvent({self.id!r}, {self.title!r}, {self.person!r}, {self.start_time.isoformat()} - {self.end_time.isoformat()})"


class LayoutEvent:
    """An event placed in a column of its overlap group"""

    def __init__(self, event: FamilyEvent, col: int, total_cols: int):
        self.event = event
        self.col = col
        self.total_cols = total_cols

    @property
    def id(self) -> str:
        return self.event.id

    def __eq__(self, other):
        if not isinstance(other, LayoutEvent):
            return NotImplemented
        return (self.event.id, self.col, self.total_cols) == (other.event.id, other.col, other.total_cols)

    def __hash__(self):
        return hash((self.event.id, self.col, self.total_cols))

    def __repr__(self):
        return f"LayoutEvent({self.event.id!r}, col={self.col}, total_cols={self.total_cols})"


class Announcement:
    """A short note pinned above the calendar"""

    def __init__(self, announcement_id: str, text: str, color: int = 0,
                 created_at: Optional[str] = None):
        self.id = announcement_id
        self.text = text
        self.color = color
        self.created_at = created_at

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Announcement":
        return cls(
            announcement_id=str(record.get("id", "")),
            text=record.get("text", ""),
            color=int(record.get("color") or 0),
            created_at=record.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "color": self.color,
            "created_at": self.created_at,
        }
