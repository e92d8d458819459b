"""
Create/edit dialog state machine with the AI-assist sub-state
"""
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from config.settings import Config, FamilyConfig

logger = logging.getLogger(__name__)

CLOSED = "closed"
OPEN = "open"

CREATE = "create"
EDIT = "edit"

AI_IDLE = "idle"
AI_PARSING = "parsing"
AI_PARSED = "parsed"
AI_PARSE_ERROR = "parse_error"

GENERIC_PARSE_ERROR = "שגיאה בפענוח"


class DialogStateError(RuntimeError):
    """Raised on a transition that the current dialog state does not allow"""


class EventDialog:
    """
    closed -> open(create | edit); while open in create mode the AI assist
    moves idle -> parsing -> parsed | parse_error. Save or cancel closes.
    """

    def __init__(self, family_config: FamilyConfig, categories: Optional[List[str]] = None):
        self.family = family_config
        self.categories = categories if categories is not None else list(family_config.categories)
        self.tz = ZoneInfo(family_config.timezone)
        self.state = CLOSED
        self.mode: Optional[str] = None
        self.event_id: Optional[str] = None
        self.ai_state = AI_IDLE
        self.ai_error = ""
        self.fields: Dict[str, Any] = {}

    @property
    def is_open(self) -> bool:
        return self.state == OPEN

    def _require_open(self):
        if not self.is_open:
            raise DialogStateError("Dialog is closed")

    def _reset_ai(self):
        self.ai_state = AI_IDLE
        self.ai_error = ""

    def open_create(self, day: Optional[date] = None, hour: Optional[int] = None):
        day = day or datetime.now(self.tz).date()
        if hour is not None:
            start_time = f"{hour:02d}:00"
            end_time = f"{min(hour + 1, 23):02d}:00"
        else:
            start_time, end_time = "08:00", "09:00"

        self.state, self.mode, self.event_id = OPEN, CREATE, None
        self.fields = {
            "title": "",
            "person": self.family.default_person,
            "category": Config.FALLBACK_CATEGORY,
            "start_date": day.isoformat(),
            "end_date": day.isoformat(),
            "start_time": start_time,
            "end_time": end_time,
            "recurring": False,
            "reminder_minutes": None,
            "notes": "",
        }
        self._reset_ai()

    def open_edit(self, event):
        start = event.start_time.astimezone(self.tz) if event.start_time.tzinfo else event.start_time
        end = event.end_time.astimezone(self.tz) if event.end_time.tzinfo else event.end_time

        self.state, self.mode, self.event_id = OPEN, EDIT, event.id
        self.fields = {
            "title": event.title,
            "person": event.person,
            "category": event.category,
            "start_date": start.date().isoformat(),
            "end_date": end.date().isoformat(),
            "start_time": start.strftime(Config.TIME_FORMAT),
            "end_time": end.strftime(Config.TIME_FORMAT),
            "recurring": event.recurring,
            "reminder_minutes": event.reminder_minutes,
            "notes": event.notes or "",
        }
        self._reset_ai()

    def set_field(self, name: str, value):
        self._require_open()
        if name not in self.fields:
            raise KeyError(name)
        self.fields[name] = value
        # Keep the end date from preceding the start date
        if name == "start_date" and self.fields["end_date"] and value > self.fields["end_date"]:
            self.fields["end_date"] = value

    def add_category(self, name: str) -> bool:
        name = (name or "").strip()
        if not name or name in self.categories:
            return False
        self.categories.append(name)
        if self.is_open:
            self.fields["category"] = name
        return True

    # AI assist

    def begin_parse(self, text: str) -> str:
        self._require_open()
        if self.mode != CREATE:
            raise DialogStateError("AI assist is only available when creating an event")
        text = (text or "").strip()
        if not text:
            raise DialogStateError("Nothing to parse")
        self.ai_state = AI_PARSING
        self.ai_error = ""
        return text

    def apply_parsed(self, parsed: Dict[str, Any]):
        """Populate only the fields the parse produced; person/category must be known choices"""
        if self.ai_state != AI_PARSING:
            raise DialogStateError("No parse in progress")

        if parsed.get("title"):
            self.fields["title"] = parsed["title"]
        if parsed.get("person") and parsed["person"] in self.family.people:
            self.fields["person"] = parsed["person"]
        if parsed.get("category") and parsed["category"] in self.categories:
            self.fields["category"] = parsed["category"]
        if parsed.get("date"):
            self.fields["start_date"] = parsed["date"]
            self.fields["end_date"] = parsed.get("end_date") or parsed["date"]
        if parsed.get("start_time"):
            self.fields["start_time"] = parsed["start_time"]
        if parsed.get("end_time"):
            self.fields["end_time"] = parsed["end_time"]
        if parsed.get("recurring") is not None:
            self.fields["recurring"] = bool(parsed["recurring"])
        if parsed.get("reminder_minutes") is not None:
            self.fields["reminder_minutes"] = int(parsed["reminder_minutes"])
        if parsed.get("notes"):
            self.fields["notes"] = parsed["notes"]

        self.ai_state = AI_PARSED

    def fail_parse(self, message: str):
        if self.ai_state != AI_PARSING:
            raise DialogStateError("No parse in progress")
        self.ai_state = AI_PARSE_ERROR
        self.ai_error = message or GENERIC_PARSE_ERROR

    def parse_with(self, llm_client, text: str):
        """Run the whole AI-assist round trip against an LLM client"""
        from src.ai_agent.llm_client import LLMError

        text = self.begin_parse(text)
        try:
            parsed = llm_client.parse_event(text)
        except LLMError as e:
            logger.warning(f"AI parse failed: {e}")
            self.fail_parse(str(e))
            return
        except Exception as e:
            logger.error(f"Unexpected AI parse error: {e}")
            self.fail_parse(GENERIC_PARSE_ERROR)
            return
        self.apply_parsed(parsed)

    # Closing transitions

    def build_payload(self) -> Optional[Dict[str, Any]]:
        """Event fields ready for storage, or None when a required field is missing"""
        self._require_open()
        f = self.fields
        if not all([f["title"], f["start_date"], f["end_date"], f["start_time"], f["end_time"]]):
            return None

        start = datetime.combine(date.fromisoformat(f["start_date"]),
                                 time.fromisoformat(f["start_time"]), tzinfo=self.tz)
        end = datetime.combine(date.fromisoformat(f["end_date"]),
                               time.fromisoformat(f["end_time"]), tzinfo=self.tz)
        reminder = f["reminder_minutes"]
        return {
            "title": f["title"],
            "person": f["person"],
            "category": f["category"],
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "recurring": bool(f["recurring"]),
            "reminder_minutes": int(reminder) if reminder not in (None, "") else None,
            "notes": f["notes"] or None,
        }

    def save(self) -> Optional[Dict[str, Any]]:
        """Return the payload and close; an incomplete form stays open"""
        payload = self.build_payload()
        if payload is None:
            return None
        self.cancel()
        return payload

    def cancel(self):
        self.state = CLOSED
        self.mode = None
        self._reset_ai()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "mode": self.mode,
            "event_id": self.event_id,
            "ai_state": self.ai_state,
            "ai_error": self.ai_error,
            "fields": dict(self.fields),
        }
