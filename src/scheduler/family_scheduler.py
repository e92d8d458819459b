"""
Family Scheduler - Main orchestrator for the Family Schedule Assistant
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from config.settings import Config, FamilyConfig
from src.ai_agent.llm_client import LLMError
from src.calendar.models import Announcement, FamilyEvent
from src.calendar.time_window import day_bounds, week_dates
from src.calendar.view_renderer import CalendarState, CalendarView
from src.notifications.messages import (
    build_added_event_message,
    build_daily_schedule_message,
    build_reminder_message,
    build_week_message,
)
from src.notifications.outbox import EVENT_CREATED, NotificationOutbox
from src.notifications.telegram_client import TelegramClient
from src.scheduler.reminders import due_reminders, reminder_lookback
from src.storage.family_store import FamilyStore, StoreError
from utils.schedule_logger import ScheduleLogger
from utils.validators import DataSanitizer, RequestValidator, ValidationError

logger = logging.getLogger(__name__)


class MissingAPIKeyError(LLMError):
    def __init__(self, message: str = "Missing API key"):
        super().__init__(message)


def parsed_to_event_fields(parsed: Dict[str, Any], tz: ZoneInfo) -> Dict[str, Any]:
    """Combine the parsed local date and HH:MM fields into stored timestamps"""
    start_day = date.fromisoformat(parsed["date"])
    end_day = date.fromisoformat(parsed.get("end_date") or parsed["date"])
    start = datetime.combine(start_day, datetime.strptime(parsed["start_time"], Config.TIME_FORMAT).time(), tzinfo=tz)
    end = datetime.combine(end_day, datetime.strptime(parsed["end_time"], Config.TIME_FORMAT).time(), tzinfo=tz)
    return {
        "title": parsed["title"],
        "person": parsed["person"],
        "category": parsed["category"],
        "start_time": start.isoformat(),
        "end_time": end.isoformat(),
        "recurring": bool(parsed.get("recurring") or False),
        "reminder_minutes": parsed.get("reminder_minutes") or None,
        "notes": parsed.get("notes") or None,
    }


class FamilyScheduler:
    """
    Coordinates storage, the AI parser, Telegram and the calendar view.

    Every HTTP route, bot command and cron job goes through here.
    """

    def __init__(self, store=None, llm_client=None, telegram: TelegramClient = None,
                 family_config: FamilyConfig = None, outbox: NotificationOutbox = None):
        self.config = Config()
        self.family = family_config or self.config.family_config()
        self.tz = ZoneInfo(self.family.timezone)

        if store is None:
            # Fall back to the in-memory store when Supabase is not configured
            try:
                store = FamilyStore()
                logger.info("✅ Using Supabase storage")
            except StoreError as e:
                logger.warning(f"⚠️  Supabase not available: {e}")
                logger.info("🔄 Using in-memory store for testing")
                from src.storage.mock_family_store import MockFamilyStore
                store = MockFamilyStore()
        self.store = store

        if llm_client is None and self.config.OPENAI_API_KEY:
            from src.ai_agent.llm_client import LLMClient
            llm_client = LLMClient(family_config=self.family)
            logger.info("✅ Using real LLM client")
        elif llm_client is None:
            logger.warning("⚠️  OPENAI_API_KEY not set, AI parsing disabled")
        self.llm_client = llm_client

        self.telegram = telegram or TelegramClient()
        self.outbox = outbox or NotificationOutbox(self.telegram, self.family)
        self.view = CalendarView(self.family)

        logger.info("FamilyScheduler initialized")

    # Events

    def list_events(self, start=None, end=None) -> List[Dict[str, Any]]:
        return self.store.list_events(start, end)

    def load_events(self, start=None, end=None) -> List[FamilyEvent]:
        return [FamilyEvent.from_record(row, self.tz) for row in self.store.list_events(start, end)]

    def get_event(self, event_id: str) -> Optional[FamilyEvent]:
        row = self.store.get_event(event_id)
        return FamilyEvent.from_record(row, self.tz) if row else None

    def create_event(self, data: Dict[str, Any], exclude_chat_id: Optional[str] = None) -> Dict[str, Any]:
        RequestValidator.require(data, RequestValidator.EVENT_REQUIRED_FIELDS, "Missing required fields")
        errors = RequestValidator.validate_event_payload(data)
        if errors:
            raise ValidationError("; ".join(errors))
        fields = DataSanitizer.sanitize_event(data)
        row = self.store.create_event(fields)
        logger.info(f"📅 Created event {row.get('id')}: {fields['title']} ({fields['person']})")

        # Delivery happens in the background; the insert has already succeeded
        self.outbox.emit(EVENT_CREATED, {**fields, "id": row.get("id")}, exclude_chat_id=exclude_chat_id)
        return row

    def update_event(self, event_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Full replacement of the mutable fields"""
        fields = DataSanitizer.sanitize_event(data or {})
        fields["updated_at"] = datetime.now(timezone.utc).isoformat()
        row = self.store.update_event(event_id, fields)
        logger.info(f"✏️  Updated event {event_id}")
        return row

    def move_event(self, event_id: str, day: date, hour: int) -> Optional[Dict[str, Any]]:
        """Drag-and-drop: same duration, new day and start hour"""
        event = self.get_event(event_id)
        if event is None:
            return None
        return self.update_event(event_id, self.view.drop_event(event, day, hour))

    def delete_event(self, event_id: str) -> bool:
        self.store.delete_event(event_id)
        logger.info(f"🗑  Deleted event {event_id}")
        return True

    # Announcements

    def list_announcements(self) -> List[Dict[str, Any]]:
        return self.store.list_announcements()

    def create_announcement(self, data: Dict[str, Any]) -> Dict[str, Any]:
        RequestValidator.require(data, ["text"], "Missing text")
        color = data.get("color")
        row = self.store.create_announcement(DataSanitizer.sanitize_text(data["text"]),
                                             int(color) if color is not None else 0)
        return Announcement.from_record(row).to_dict()

    def delete_announcement(self, announcement_id: str) -> bool:
        return self.store.delete_announcement(announcement_id)

    # AI

    def parse_event(self, text: str, today: Optional[date] = None) -> Dict[str, Any]:
        if not text or not str(text).strip():
            raise ValidationError("Missing text")
        if self.llm_client is None:
            raise MissingAPIKeyError()
        return self.llm_client.parse_event(text, today or self.today())

    def add_event_from_text(self, text: str, chat_id: Optional[str] = None,
                            today: Optional[date] = None) -> Dict[str, Any]:
        """
        Parse a free-text request, store it and build the confirmation.

        Returns ``{"event": row, "parsed": parsed, "message": str}``. Parse
        errors propagate as LLMError; storage errors as StoreError.
        """
        parsed = self.parse_event(text, today)
        fields = parsed_to_event_fields(parsed, self.tz)
        row = self.create_event(fields, exclude_chat_id=chat_id)
        return {"event": row, "parsed": parsed, "message": build_added_event_message(parsed)}

    # Calendar

    def render_calendar(self, state: CalendarState, selected_people=None,
                        now: Optional[datetime] = None) -> Dict[str, Any]:
        window_start, window_end = state.fetch_window()
        start, _ = day_bounds(window_start, self.tz)
        _, end = day_bounds(window_end, self.tz)
        events = self.load_events(start, end)
        view_model = self.view.render(events, state, selected_people, now)
        view_model["query"] = state.to_query()
        return view_model

    # Digests

    def events_for_day(self, day: date) -> List[FamilyEvent]:
        start, end = day_bounds(day, self.tz)
        return self.load_events(start, end)

    def day_schedule_message(self, day: date) -> str:
        return build_daily_schedule_message(self.events_for_day(day), day, self.family)

    def week_schedule_message(self, today: Optional[date] = None) -> str:
        days = week_dates(today or datetime.now(self.tz).date())
        start, _ = day_bounds(days[0], self.tz)
        _, end = day_bounds(days[-1], self.tz)
        return build_week_message(self.load_events(start, end), days[0], days[-1])

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def tomorrow(self) -> date:
        return self.today() + timedelta(days=1)

    # Cron jobs

    def check_reminders(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        if self.config.DISABLE_CRON_JOBS:
            return {"success": True, "message": "Cron jobs disabled"}

        now = now or datetime.now(timezone.utc)
        rows = self.store.events_with_reminders(reminder_lookback(now))
        candidates = [FamilyEvent.from_record(row, self.tz) for row in rows]
        due = due_reminders(candidates, now)

        results = []
        for event in due:
            try:
                success = self.telegram.send_to_all(build_reminder_message(event))
                results.append({"event_id": event.id, "success": success})
            except Exception as e:
                logger.error(f"Reminder for {event.id} failed: {e}")
                results.append({"event_id": event.id, "success": False, "error": str(e)})

        ScheduleLogger.log_reminder_run(len(candidates), due, results)
        return {
            "success": True,
            "reminders_checked": len(candidates),
            "reminders_sent": len(due),
            "results": results,
        }

    def send_daily_schedule(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        if self.config.DISABLE_CRON_JOBS:
            return {"success": True, "message": "Cron jobs disabled"}

        day = (now or datetime.now(self.tz)).astimezone(self.tz).date()
        events = self.events_for_day(day)
        ScheduleLogger.log_day_schedule(day.isoformat(), events)
        sent = self.telegram.send_to_all(build_daily_schedule_message(events, day, self.family))
        return {"success": sent, "events_count": len(events)}

    def shutdown(self):
        self.outbox.shutdown()
