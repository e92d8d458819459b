"""
Configuration settings for the Family Schedule Assistant
"""
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()


def _split_env(name: str, default: str = "") -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class FamilyConfig:
    """Explicit family configuration handed to the calendar component"""

    def __init__(self, members: List[str], default_person: str = None,
                 categories: List[str] = None, everyone: str = "כולם",
                 member_emojis: List[str] = None, timezone: str = "Asia/Jerusalem"):
        self.members = list(members)
        self.everyone = everyone
        self.default_person = default_person or (self.members[0] if self.members else everyone)
        self.categories = list(categories or Config.DEFAULT_CATEGORIES)
        self.timezone = timezone

        emojis = list(member_emojis or [])
        self.person_emoji = {everyone: "👨‍👩‍👧‍👧"}
        for i, name in enumerate(self.members):
            self.person_emoji[name] = emojis[i] if i < len(emojis) else "👤"

    @property
    def people(self) -> List[str]:
        """All selectable assignees, the everyone sentinel last"""
        return self.members + [self.everyone]

    def emoji_for(self, person: str) -> str:
        return self.person_emoji.get(person, "👤")


class Config:
    # Storage (Supabase / PostgREST)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    EVENTS_TABLE = "family_events"
    ANNOUNCEMENTS_TABLE = "family_announcements"
    STORE_TIMEOUT = 10  # seconds

    # OpenAI configuration
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    TRANSCRIPTION_MODEL = "whisper-1"
    TRANSCRIPTION_LANGUAGE = "he"
    LLM_TIMEOUT = 15
    LLM_MAX_RETRIES = 2
    MAX_TOKENS = 300
    TEMPERATURE = 0.1

    # Telegram configuration
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_CHAT_BOT_FAMILY", "")
    TELEGRAM_CHAT_IDS = _split_env("TELEGRAM_CHAT_ID_FAMILY")
    TELEGRAM_BOT_USERNAME = os.getenv("TELEGRAM_BOT_USERNAME", "")
    TELEGRAM_API_URL = "https://api.telegram.org"
    TELEGRAM_TIMEOUT = 10
    APP_URL = os.getenv("NEXT_PUBLIC_APP_URL", os.getenv("APP_URL", ""))

    # Family configuration
    FAMILY_MEMBERS = _split_env("FAMILY_MEMBERS")
    FAMILY_MEMBER_EMOJIS = _split_env("FAMILY_MEMBER_EMOJIS")
    EVERYONE = os.getenv("FAMILY_EVERYONE_LABEL", "כולם")
    DEFAULT_PERSON = os.getenv("DEFAULT_PERSON", "")
    DEFAULT_CATEGORIES = _split_env("FAMILY_CATEGORIES", "אימון,חוג,עבודה,משפחה,אחר")
    FALLBACK_CATEGORY = "אחר"
    TIMEZONE = os.getenv("FAMILY_TIMEZONE", "Asia/Jerusalem")

    # Cron configuration
    DISABLE_CRON_JOBS = os.getenv("DISABLE_CRON_JOBS", "false").lower() == "true"
    CRON_SECRET = os.getenv("CRON_SECRET", "")
    REMINDER_WINDOW_MINUTES = 6
    REMINDER_LOOKBACK_MINUTES = 60

    # API configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "5000"))
    FETCH_PADDING_DAYS = 35

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE") or None

    # Calendar grid
    HOUR_HEIGHT_PX = 60
    MIN_BLOCK_HEIGHT_PX = 24
    DEFAULT_MIN_HOUR = 8
    DEFAULT_MAX_HOUR = 18
    MIN_VISIBLE_SPAN = 6
    MONTH_CELL_LIMIT = 3

    # Date/Time formats
    DATE_FORMAT = "%Y-%m-%d"
    TIME_FORMAT = "%H:%M"

    CATEGORY_EMOJI = {
        "אימון": "🏋️", "חוג": "🎨", "עבודה": "💼", "משפחה": "👨‍👩‍👧‍👧", "טיסה": "✈️", "אחר": "📌",
    }
    CATEGORY_COLORS = {
        "אימון": "#3b82f6", "חוג": "#a855f7", "עבודה": "#10b981", "משפחה": "#f97316", "אחר": "#6b7280",
    }
    ANNOUNCEMENT_PALETTE = ["yellow", "blue", "green", "pink", "purple", "orange"]

    EVENT_PARSING_PROMPT = """אתה עוזר לפענח טקסט חופשי לאירוע ביומן משפחתי.

האנשים במשפחה: {members}, {everyone}
קטגוריות: {categories}

כללים:
- אם לא צוין שם, ברירת מחדל: {default_person}
- אם לא צוינה קטגוריה, נסה להסיק. ברירת מחדל: {fallback_category}
- אם לא צוין תאריך, השתמש בהיום (שים לב לאזור זמן ישראל)
- אם לא צוינה שעת סיום, הוסף שעה לשעת ההתחלה
- אם צוין יום בשבוע (למשל "יום שני"), חשב את התאריך הקרוב ביותר קדימה
- זהה בקשות תזכורת: "תזכיר לי", "הזכר לי", "שלח תזכורת" וכו'
  * 5 דקות לפני = 5
  * 10 דקות לפני = 10
  * 15 דקות לפני = 15
  * 30 דקות לפני = 30
  * שעה לפני = 60
  * שעתיים לפני = 120
  * יום לפני / 24 שעות לפני = 1440
- החזר JSON בלבד

פורמט תשובה (JSON בלבד):
{{
  "title": "שם האירוע",
  "person": "שם האדם",
  "category": "קטגוריה",
  "date": "YYYY-MM-DD",
  "end_date": "YYYY-MM-DD",
  "start_time": "HH:MM",
  "end_time": "HH:MM",
  "recurring": false,
  "reminder_minutes": null,
  "notes": ""
}}

היום: {today} (יום {day_name})"""

    @classmethod
    def family_config(cls) -> FamilyConfig:
        """Build the explicit family configuration from the environment"""
        return FamilyConfig(
            members=cls.FAMILY_MEMBERS,
            default_person=cls.DEFAULT_PERSON or None,
            categories=cls.DEFAULT_CATEGORIES,
            everyone=cls.EVERYONE,
            member_emojis=cls.FAMILY_MEMBER_EMOJIS,
            timezone=cls.TIMEZONE,
        )

    @classmethod
    def get_model_config(cls, model_name: Optional[str] = None) -> Dict[str, object]:
        """Get OpenAI model configuration"""
        return {
            "model": model_name or cls.DEFAULT_MODEL,
            "base_url": cls.OPENAI_BASE_URL,
            "max_tokens": cls.MAX_TOKENS,
            "temperature": cls.TEMPERATURE,
        }

    @classmethod
    def storage_configured(cls) -> bool:
        return bool(cls.SUPABASE_URL and cls.SUPABASE_SERVICE_ROLE_KEY)
