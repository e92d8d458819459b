"""
Mock LLM Client for testing without the OpenAI API
"""
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from config.settings import Config, FamilyConfig
from src.ai_agent.llm_client import LLMParseError, apply_event_defaults

logger = logging.getLogger(__name__)

WEEKDAYS_HE = {"ראשון": 6, "שני": 0, "שלישי": 1, "רביעי": 2, "חמישי": 3, "שישי": 4, "שבת": 5}

REMINDER_PATTERNS = [
    (r"יום לפני|24 שעות לפני", 1440),
    (r"שעתיים לפני", 120),
    (r"שעה לפני", 60),
    (r"(\d+)\s*דקות לפני", None),
]


class MockLLMClient:
    """Regex-based stand-in for LLMClient"""

    def __init__(self, family_config: FamilyConfig = None, transcript: Optional[str] = None):
        self.family = family_config or Config.family_config()
        self.model_name = "mock-llm"
        self.transcript = transcript
        self.requests = []
        logger.info(f"Initialized Mock LLM client: {self.model_name}")

    def parse_event(self, text: str, today: Optional[date] = None) -> Dict[str, Any]:
        """Mock parsing using simple patterns"""
        logger.info(f"🤖 MOCK: Parsing event text")
        self.requests.append(text)
        today = today or date.today()

        times = re.findall(r"\b(\d{1,2}):(\d{2})\b", text)
        if not times:
            raise LLMParseError()

        start_time = f"{int(times[0][0]):02d}:{times[0][1]}"
        end_time = f"{int(times[1][0]):02d}:{times[1][1]}" if len(times) > 1 else None

        event_date = today
        if "מחר" in text:
            event_date = today + timedelta(days=1)
        else:
            for name, weekday in WEEKDAYS_HE.items():
                if f"יום {name}" in text:
                    days_ahead = (weekday - today.weekday()) % 7
                    event_date = today + timedelta(days=days_ahead)
                    break

        person = next((p for p in self.family.people if p in text), None)
        category = next((c for c in self.family.categories if c in text), None)

        reminder = None
        for pattern, minutes in REMINDER_PATTERNS:
            match = re.search(pattern, text)
            if match:
                reminder = minutes if minutes is not None else int(match.group(1))
                break

        title = re.sub(r"\b\d{1,2}:\d{2}\b", "", text)
        title = re.sub(r"\s+", " ", title).strip() or "אירוע"

        result = apply_event_defaults({
            "title": title,
            "person": person,
            "category": category,
            "date": event_date.isoformat(),
            "start_time": start_time,
            "end_time": end_time,
            "reminder_minutes": reminder,
        }, self.family, today)

        logger.info(f"🤖 MOCK: Parsed event -> {result}")
        return result

    def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> Optional[str]:
        logger.info(f"🤖 MOCK: Transcribing {len(audio)} bytes")
        return self.transcript
