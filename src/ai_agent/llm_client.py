"""
OpenAI client for free-text event parsing and voice transcription
"""
import json
import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from openai import OpenAI, OpenAIError

from config.settings import Config, FamilyConfig

logger = logging.getLogger(__name__)

DAYS_HE = ["ראשון", "שני", "שלישי", "רביעי", "חמישי", "שישי", "שבת"]


class LLMError(Exception):
    """Base class for AI parse failures; str() is the user-facing message"""


class LLMNoResponseError(LLMError):
    def __init__(self, message: str = "No response from AI"):
        super().__init__(message)


class LLMParseError(LLMError):
    def __init__(self, message: str = "Could not parse AI response"):
        super().__init__(message)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Decode the first balanced {...} object in text, ignoring braces inside strings"""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    try:
                        parsed = json.loads(text[start:i + 1])
                    except json.JSONDecodeError:
                        break
                    return parsed if isinstance(parsed, dict) else None
        start = text.find("{", start + 1)
    return None


def apply_event_defaults(data: Dict[str, Any], family: FamilyConfig, today: date) -> Dict[str, Any]:
    """Fill optional fields the model left out"""
    event_date = data.get("date") or today.isoformat()
    start_time = data.get("start_time") or "08:00"

    end_time = data.get("end_time")
    if not end_time:
        start = datetime.strptime(start_time, Config.TIME_FORMAT)
        end_time = min(start + timedelta(hours=1), start.replace(hour=23, minute=59)).strftime(Config.TIME_FORMAT)

    reminder = data.get("reminder_minutes")
    try:
        reminder = int(reminder) if reminder not in (None, "", 0) else None
    except (TypeError, ValueError):
        reminder = None

    return {
        "title": str(data.get("title") or "").strip(),
        "person": data.get("person") or family.default_person,
        "category": data.get("category") or Config.FALLBACK_CATEGORY,
        "date": event_date,
        "end_date": data.get("end_date") or event_date,
        "start_time": start_time,
        "end_time": end_time,
        "recurring": bool(data.get("recurring") or False),
        "reminder_minutes": reminder,
        "notes": data.get("notes") or None,
    }


class LLMClient:
    """Chat-completions client with JSON extraction and a small response cache"""

    def __init__(self, model_name: str = None, family_config: FamilyConfig = None):
        self.config = Config()
        self.family = family_config or self.config.family_config()
        self.model_config = self.config.get_model_config(model_name)
        self.model_name = self.model_config["model"]
        self.tz = ZoneInfo(self.family.timezone)

        self.client = OpenAI(
            api_key=self.config.OPENAI_API_KEY or None,
            base_url=self.model_config["base_url"],
            timeout=self.config.LLM_TIMEOUT,
            max_retries=self.config.LLM_MAX_RETRIES
        )

        self._response_cache: Dict[str, str] = {}
        self._cache_hits = 0
        self._total_requests = 0

        logger.info(f"Initialized OpenAI client: {self.model_name}")

    def build_prompt(self, today: date) -> str:
        return self.config.EVENT_PARSING_PROMPT.format(
            members=", ".join(self.family.members),
            everyone=self.family.everyone,
            categories=",".join(self.family.categories),
            default_person=self.family.default_person,
            fallback_category=self.config.FALLBACK_CATEGORY,
            today=today.isoformat(),
            day_name=DAYS_HE[(today.weekday() + 1) % 7],
        )

    def _get_cache_key(self, system_prompt: str, text: str) -> str:
        return f"{hash(system_prompt)}_{hash(text)}_{self.model_name}"

    def _make_completion_request(self, system_prompt: str, text: str,
                                 use_cache: bool = True) -> Optional[str]:
        cache_key = self._get_cache_key(system_prompt, text)
        self._total_requests += 1

        if use_cache and cache_key in self._response_cache:
            self._cache_hits += 1
            logger.debug(f"Cache hit ({self._cache_hits}/{self._total_requests})")
            return self._response_cache[cache_key]

        try:
            start_time = time.time()
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": text},
                ],
                temperature=self.model_config["temperature"],
                max_tokens=self.model_config["max_tokens"],
            )
            content = response.choices[0].message.content if response.choices else None
            logger.info(f"Completion response in {time.time() - start_time:.2f}s")
        except OpenAIError as e:
            logger.error(f"Completion request failed: {e}")
            return None

        if content and use_cache:
            self._response_cache[cache_key] = content
            if len(self._response_cache) > 100:
                oldest_key = next(iter(self._response_cache))
                del self._response_cache[oldest_key]

        return content

    def parse_event(self, text: str, today: Optional[date] = None) -> Dict[str, Any]:
        """Turn a free-text request into event fields"""
        today = today or datetime.now(self.tz).date()
        content = self._make_completion_request(self.build_prompt(today), text)
        if not content:
            raise LLMNoResponseError()

        parsed = extract_json_object(content)
        if parsed is None:
            logger.warning(f"No JSON object in model response: {content[:200]}")
            raise LLMParseError()

        try:
            result = apply_event_defaults(parsed, self.family, today)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed event fields from model: {e}")
            raise LLMParseError() from e

        logger.info(f"Parsed event: {result}")
        return result

    def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> Optional[str]:
        """Speech-to-text for a voice message; None when nothing was recognised"""
        try:
            transcription = self.client.audio.transcriptions.create(
                model=self.config.TRANSCRIPTION_MODEL,
                file=(filename, audio),
                language=self.config.TRANSCRIPTION_LANGUAGE,
            )
        except OpenAIError as e:
            logger.error(f"Transcription failed: {e}")
            return None
        text = (getattr(transcription, "text", "") or "").strip()
        return text or None
