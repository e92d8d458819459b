"""
Telegram webhook handling: commands, free-text and voice event creation,
and the inline delete button
"""
import logging
from typing import Any, Dict, Optional

from config.settings import Config
from src.ai_agent.llm_client import LLMError, LLMNoResponseError
from src.notifications.messages import HELP_MESSAGE, build_site_message, escape_html
from src.scheduler.family_scheduler import FamilyScheduler, MissingAPIKeyError
from src.storage.family_store import StoreError
from utils.validators import ValidationError

logger = logging.getLogger(__name__)

DELETE_CALLBACK_PREFIX = "delete_event:"

PROCESSING_MESSAGE = "🔄 מעבד..."
VOICE_PROCESSING_MESSAGE = "🎤 מעבד הודעה קולית..."
DELETED_MESSAGE = "🗑 האירוע נמחק מהיומן"
DELETE_FAILED_MESSAGE = "❌ שגיאה במחיקה"
MISSING_KEY_MESSAGE = "❌ שגיאה: חסר מפתח OpenAI"
MISSING_KEYS_MESSAGE = "❌ שגיאה: חסרים מפתחות API"
NOT_UNDERSTOOD_MESSAGE = "❌ לא הצלחתי להבין את ההודעה"
PARSE_FAILED_MESSAGE = "❌ לא הצלחתי לפענח את האירוע"
PROCESSING_FAILED_MESSAGE = "❌ שגיאה בעיבוד ההודעה"
DOWNLOAD_FAILED_MESSAGE = "❌ לא הצלחתי להוריד את ההודעה הקולית"
TRANSCRIBE_FAILED_MESSAGE = "❌ לא הצלחתי לתמלל את ההודעה הקולית"
VOICE_FAILED_MESSAGE = "❌ שגיאה בעיבוד הודעה קולית"
DELETE_BUTTON_TEXT = "🗑 מחק אירוע"


def delete_button(event_id: str):
    return [[{"text": DELETE_BUTTON_TEXT, "callback_data": f"{DELETE_CALLBACK_PREFIX}{event_id}"}]]


class FamilyBot:
    """Dispatches Telegram updates to the scheduler"""

    def __init__(self, scheduler: FamilyScheduler, bot_username: str = None):
        self.scheduler = scheduler
        self.telegram = scheduler.telegram
        self.bot_username = bot_username if bot_username is not None else Config.TELEGRAM_BOT_USERNAME
        self.commands = {
            "/today": self.handle_today,
            "/tomorrow": self.handle_tomorrow,
            "/week": self.handle_week,
            "/site": self.handle_site,
            "/help": self.handle_help,
            "/start": self.handle_help,
        }

    def match_command(self, text: str) -> Optional[str]:
        """Return the bare command for ``/cmd`` or ``/cmd@<bot username>``"""
        suffix = f"@{self.bot_username}" if self.bot_username else None
        for command in self.commands:
            if text == command or (suffix and text == f"{command}{suffix}"):
                return command
        return None

    def handle_update(self, update: Dict[str, Any]) -> str:
        """
        Handle one webhook update and return what was done.

        Never raises; the webhook must always answer ok so Telegram does
        not redeliver.
        """
        try:
            callback = update.get("callback_query")
            if callback:
                return self.handle_callback(callback)

            message = update.get("message")
            if not message:
                return "ignored"

            chat_id = str(message["chat"]["id"])
            if message.get("voice"):
                self.handle_voice(chat_id, message["voice"]["file_id"])
                return "voice"

            text = (message.get("text") or "").strip()
            if not text:
                return "ignored"

            command = self.match_command(text)
            if command:
                self.commands[command](chat_id)
                return command
            if text.startswith("/"):
                return "ignored"

            self.handle_add_event(chat_id, text)
            return "add_event"
        except Exception as e:
            logger.error(f"❌ Webhook update failed: {e}")
            return "error"

    def handle_callback(self, callback: Dict[str, Any]) -> str:
        data = callback.get("data") or ""
        if not data.startswith(DELETE_CALLBACK_PREFIX):
            return "ignored"

        chat_id = str(callback["message"]["chat"]["id"])
        message_id = callback["message"]["message_id"]
        event_id = data[len(DELETE_CALLBACK_PREFIX):]
        try:
            self.scheduler.delete_event(event_id)
            text = DELETED_MESSAGE
        except StoreError as e:
            logger.error(f"Delete from button failed for {event_id}: {e}")
            text = DELETE_FAILED_MESSAGE
        self.telegram.edit(chat_id, message_id, text)
        return "delete_event"

    # Commands

    def handle_today(self, chat_id: str):
        self.telegram.send(chat_id, self.scheduler.day_schedule_message(self.scheduler.today()))

    def handle_tomorrow(self, chat_id: str):
        self.telegram.send(chat_id, self.scheduler.day_schedule_message(self.scheduler.tomorrow()))

    def handle_week(self, chat_id: str):
        self.telegram.send(chat_id, self.scheduler.week_schedule_message())

    def handle_site(self, chat_id: str):
        self.telegram.send(chat_id, build_site_message(Config.APP_URL))

    def handle_help(self, chat_id: str):
        self.telegram.send(chat_id, HELP_MESSAGE)

    # Event creation

    def handle_add_event(self, chat_id: str, text: str):
        if self.scheduler.llm_client is None:
            self.telegram.send(chat_id, MISSING_KEY_MESSAGE)
            return

        self.telegram.send(chat_id, PROCESSING_MESSAGE)
        try:
            result = self.scheduler.add_event_from_text(text, chat_id=chat_id)
        except MissingAPIKeyError:
            self.telegram.send(chat_id, MISSING_KEY_MESSAGE)
            return
        except LLMNoResponseError:
            self.telegram.send(chat_id, NOT_UNDERSTOOD_MESSAGE)
            return
        except (LLMError, ValidationError):
            self.telegram.send(chat_id, PARSE_FAILED_MESSAGE)
            return
        except StoreError as e:
            self.telegram.send(chat_id, f"❌ שגיאה בשמירה: {e}")
            return
        except (KeyError, ValueError) as e:
            logger.error(f"Could not build event from '{text}': {e}")
            self.telegram.send(chat_id, PROCESSING_FAILED_MESSAGE)
            return

        self.telegram.send(chat_id, result["message"], delete_button(result["event"]["id"]))
        logger.info(f"🤖 Added event {result['event']['id']} from chat {chat_id}")

    def handle_voice(self, chat_id: str, file_id: str):
        llm = self.scheduler.llm_client
        if not self.telegram.configured or llm is None:
            self.telegram.send(chat_id, MISSING_KEYS_MESSAGE)
            return

        self.telegram.send(chat_id, VOICE_PROCESSING_MESSAGE)
        audio = self.telegram.download_file(file_id)
        if audio is None:
            self.telegram.send(chat_id, DOWNLOAD_FAILED_MESSAGE)
            return

        transcript = llm.transcribe(audio, "voice.ogg")
        if not transcript:
            self.telegram.send(chat_id, TRANSCRIBE_FAILED_MESSAGE)
            return

        self.telegram.send(chat_id, f"📝 תמלול: \"{escape_html(transcript)}\"")
        self.handle_add_event(chat_id, transcript)
