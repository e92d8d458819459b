"""
Telegram Bot API client for family notifications
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import requests

from config.settings import Config

logger = logging.getLogger(__name__)

InlineKeyboard = List[List[Dict[str, str]]]


class TelegramClient:
    """Thin wrapper over sendMessage / editMessageText / getFile; failures return False"""

    def __init__(self, bot_token: str = None, chat_ids: List[str] = None, timeout: int = None):
        self.config = Config()
        self.bot_token = bot_token if bot_token is not None else self.config.TELEGRAM_BOT_TOKEN
        self.chat_ids = list(chat_ids if chat_ids is not None else self.config.TELEGRAM_CHAT_IDS)
        self.timeout = timeout or self.config.TELEGRAM_TIMEOUT
        self.api_url = f"{self.config.TELEGRAM_API_URL}/bot{self.bot_token}"
        self.file_url = f"{self.config.TELEGRAM_API_URL}/file/bot{self.bot_token}"

    @property
    def configured(self) -> bool:
        return bool(self.bot_token)

    def _post(self, method: str, payload: Dict) -> bool:
        try:
            response = requests.post(f"{self.api_url}/{method}", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Telegram {method} failed: {e}")
            return False
        if not response.ok:
            logger.error(f"Telegram {method} to {payload.get('chat_id')} failed: "
                         f"{response.status_code} - {response.text}")
        return response.ok

    def send(self, chat_id: str, text: str, inline_keyboard: Optional[InlineKeyboard] = None) -> bool:
        if not self.configured:
            return False
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        if inline_keyboard:
            payload["reply_markup"] = {"inline_keyboard": inline_keyboard}
        return self._post("sendMessage", payload)

    def send_to_all(self, text: str, exclude_chat_id: Optional[str] = None) -> bool:
        """Send to every configured chat in parallel; True only if all accepted"""
        if not self.configured or not self.chat_ids:
            return False

        targets = [c for c in self.chat_ids if c != exclude_chat_id]
        if not targets:
            return True

        with ThreadPoolExecutor(max_workers=min(len(targets), 5)) as executor:
            results = list(executor.map(lambda chat_id: self.send(chat_id, text), targets))

        logger.info(f"Broadcast to {len(targets)} chats: {sum(results)} delivered")
        return all(results)

    def edit(self, chat_id: str, message_id: int, text: str) -> bool:
        if not self.configured:
            return False
        return self._post("editMessageText", {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": "HTML",
        })

    def download_file(self, file_id: str) -> Optional[bytes]:
        """Fetch an uploaded file (voice message) by id"""
        if not self.configured:
            return None
        try:
            meta = requests.get(f"{self.api_url}/getFile", params={"file_id": file_id},
                                timeout=self.timeout).json()
            file_path = meta.get("result", {}).get("file_path") if meta.get("ok") else None
            if not file_path:
                logger.warning(f"Telegram getFile returned no path for {file_id}")
                return None
            response = requests.get(f"{self.file_url}/{file_path}", timeout=self.timeout)
            response.raise_for_status()
            return response.content
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to download Telegram file {file_id}: {e}")
            return None
