"""
Notification outbox: mutations emit domain events, a dispatcher delivers them
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from config.settings import FamilyConfig
from src.calendar.models import FamilyEvent
from src.notifications.messages import build_new_event_message

logger = logging.getLogger(__name__)

EVENT_CREATED = "event_created"


class DomainEvent:
    """Something happened that the family should hear about"""

    def __init__(self, kind: str, payload: Dict[str, Any], exclude_chat_id: Optional[str] = None):
        self.kind = kind
        self.payload = payload
        self.exclude_chat_id = exclude_chat_id
        self.created_at = datetime.now(timezone.utc)
        self.attempts = 0
        self.last_error: Optional[str] = None

    def __repr__(self):
        return f"DomainEvent({self.kind!r}, attempts={self.attempts})"


class NotificationOutbox:
    """
    Delivers domain events through the Telegram client on a worker pool.

    A mutation only emits; it never waits for or depends on delivery.
    Undelivered events are kept in ``failed`` until ``retry_failed``.
    """

    def __init__(self, telegram, family_config: FamilyConfig, max_workers: int = 2):
        self.telegram = telegram
        self.family = family_config
        self.failed: List[DomainEvent] = []
        self.delivered = 0
        self._futures: List[Future] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="outbox")
        self._renderers: Dict[str, Callable[[Dict[str, Any]], str]] = {
            EVENT_CREATED: self._render_event_created,
        }

    def _render_event_created(self, payload: Dict[str, Any]) -> str:
        event = FamilyEvent.from_record(payload, ZoneInfo(self.family.timezone))
        return build_new_event_message(event, self.family)

    def emit(self, kind: str, payload: Dict[str, Any], exclude_chat_id: Optional[str] = None) -> Future:
        if kind not in self._renderers:
            raise ValueError(f"Unknown notification kind: {kind}")
        domain_event = DomainEvent(kind, payload, exclude_chat_id)
        future = self._executor.submit(self._deliver, domain_event)
        with self._lock:
            self._futures.append(future)
        # Runs inline when the delivery already finished, so it must be added outside the lock
        future.add_done_callback(self._forget)
        logger.debug(f"Emitted {domain_event}")
        return future

    def _forget(self, future: Future):
        with self._lock:
            if future in self._futures:
                self._futures.remove(future)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._futures)

    def _deliver(self, domain_event: DomainEvent) -> bool:
        domain_event.attempts += 1
        try:
            text = self._renderers[domain_event.kind](domain_event.payload)
            ok = self.telegram.send_to_all(text, exclude_chat_id=domain_event.exclude_chat_id)
            if not ok:
                domain_event.last_error = "delivery rejected"
        except Exception as e:
            logger.error(f"Notification {domain_event.kind} failed: {e}")
            domain_event.last_error = str(e)
            ok = False

        with self._lock:
            if ok:
                self.delivered += 1
            else:
                self.failed.append(domain_event)
        if not ok:
            logger.warning(f"Notification {domain_event.kind} not delivered "
                           f"(attempt {domain_event.attempts}): {domain_event.last_error}")
        return ok

    def retry_failed(self) -> int:
        """Redeliver failed events synchronously; returns how many went through"""
        with self._lock:
            pending, self.failed = self.failed, []
        return sum(1 for domain_event in pending if self._deliver(domain_event))

    def drain(self, timeout: Optional[float] = None):
        """Wait for in-flight deliveries"""
        with self._lock:
            futures, self._futures = self._futures, []
        wait(futures, timeout=timeout)

    def shutdown(self):
        self.drain()
        self._executor.shutdown(wait=True)
