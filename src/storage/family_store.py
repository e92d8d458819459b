"""
Supabase (PostgREST) storage for family events and announcements
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from config.settings import Config

logger = logging.getLogger(__name__)

# (column, operator, value), e.g. ("start_time", "gte", "2025-01-01T00:00:00+02:00")
Filter = Tuple[str, str, Any]


class StoreError(Exception):
    """Storage request failed; the message carries the upstream error text"""


def _iso(value) -> str:
    return value.isoformat() if isinstance(value, datetime) else str(value)


class BaseFamilyStore:
    """Domain queries shared by every store, built on four primitives"""

    def list(self, table: str, filters: Sequence[Filter] = (),
             order: Optional[Tuple[str, bool]] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def insert(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def delete(self, table: str, record_id: str) -> bool:
        raise NotImplementedError

    # Events

    def list_events(self, start=None, end=None) -> List[Dict[str, Any]]:
        """Events whose start falls in [start, end], either bound optional"""
        filters = []
        if start:
            filters.append(("start_time", "gte", _iso(start)))
        if end:
            filters.append(("start_time", "lte", _iso(end)))
        return self.list(Config.EVENTS_TABLE, filters, order=("start_time", True))

    def events_with_reminders(self, since) -> List[Dict[str, Any]]:
        filters = [("reminder_minutes", "not.is", "null"), ("start_time", "gte", _iso(since))]
        return self.list(Config.EVENTS_TABLE, filters)

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        rows = self.list(Config.EVENTS_TABLE, [("id", "eq", event_id)])
        return rows[0] if rows else None

    def create_event(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(Config.EVENTS_TABLE, fields)

    def update_event(self, event_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.update(Config.EVENTS_TABLE, event_id, fields)

    def delete_event(self, event_id: str) -> bool:
        return self.delete(Config.EVENTS_TABLE, event_id)

    # Announcements

    def list_announcements(self) -> List[Dict[str, Any]]:
        return self.list(Config.ANNOUNCEMENTS_TABLE, order=("created_at", False))

    def create_announcement(self, text: str, color: int = 0) -> Dict[str, Any]:
        return self.insert(Config.ANNOUNCEMENTS_TABLE, {"text": text, "color": color})

    def delete_announcement(self, announcement_id: str) -> bool:
        return self.delete(Config.ANNOUNCEMENTS_TABLE, announcement_id)


class FamilyStore(BaseFamilyStore):
    """Talks to the Supabase REST endpoint with the service-role key"""

    def __init__(self, url: str = None, service_key: str = None, timeout: int = None):
        self.config = Config()
        self.base_url = (url or self.config.SUPABASE_URL).rstrip("/")
        self.service_key = service_key or self.config.SUPABASE_SERVICE_ROLE_KEY
        self.timeout = timeout or self.config.STORE_TIMEOUT

        if not self.base_url or not self.service_key:
            raise StoreError("Missing Supabase configuration")

        self.session = requests.Session()
        self.session.headers.update({
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        })
        logger.info(f"Initialized Supabase store: {self.base_url}")

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, params=None, json_body=None,
                 prefer: str = None) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = self.session.request(
                method, self._table_url(table), params=params, json=json_body,
                headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Storage request failed: {method} {table}: {e}")
            raise StoreError(str(e)) from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.error(f"Storage error {response.status_code} on {method} {table}: {message}")
            raise StoreError(message)

        if not response.content:
            return None
        return response.json()

    def list(self, table, filters=(), order=None):
        params = [("select", "*")]
        for column, op, value in filters:
            params.append((column, f"{op}.{value}"))
        if order:
            column, ascending = order
            params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        rows = self._request("GET", table, params=params) or []
        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    def insert(self, table, fields):
        rows = self._request("POST", table, json_body=fields, prefer="return=representation")
        if not rows:
            raise StoreError(f"Insert into {table} returned no row")
        logger.info(f"Inserted row {rows[0].get('id')} into {table}")
        return rows[0]

    def update(self, table, record_id, fields):
        rows = self._request("PATCH", table, params=[("id", f"eq.{record_id}")],
                             json_body=fields, prefer="return=representation")
        if not rows:
            raise StoreError(f"Row {record_id} not found in {table}")
        logger.info(f"Updated row {record_id} in {table}")
        return rows[0]

    def delete(self, table, record_id):
        self._request("DELETE", table, params=[("id", f"eq.{record_id}")])
        logger.info(f"Deleted row {record_id} from {table}")
        return True
