"""
In-memory store for testing and running without Supabase
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from src.calendar.models import parse_timestamp
from src.storage.family_store import BaseFamilyStore, StoreError

logger = logging.getLogger(__name__)


def _comparable(value):
    if isinstance(value, str):
        try:
            return parse_timestamp(value, timezone.utc)
        except ValueError:
            return value
    return value


def _matches(record: Dict[str, Any], column: str, op: str, value) -> bool:
    current = record.get(column)
    if op == "eq":
        return str(current) == str(value)
    if op == "not.is":
        return current is not None
    if op == "is":
        return current is None
    if current is None:
        return False
    left, right = _comparable(current), _comparable(value)
    if op == "gte":
        return left >= right
    if op == "lte":
        return left <= right
    if op == "gt":
        return left > right
    if op == "lt":
        return left < right
    raise StoreError(f"Unsupported filter operator: {op}")


class MockFamilyStore(BaseFamilyStore):
    """Keeps rows in dictionaries keyed by table name"""

    def __init__(self, tables: Dict[str, List[Dict[str, Any]]] = None):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for table, rows in (tables or {}).items():
            for row in rows:
                self.insert(table, row)
        logger.info("📋 MOCK: Initialized in-memory family store")

    def list(self, table, filters=(), order=None):
        rows = [dict(r) for r in self.tables.get(table, {}).values()]
        for column, op, value in filters:
            rows = [r for r in rows if _matches(r, column, op, value)]
        if order:
            column, ascending = order
            rows.sort(key=lambda r: _comparable(r.get(column) or ""), reverse=not ascending)
        return rows

    def insert(self, table, fields):
        record = dict(fields)
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.tables.setdefault(table, {})[str(record["id"])] = record
        logger.debug(f"📋 MOCK: Inserted {record['id']} into {table}")
        return dict(record)

    def update(self, table, record_id, fields):
        rows = self.tables.get(table, {})
        if str(record_id) not in rows:
            raise StoreError(f"Row {record_id} not found in {table}")
        rows[str(record_id)].update(fields)
        return dict(rows[str(record_id)])

    def delete(self, table, record_id):
        self.tables.get(table, {}).pop(str(record_id), None)
        return True
