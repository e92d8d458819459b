"""
Validation utilities for the Family Schedule Assistant
"""
import re
from datetime import datetime
from typing import Any, Dict, List


class ValidationError(ValueError):
    """A request is missing something it needs; maps to HTTP 400"""


class RequestValidator:
    """Presence checks for incoming payloads"""

    EVENT_REQUIRED_FIELDS = ["title", "person", "category", "start_time", "end_time"]

    @staticmethod
    def validate_timestamp(value: str) -> bool:
        """Validate ISO-8601 timestamp format"""
        try:
            datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            return True
        except ValueError:
            return False

    @staticmethod
    def missing_fields(data: Dict[str, Any], required: List[str]) -> List[str]:
        return [field for field in required if not data.get(field)]

    @staticmethod
    def validate_event_payload(data: Dict[str, Any]) -> List[str]:
        """Validate an event create payload and return list of errors"""
        errors = []
        if not isinstance(data, dict):
            return ["Payload must be a JSON object"]

        for field in RequestValidator.missing_fields(data, RequestValidator.EVENT_REQUIRED_FIELDS):
            errors.append(f"Missing required field: {field}")

        for field in ("start_time", "end_time"):
            if data.get(field) and not RequestValidator.validate_timestamp(data[field]):
                errors.append(f"Invalid {field} format: {data[field]}")

        return errors

    @staticmethod
    def require(data: Dict[str, Any], required: List[str], message: str):
        if not isinstance(data, dict) or RequestValidator.missing_fields(data, required):
            raise ValidationError(message)


class DataSanitizer:
    """Sanitize and clean input data"""

    @staticmethod
    def sanitize_text(text: str) -> str:
        """Collapse whitespace"""
        return re.sub(r"\s+", " ", (text or "").strip())

    @staticmethod
    def sanitize_event(data: Dict[str, Any]) -> Dict[str, Any]:
        """Keep known event fields, normalising optional ones"""
        reminder = data.get("reminder_minutes")
        return {
            "title": DataSanitizer.sanitize_text(data.get("title", "")),
            "person": (data.get("person") or "").strip(),
            "category": (data.get("category") or "").strip(),
            "start_time": data.get("start_time"),
            "end_time": data.get("end_time"),
            "recurring": bool(data.get("recurring") or False),
            "reminder_minutes": int(reminder) if reminder else None,
            "notes": data.get("notes") or None,
        }
