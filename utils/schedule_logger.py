"""
Per-person schedule logging for the cron jobs
"""
import logging
from typing import Dict, List, Sequence

logger = logging.getLogger(__name__)


class ScheduleLogger:
    """Logs what a digest or reminder run is about to send"""

    @staticmethod
    def log_day_schedule(label: str, events: Sequence) -> Dict[str, int]:
        """Log events grouped by person and return the per-person counts"""
        logger.info(f"📋 SCHEDULE - {label}")
        logger.info(f"   📊 Total events: {len(events)}")

        if not events:
            logger.info(f"   ✅ Nothing scheduled")
            return {}

        by_person: Dict[str, List] = {}
        for event in events:
            by_person.setdefault(event.person, []).append(event)

        for person, person_events in by_person.items():
            logger.info(f"   👤 {person} ({len(person_events)}):")
            for event in sorted(person_events, key=lambda e: e.start_time):
                logger.info(f"      {event.start_time:%H:%M}-{event.end_time:%H:%M} {event.title}")

        return {person: len(items) for person, items in by_person.items()}

    @staticmethod
    def log_reminder_run(checked: int, due: Sequence, results: Sequence[Dict]):
        logger.info(f"⏰ REMINDER CHECK: {checked} candidates, {len(due)} due")
        for result in results:
            status = "sent" if result.get("success") else "FAILED"
            logger.info(f"   {result.get('event_id')}: {status}")
