"""
Pytest configuration and fixtures
"""
import pytest
from datetime import date, datetime
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

from config.settings import Config, FamilyConfig
from src.ai_agent.mock_llm_client import MockLLMClient
from src.calendar.models import FamilyEvent
from src.notifications.telegram_client import TelegramClient
from src.scheduler.family_scheduler import FamilyScheduler
from src.storage.mock_family_store import MockFamilyStore

TZ = ZoneInfo("Asia/Jerusalem")

# Monday
DAY = date(2025, 3, 10)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=TZ)


def make_event(event_id, person="אבא", start=None, end=None, title=None,
               category="אחר", **extra) -> FamilyEvent:
    return FamilyEvent(
        event_id=event_id,
        title=title or f"event {event_id}",
        person=person,
        category=category,
        start_time=start or at(9),
        end_time=end or at(10),
        **extra
    )


@pytest.fixture
def family_config():
    """Test family configuration"""
    return FamilyConfig(
        members=["אבא", "אמא", "נועה"],
        default_person="כולם",
        categories=["אימון", "חוג", "עבודה", "משפחה", "אחר"],
        member_emojis=["👨", "👩", "👧"],
        timezone="Asia/Jerusalem",
    )


@pytest.fixture
def mock_store():
    return MockFamilyStore()


@pytest.fixture
def telegram():
    """Telegram client double that accepts every send"""
    client = MagicMock(spec=TelegramClient)
    client.configured = True
    client.send.return_value = True
    client.send_to_all.return_value = True
    client.edit.return_value = True
    client.download_file.return_value = b"OggS..."
    return client


@pytest.fixture
def llm(family_config):
    return MockLLMClient(family_config)


@pytest.fixture
def scheduler(mock_store, llm, telegram, family_config):
    scheduler = FamilyScheduler(store=mock_store, llm_client=llm, telegram=telegram,
                                family_config=family_config)
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def app(scheduler):
    from src.api.flask_server import create_app

    app = create_app(scheduler)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def cron_enabled(monkeypatch):
    """Cron endpoints run unless a test disables them"""
    monkeypatch.setattr(Config, "DISABLE_CRON_JOBS", False)
    monkeypatch.setattr(Config, "CRON_SECRET", "")
