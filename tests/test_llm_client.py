"""
Tests for the OpenAI event parser
"""
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from src.ai_agent.llm_client import (LLMClient, LLMNoResponseError, LLMParseError,
                                     apply_event_defaults, extract_json_object)
from src.ai_agent.mock_llm_client import MockLLMClient

TODAY = date(2025, 3, 10)


def completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def openai_client():
    with patch("src.ai_agent.llm_client.OpenAI") as factory:
        yield factory.return_value


@pytest.fixture
def client(openai_client, family_config):
    return LLMClient(family_config=family_config)


class TestExtractJsonObject:

    def test_first_object_in_prose(self):
        text = 'Sure! {"title": "x", "notes": "a } inside"} and {"title": "y"}'
        assert extract_json_object(text) == {"title": "x", "notes": "a } inside"}

    def test_nested_object(self):
        assert extract_json_object('```json\n{"a": {"b": 1}}\n```') == {"a": {"b": 1}}

    def test_no_object(self):
        assert extract_json_object("no json here") is None

    def test_malformed_then_valid(self):
        assert extract_json_object('{bad} {"ok": true}') == {"ok": True}


class TestApplyEventDefaults:

    def test_fills_missing_optional_fields(self, family_config):
        result = apply_event_defaults({"title": "ארוחה", "start_time": "19:00"}, family_config, TODAY)

        assert result["date"] == "2025-03-10"
        assert result["end_date"] == "2025-03-10"
        assert result["end_time"] == "20:00"
        assert result["person"] == "כולם"
        assert result["category"] == "אחר"
        assert result["recurring"] is False
        assert result["reminder_minutes"] is None
        assert result["notes"] is None

    def test_end_time_capped_before_midnight(self, family_config):
        result = apply_event_defaults({"title": "x", "start_time": "23:30"}, family_config, TODAY)
        assert result["end_time"] == "23:59"

    def test_zero_reminder_means_none(self, family_config):
        result = apply_event_defaults({"title": "x", "reminder_minutes": 0}, family_config, TODAY)
        assert result["reminder_minutes"] is None


class TestLLMClient:
    """Completion parsing with the OpenAI client patched"""

    def test_parse_event(self, client, openai_client):
        openai_client.chat.completions.create.return_value = completion(
            'הנה: {"title": "אימון", "person": "אבא", "category": "אימון", "date": "2025-03-11", '
            '"start_time": "18:00", "reminder_minutes": 60}'
        )

        parsed = client.parse_event("אימון אבא מחר 18:00 תזכיר שעה לפני", today=TODAY)

        assert parsed["title"] == "אימון"
        assert parsed["end_time"] == "19:00"
        assert parsed["end_date"] == "2025-03-11"
        assert parsed["reminder_minutes"] == 60

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 300
        system_prompt = kwargs["messages"][0]["content"]
        assert "אבא, אמא, נועה, כולם" in system_prompt
        assert "היום: 2025-03-10 (יום שני)" in system_prompt

    def test_empty_response(self, client, openai_client):
        openai_client.chat.completions.create.return_value = completion(None)
        with pytest.raises(LLMNoResponseError) as exc:
            client.parse_event("x", today=TODAY)
        assert str(exc.value) == "No response from AI"

    def test_api_error_is_no_response(self, client, openai_client):
        openai_client.chat.completions.create.side_effect = OpenAIError("down")
        with pytest.raises(LLMNoResponseError):
            client.parse_event("x", today=TODAY)

    def test_response_without_json(self, client, openai_client):
        openai_client.chat.completions.create.return_value = completion("sorry, no idea")
        with pytest.raises(LLMParseError) as exc:
            client.parse_event("x", today=TODAY)
        assert str(exc.value) == "Could not parse AI response"

    def test_malformed_time_is_parse_error(self, client, openai_client):
        openai_client.chat.completions.create.return_value = completion('{"title": "x", "start_time": "soon"}')
        with pytest.raises(LLMParseError):
            client.parse_event("x", today=TODAY)

    def test_repeated_request_is_cached(self, client, openai_client):
        openai_client.chat.completions.create.return_value = completion('{"title": "x", "start_time": "10:00"}')
        client.parse_event("same", today=TODAY)
        client.parse_event("same", today=TODAY)
        assert openai_client.chat.completions.create.call_count == 1

    def test_transcribe(self, client, openai_client):
        openai_client.audio.transcriptions.create.return_value = MagicMock(text=" אימון מחר 18:00 ")
        assert client.transcribe(b"audio") == "אימון מחר 18:00"

        kwargs = openai_client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["model"] == "whisper-1"
        assert kwargs["language"] == "he"
        assert kwargs["file"] == ("voice.ogg", b"audio")

    def test_transcribe_failure(self, client, openai_client):
        openai_client.audio.transcriptions.create.side_effect = OpenAIError("bad audio")
        assert client.transcribe(b"audio") is None


class TestMockLLMClient:

    def test_tomorrow_and_reminder(self, family_config):
        parsed = MockLLMClient(family_config).parse_event("חוג נועה מחר 16:30 שעה לפני", today=TODAY)
        assert parsed["date"] == "2025-03-11"
        assert parsed["person"] == "נועה"
        assert parsed["category"] == "חוג"
        assert parsed["end_time"] == "17:30"
        assert parsed["reminder_minutes"] == 60

    def test_weekday(self, family_config):
        parsed = MockLLMClient(family_config).parse_event("אימון יום חמישי 18:00", today=TODAY)
        assert parsed["date"] == "2025-03-13"

    def test_requires_a_time(self, family_config):
        with pytest.raises(LLMParseError):
            MockLLMClient(family_config).parse_event("בלי שעה", today=TODAY)
