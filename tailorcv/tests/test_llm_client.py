"""
Tests for the language-model client: retries, error translation, usage tracking.
"""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from tailorcv.app.core.config import settings
from tailorcv.app.core.exceptions import (
    ConfigurationError,
    EmptyExtraction,
    InvalidInput,
    InvalidModelOutput,
    ModelError,
    RateLimited,
    ServiceUnavailable,
    Unauthorized,
)
from tailorcv.app.services.llm_client import LanguageModelClient, translate_provider_error

from tailorcv.tests.helpers import completion, openai_client

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, status_code):
    return cls("provider said no", response=httpx.Response(status_code, request=_REQUEST), body=None)


def _connection_error():
    return openai.APIConnectionError(request=_REQUEST)


@pytest.fixture
def backoff():
    with patch("tailorcv.app.services.llm_client._backoff", new_callable=AsyncMock) as mock:
        yield mock


def _llm(side_effect, recorder=None):
    client, create = openai_client(side_effect)
    return LanguageModelClient(user_id="user_test_1", usage_recorder=recorder, client=client), create


def _generate(llm):
    return asyncio.run(llm.generate_resume_from_vision_analysis("Jane Doe, Python engineer", "Senior Backend Engineer"))


def test_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "")
    with pytest.raises(ConfigurationError):
        LanguageModelClient()


def test_rate_limit_retried_with_exponential_backoff(backoff):
    """429 is retried; delays double; the last failure surfaces as RateLimited"""
    llm, create = _llm([_status_error(openai.RateLimitError, 429)] * 3)
    with pytest.raises(RateLimited):
        _generate(llm)
    assert create.await_count == settings.openai_max_retries
    assert [c.args[0] for c in backoff.await_args_list] == [1.0, 2.0]


def test_server_error_then_success(backoff):
    llm, create = _llm([_status_error(openai.InternalServerError, 500), completion('{"title": "ok"}')])
    assert json.loads(_generate(llm)) == {"title": "ok"}
    assert create.await_count == 2
    assert backoff.await_count == 1


def test_connection_error_maps_to_service_unavailable(backoff):
    llm, create = _llm([_connection_error()] * 3)
    with pytest.raises(ServiceUnavailable):
        _generate(llm)
    assert create.await_count == 3


def test_auth_error_not_retried(backoff):
    llm, create = _llm([_status_error(openai.AuthenticationError, 401)])
    with pytest.raises(Unauthorized):
        _generate(llm)
    assert create.await_count == 1
    backoff.assert_not_awaited()


def test_bad_request_not_retried(backoff):
    llm, create = _llm([_status_error(openai.BadRequestError, 400)])
    with pytest.raises(ModelError):
        _generate(llm)
    assert create.await_count == 1


def test_invalid_json_is_not_retried(backoff):
    llm, create = _llm([completion("Sure! Here is your resume")])
    with pytest.raises(InvalidModelOutput):
        _generate(llm)
    assert create.await_count == 1


def test_generation_requests_json_object(backoff):
    llm, create = _llm([completion("{}")])
    _generate(llm)
    kwargs = create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["model"] == settings.openai_model
    assert "Senior Backend Engineer" in kwargs["messages"][1]["content"]


def test_usage_recorded_only_on_success(backoff):
    recorder = MagicMock()
    llm, _ = _llm([completion("{}")], recorder)
    _generate(llm)
    recorder.assert_called_once()

    recorder = MagicMock()
    llm, _ = _llm([_status_error(openai.AuthenticationError, 401)], recorder)
    with pytest.raises(Unauthorized):
        _generate(llm)
    recorder.assert_not_called()


def test_failing_usage_recorder_does_not_fail_generation(backoff):
    recorder = MagicMock(side_effect=RuntimeError("db down"))
    llm, _ = _llm([completion("{}")], recorder)
    assert _generate(llm) == "{}"


def test_blank_inputs_rejected_before_calling_model(backoff):
    llm, create = _llm([completion("{}")])
    with pytest.raises(InvalidInput):
        asyncio.run(llm.generate_resume_from_vision_analysis("   ", "JD"))
    with pytest.raises(InvalidInput):
        asyncio.run(llm.generate_hr_message({"firstName": "Jane"}, "JD", "  "))
    create.assert_not_awaited()


def test_analyze_image_empty_output(backoff):
    llm, create = _llm([completion("   ")])
    with pytest.raises(EmptyExtraction):
        asyncio.run(llm.analyze_image("data:image/png;base64,AAAA"))
    assert create.await_count == 1


def test_analyze_image_sends_high_detail_image(backoff):
    llm, create = _llm([completion("Jane Doe\nEngineer")])
    assert asyncio.run(llm.analyze_image("data:image/png;base64,AAAA")) == "Jane Doe\nEngineer"
    content = create.await_args.kwargs["messages"][1]["content"]
    assert content[1]["image_url"] == {"url": "data:image/png;base64,AAAA", "detail": "high"}
    assert create.await_args.kwargs["max_tokens"] == 4000


def test_cover_letter_and_hr_message(backoff):
    recorder = MagicMock()
    llm, create = _llm([completion("Dear team"), completion("Hi Sam")], recorder)
    resume = {"firstName": "Jane", "skills": ["Python"]}
    assert asyncio.run(llm.generate_cover_letter(resume, "Backend role")) == "Dear team"
    assert create.await_args.kwargs["max_tokens"] == 1500
    assert asyncio.run(llm.generate_hr_message(resume, "Backend role", " Sam ")) == "Hi Sam"
    assert create.await_args.kwargs["max_tokens"] == 1000
    assert "Sam" in create.await_args.kwargs["messages"][1]["content"]
    assert recorder.call_count == 2


def test_translate_provider_error():
    assert isinstance(translate_provider_error(_status_error(openai.RateLimitError, 429)), RateLimited)
    assert isinstance(translate_provider_error(_status_error(openai.InternalServerError, 503)), ServiceUnavailable)
    assert isinstance(translate_provider_error(_connection_error()), ServiceUnavailable)
    assert isinstance(translate_provider_error(ValueError("x")), ModelError)
