import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
from groq import APIStatusError, APITimeoutError

from festeasy.llm.config import LLMConfig
from festeasy.llm.groq_client import _build_user_message, request_recommendation
from festeasy.recommendations.errors import ExternalServiceError
from festeasy.recommendations.models import Provider, RecommendationRequest

SAMPLE_REQUEST = RecommendationRequest(
    budget=5000,
    location="Polanco",
    event_type="cumpleanos",
    providers=[
        Provider(id="1", name="Delicious Catering", category="Food", price=25, rating=4.8, distance=2.5),
        Provider(id="2", name="Sound & Lights Pro", category="Music", price=150, rating=4.9, distance=1.8),
        Provider(id="3", name="Decoraciones Elegantes", category="Decoration", price=200, rating=4.7),
    ],
)

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)
NO_KEY_CONFIG = LLMConfig(api_key="", enabled=True)

_GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"


def _mock_groq_response(content: str | None) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@patch("festeasy.llm.groq_client.Groq")
def test_request_returns_raw_model_text(mock_groq_cls):
    llm_text = json.dumps({"recommendations": [], "totalCost": 0, "summary": "x"})
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_text)

    result = request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)

    assert result == llm_text


@patch("festeasy.llm.groq_client.Groq")
def test_request_uses_single_bounded_call(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("{}")

    request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)

    mock_groq_cls.assert_called_once_with(
        api_key="test-key", timeout=ENABLED_CONFIG.timeout, max_retries=0,
    )
    kwargs = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs
    assert kwargs["temperature"] == 0.3
    assert kwargs["top_p"] == 1.0
    assert kwargs["max_tokens"] == 2048
    assert kwargs["response_format"] == {"type": "json_object"}
    assert mock_groq_cls.return_value.chat.completions.create.call_count == 1


@patch("festeasy.llm.groq_client.Groq")
def test_request_sends_constraints_in_prompt(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("{}")

    request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)

    messages = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs["messages"]
    system, user = messages[0]["content"], messages[1]["content"]
    for field in ("recommendations", "totalCost", "summary", "reason"):
        assert field in system
    assert "Budget: 5000" in user
    assert "Location: Polanco" in user
    assert "Event type: cumpleanos" in user
    assert "Food, Music, Decoration" in user
    assert "Delicious Catering" in user


def test_prompt_defaults_event_type():
    request = SAMPLE_REQUEST.model_copy(update={"event_type": None})

    assert "Event type: General party" in _build_user_message(request)


def test_prompt_lists_each_category_once():
    request = SAMPLE_REQUEST.model_copy(update={
        "providers": SAMPLE_REQUEST.providers + [
            Provider(id="4", name="Taquiza", category="Food", price=18, rating=4.6),
        ],
    })

    assert "each category: Food, Music, Decoration." in _build_user_message(request)


@patch("festeasy.llm.groq_client.Groq")
def test_request_non_success_status_raises(mock_groq_cls):
    response = httpx.Response(503, request=httpx.Request("POST", _GROQ_URL))
    mock_groq_cls.return_value.chat.completions.create.side_effect = APIStatusError(
        "unavailable", response=response, body=None,
    )

    with pytest.raises(ExternalServiceError, match="503"):
        request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)


@patch("festeasy.llm.groq_client.Groq")
def test_request_timeout_raises(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = APITimeoutError(
        request=httpx.Request("POST", _GROQ_URL),
    )

    with pytest.raises(ExternalServiceError):
        request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)


@patch("festeasy.llm.groq_client.Groq")
def test_request_unexpected_error_raises(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = RuntimeError("socket closed")

    with pytest.raises(ExternalServiceError, match="socket closed"):
        request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)


@patch("festeasy.llm.groq_client.Groq")
def test_request_without_choices_raises(mock_groq_cls):
    response = MagicMock()
    response.choices = []
    mock_groq_cls.return_value.chat.completions.create.return_value = response

    with pytest.raises(ExternalServiceError):
        request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG)


@patch("festeasy.llm.groq_client.Groq")
def test_request_empty_content_returns_empty_string(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(None)

    assert request_recommendation(SAMPLE_REQUEST, config=ENABLED_CONFIG) == ""


@patch("festeasy.llm.groq_client.Groq")
def test_request_disabled(mock_groq_cls):
    with pytest.raises(ExternalServiceError):
        request_recommendation(SAMPLE_REQUEST, config=DISABLED_CONFIG)

    mock_groq_cls.assert_not_called()


@patch("festeasy.llm.groq_client.Groq")
def test_request_missing_api_key(mock_groq_cls):
    with pytest.raises(ExternalServiceError, match="not configured"):
        request_recommendation(SAMPLE_REQUEST, config=NO_KEY_CONFIG)

    mock_groq_cls.assert_not_called()


@pytest.mark.parametrize("budget, shown", [
    (1_500_000, "1500000"),
    (123_456.78, "123456.78"),
    (25_000_000.0, "25000000"),
])
def test_prompt_shows_budget_with_every_digit(budget, shown):
    request = RecommendationRequest(
        budget=budget, location="Polanco", providers=SAMPLE_REQUEST.providers,
    )

    message = _build_user_message(request)

    assert f"Budget: {shown}\n" in message
    assert f"budget of {shown}." in message
    assert "e+" not in message
