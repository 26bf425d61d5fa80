import json
from unittest.mock import MagicMock, patch

from datematch.llm.config import LLMConfig
from datematch.llm.groq_client import enhance_reasoning

SAMPLE_CANDIDATES = [
    {"id": "roma", "name": "Trattoria Roma", "cuisine_type": "Italian", "price_range": "$$", "rating": 4.5,
     "tags": ["romantic", "cozy"], "reasoning": "Perfect cuisine match with Italian."},
    {"id": "bistro", "name": "Le Petit Bistro", "cuisine_type": "French", "price_range": "$", "rating": None,
     "tags": [], "reasoning": "Perfect cuisine match with French."},
]

SAMPLE_PREFERENCES = {
    "cuisines": ["Italian", "French"],
    "vibes": ["romantic"],
    "price_ranges": ["$$"],
    "partner": True,
}

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@patch("datematch.llm.groq_client.Groq")
def test_enhance_reasoning_returns_reasons(mock_groq_cls):
    llm_response = json.dumps({
        "venues": [
            {"id": "roma", "reason": "Candlelit pasta, made for two."},
            {"id": "bistro", "reason": "A relaxed French evening on a budget."},
        ]
    })
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=ENABLED_CONFIG)

    assert result == {
        "roma": "Candlelit pasta, made for two.",
        "bistro": "A relaxed French evening on a budget.",
    }


@patch("datematch.llm.groq_client.Groq")
def test_enhance_reasoning_ignores_unknown_ids(mock_groq_cls):
    llm_response = json.dumps({"venues": [{"id": "made-up", "reason": "Does not exist."}]})
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=ENABLED_CONFIG)

    assert result == {}


@patch("datematch.llm.groq_client.Groq")
def test_enhance_reasoning_prompt_lists_venues(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response('{"venues": []}')

    enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=ENABLED_CONFIG)

    messages = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs["messages"]
    user_message = messages[1]["content"]
    assert "| roma | Trattoria Roma | Italian | $$ | 4.5 |" in user_message
    assert "Planning for two people" in user_message


@patch("datematch.llm.groq_client.Groq")
def test_enhance_reasoning_fallback_on_api_error(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("API timeout")

    result = enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=ENABLED_CONFIG)

    assert result == {}


@patch("datematch.llm.groq_client.Groq")
def test_enhance_reasoning_fallback_on_bad_json(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("not valid json{{{")

    result = enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=ENABLED_CONFIG)

    assert result == {}


def test_enhance_reasoning_disabled():
    result = enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=DISABLED_CONFIG)

    assert result == {}


def test_enhance_reasoning_without_key():
    result = enhance_reasoning(SAMPLE_PREFERENCES, SAMPLE_CANDIDATES, config=LLMConfig(api_key="", enabled=True))

    assert result == {}


def test_enhance_reasoning_empty_candidates():
    result = enhance_reasoning(SAMPLE_PREFERENCES, [], config=ENABLED_CONFIG)

    assert result == {}
