import pytest
import requests
from openai import OpenAIError
from unittest.mock import MagicMock, patch

from src.ai_agent.llm_client import LLMClient, create_llm_client
from src.ai_agent.mock_llm_client import MockLLMClient
from src.scheduler.errors import ConfigError, UpstreamLLMError


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload or {}
    return response


GEMINI_REPLY = {
    "candidates": [{"content": {"parts": [{"text": '{"summary": "Lunch"}'}]}}],
    "usageMetadata": {"totalTokenCount": 57},
}


def test_gemini_request_shape(config):
    with patch("src.ai_agent.llm_client.requests.post", return_value=_response(payload=GEMINI_REPLY)) as post:
        result = LLMClient(config).generate("prompt text", temperature=0.1, max_tokens=200)

    assert result.text == '{"summary": "Lunch"}'
    assert result.tokens_used == 57

    args, kwargs = post.call_args
    assert args[0].endswith(f"/models/{config.GEMINI_MODEL}:generateContent")
    assert kwargs["json"]["contents"] == [{"parts": [{"text": "prompt text"}]}]
    assert kwargs["json"]["generationConfig"] == {"temperature": 0.1, "maxOutputTokens": 200}
    assert kwargs["headers"]["x-goog-api-key"] == "test-api-key"
    assert kwargs["timeout"] == config.LLM_TIMEOUT


def test_gemini_non_success_raises_with_status_and_body(config):
    with patch("src.ai_agent.llm_client.requests.post",
               return_value=_response(status_code=429, text="RESOURCE_EXHAUSTED")):
        with pytest.raises(UpstreamLLMError) as excinfo:
            LLMClient(config).generate("prompt", temperature=0.1, max_tokens=200)

    assert excinfo.value.status == 429
    assert excinfo.value.body == "RESOURCE_EXHAUSTED"


def test_gemini_transport_failure_raises(config):
    with patch("src.ai_agent.llm_client.requests.post", side_effect=requests.Timeout("read timed out")):
        with pytest.raises(UpstreamLLMError):
            LLMClient(config).generate("prompt", temperature=0.1, max_tokens=200)


def test_gemini_without_candidates_returns_empty_text(config):
    with patch("src.ai_agent.llm_client.requests.post", return_value=_response(payload={"candidates": []})):
        result = LLMClient(config).generate("prompt", temperature=0.1, max_tokens=200)

    assert result.text == ""


def test_gemini_non_json_success_raises(config):
    response = _response(text="<html>upstream proxy</html>")
    response.json.side_effect = ValueError("Expecting value")

    with patch("src.ai_agent.llm_client.requests.post", return_value=response):
        with pytest.raises(UpstreamLLMError) as excinfo:
            LLMClient(config).generate("prompt", temperature=0.1, max_tokens=200)

    assert excinfo.value.message == "Gemini returned an unreadable response"
    assert excinfo.value.status == 200
    assert excinfo.value.body == "<html>upstream proxy</html>"


@pytest.mark.parametrize("payload", [
    {"candidates": "oops"},
    {"candidates": [{"content": {"parts": [{"text": 7}]}}]},
    {"candidates": [{"content": ["not", "a", "dict"]}]},
    ["not", "an", "object"],
])
def test_gemini_malformed_candidates_raise(config, payload):
    with patch("src.ai_agent.llm_client.requests.post", return_value=_response(payload=payload)):
        with pytest.raises(UpstreamLLMError):
            LLMClient(config).generate("prompt", temperature=0.1, max_tokens=200)


def test_missing_api_key_is_config_error(config):
    config.GOOGLE_API_KEY = None

    with patch("src.ai_agent.llm_client.requests.post") as post:
        with pytest.raises(ConfigError):
            LLMClient(config).generate("prompt", temperature=0.1, max_tokens=200)

    post.assert_not_called()


def test_ask_builds_context_prompt(config):
    with patch("src.ai_agent.llm_client.requests.post", return_value=_response(payload=GEMINI_REPLY)) as post:
        LLMClient(config).ask("What is this page about?", "Tab 1: Python docs", max_tokens=100, temperature=0.7)

    body = post.call_args.kwargs["json"]
    assert body["contents"][0]["parts"][0]["text"] == "What is this page about?\n\nContext:\nTab 1: Python docs"
    assert body["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 100, "topP": 0.8, "topK": 40}


def test_ask_without_context(config):
    with patch("src.ai_agent.llm_client.requests.post", return_value=_response(payload=GEMINI_REPLY)) as post:
        LLMClient(config).ask("Hello?")

    assert post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"].endswith("No context provided")


def test_ask_empty_answer_raises(config):
    empty = {"candidates": [{"content": {"parts": [{"text": "   "}]}}]}
    with patch("src.ai_agent.llm_client.requests.post", return_value=_response(payload=empty)):
        with pytest.raises(UpstreamLLMError):
            LLMClient(config).ask("Hello?")


def test_openai_provider_uses_completions(config):
    config.LLM_PROVIDER = "openai"
    completion = MagicMock()
    completion.choices = [MagicMock(text='{"summary": "Standup"}')]
    completion.usage.total_tokens = 12

    client = LLMClient(config)
    with patch.object(client._openai.completions, "create", return_value=completion) as create:
        result = client.generate("prompt", temperature=0.1, max_tokens=200)

    assert result.text == '{"summary": "Standup"}'
    assert result.tokens_used == 12
    assert create.call_args.kwargs["model"] == config.OPENAI_MODEL
    assert create.call_args.kwargs["max_tokens"] == 200


def test_create_llm_client_selects_mock(config):
    config.LLM_PROVIDER = "mock"
    assert isinstance(create_llm_client(config), MockLLMClient)


def test_create_llm_client_defaults_to_gemini(config):
    client = create_llm_client(config)
    assert isinstance(client, LLMClient)
    assert client.provider == "gemini"


def test_openai_client_errors_are_wrapped(config):
    config.LLM_PROVIDER = "openai"
    client = LLMClient(config)

    with patch.object(client._openai.completions, "create", side_effect=OpenAIError("unexpected payload")):
        with pytest.raises(UpstreamLLMError) as excinfo:
            client.generate("prompt", temperature=0.1, max_tokens=200)

    assert "unexpected payload" in excinfo.value.message
