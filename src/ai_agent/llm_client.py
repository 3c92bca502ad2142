"""
Text-completion client for the Tab AI Scheduler

Talks to Gemini's generateContent REST endpoint, or to any OpenAI-compatible
completions server (vLLM, LiteLLM, ...) through the openai client.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from openai import APIConnectionError, APIStatusError, OpenAI, OpenAIError

from config.settings import Config
from src.scheduler.errors import ConfigError, UpstreamLLMError

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    text: str
    tokens_used: int = 0


class LLMClient:
    """Single-shot completion requests with an explicit timeout and no retries"""

    def __init__(self, config: Config = None, provider: str = None):
        self.config = config or Config()
        self.provider = (provider or self.config.LLM_PROVIDER).lower()
        self.model_config = self.config.get_model_config(self.provider)
        self.model = self.model_config["model"]
        self.timeout = self.config.LLM_TIMEOUT
        self._openai: Optional[OpenAI] = None

        if self.provider == "openai":
            self._openai = OpenAI(
                api_key=self.model_config["api_key"],
                base_url=self.model_config["base_url"],
                timeout=self.timeout,
                max_retries=0,
            )

        logger.info(f"Initialized {self.provider} completion client: {self.model}")

    @property
    def is_configured(self) -> bool:
        if self.provider == "openai":
            return True
        return bool(self.model_config["api_key"])

    def generate(self, prompt: str, temperature: float, max_tokens: int,
                 top_p: float = None, top_k: int = None) -> CompletionResult:
        """Send one prompt and return the first candidate's text (may be empty)"""
        if not self.is_configured:
            raise ConfigError("Google API key not configured")

        start_time = time.time()
        if self.provider == "openai":
            result = self._openai_request(prompt, temperature, max_tokens, top_p)
        else:
            result = self._gemini_request(prompt, temperature, max_tokens, top_p, top_k)

        logger.info(f"{self.provider} completion response: {time.time() - start_time:.2f}s, "
                    f"{result.tokens_used} tokens")
        return result

    def _gemini_request(self, prompt: str, temperature: float, max_tokens: int,
                        top_p: float = None, top_k: int = None) -> CompletionResult:
        generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if top_p is not None:
            generation_config["topP"] = top_p
        if top_k is not None:
            generation_config["topK"] = top_k

        try:
            response = requests.post(
                f"{self.model_config['base_url']}/models/{self.model}:generateContent",
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": generation_config,
                },
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.model_config["api_key"],
                },
            )
        except requests.RequestException as e:
            logger.error(f"Gemini request failed: {e}")
            raise UpstreamLLMError(f"Gemini request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Gemini API error: {response.status_code} - {response.text}")
            raise UpstreamLLMError(
                f"Gemini API error: {response.status_code} - {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
            text = ""
            candidates = data.get("candidates") or []
            if candidates:
                parts = (candidates[0].get("content") or {}).get("parts") or []
                if parts:
                    text = parts[0].get("text") or ""
            if not isinstance(text, str):
                raise TypeError(f"candidate text is {type(text).__name__}")
            tokens = int((data.get("usageMetadata") or {}).get("totalTokenCount", 0))
        except (ValueError, TypeError, AttributeError, IndexError, KeyError) as e:
            logger.error(f"Gemini returned an unreadable response: {e}")
            raise UpstreamLLMError(
                "Gemini returned an unreadable response",
                status=response.status_code,
                body=response.text,
            ) from e

        return CompletionResult(text=text, tokens_used=tokens)

    def _openai_request(self, prompt: str, temperature: float, max_tokens: int,
                        top_p: float = None) -> CompletionResult:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if top_p is not None:
            kwargs["top_p"] = top_p

        try:
            completion = self._openai.completions.create(**kwargs)
        except APIStatusError as e:
            logger.error(f"Completions request failed: {e.status_code} - {e.response.text}")
            raise UpstreamLLMError(
                f"Completions API error: {e.status_code} - {e.response.text}",
                status=e.status_code,
                body=e.response.text,
            ) from e
        except APIConnectionError as e:
            logger.error(f"Completions request failed: {e}")
            raise UpstreamLLMError(f"Completions request failed: {e}") from e
        except OpenAIError as e:
            logger.error(f"Completions client error: {e}")
            raise UpstreamLLMError(f"Completions client error: {e}") from e

        text = completion.choices[0].text if completion.choices else ""
        tokens = completion.usage.total_tokens if completion.usage else 0
        return CompletionResult(text=text or "", tokens_used=tokens)

    def ask(self, question: str, tabs_context: str = None,
            max_tokens: int = None, temperature: float = None) -> CompletionResult:
        """Answer a free-form question with the user's open tabs as context"""
        prompt = f"{question}\n\nContext:\n{tabs_context or 'No context provided'}"
        result = self.generate(
            prompt,
            temperature=self.config.ASK_TEMPERATURE if temperature is None else temperature,
            max_tokens=max_tokens or self.config.ASK_MAX_TOKENS,
            top_p=self.config.ASK_TOP_P,
            top_k=self.config.ASK_TOP_K,
        )
        if not result.text.strip():
            logger.warning("⚠️ Empty answer from completion provider")
            raise UpstreamLLMError("Completion provider returned empty response")
        return CompletionResult(text=result.text.strip(), tokens_used=result.tokens_used)


def create_llm_client(config: Config = None):
    """Pick the completion client named by LLM_PROVIDER"""
    config = config or Config()
    if config.LLM_PROVIDER == "mock":
        from src.ai_agent.mock_llm_client import MockLLMClient
        return MockLLMClient(config)
    return LLMClient(config)
