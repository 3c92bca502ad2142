"""
Configuration settings for the Tab AI Scheduler
"""
import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    # Completion provider: "gemini", "openai" (any OpenAI-compatible server) or "mock"
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").lower()
    GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
    GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-exp")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "http://localhost:4000/v1")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "NULL")  # vLLM doesn't require a key
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "llama-3.2-3b")
    LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "15"))

    # Extraction is near-deterministic; free-form questions are not
    EXTRACTION_TEMPERATURE = 0.1
    EXTRACTION_MAX_TOKENS = 200
    ASK_TEMPERATURE = 0.5
    ASK_MAX_TOKENS = 150
    ASK_TOP_P = 0.8
    ASK_TOP_K = 40

    # Google OAuth / Calendar
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI", "http://localhost:3000/oauth2callback")
    GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
    GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
    SCOPES: List[str] = ["https://www.googleapis.com/auth/calendar"]
    OAUTH_TIMEOUT = float(os.getenv("OAUTH_TIMEOUT", "10"))
    CALENDAR_TIMEOUT = float(os.getenv("CALENDAR_TIMEOUT", "10"))
    CALENDAR_ID = "primary"
    USE_MOCK_CALENDAR = _env_bool("USE_MOCK_CALENDAR")

    # Event defaults
    TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
    DEFAULT_EVENT_SUMMARY = os.getenv("DEFAULT_EVENT_SUMMARY", "Meeting")
    DEFAULT_EVENT_DURATION_MINUTES = 60
    DEFAULT_START_OFFSET_MINUTES = 60
    REMINDER_MINUTES = int(os.getenv("REMINDER_MINUTES", "10"))

    # API Configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("PORT", "3000"))
    CORS_METHODS = ["POST", "GET", "OPTIONS"]
    CORS_HEADERS = ["Content-Type"]

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")

    # Date/Time Formats
    LOCAL_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

    EVENT_EXTRACTION_PROMPT = """You turn scheduling requests into calendar events. Extract event details from the request below and return ONLY a valid JSON response.

CURRENT TIME: {current_time}
REQUEST: "{utterance}"

REQUIRED JSON FORMAT:
{{"summary": "event title", "startDateTime": "2025-01-15T14:00:00", "endDateTime": "2025-01-15T15:00:00", "attendees": ["email1@example.com"]}}

RULES:
1. Datetimes are local ISO 8601 without offset: YYYY-MM-DDTHH:MM:SS
2. "tomorrow" = the next calendar day after the current time
3. "next week" = next Monday at 09:00
4. A time of day with no date = today's date
5. No duration mentioned = the event lasts one hour
6. No title mentioned = "{default_summary}"
7. attendees = only email addresses that appear in the request, otherwise []

Return ONLY the JSON object (no explanations):"""

    def get_model_config(self, provider: str = None) -> Dict[str, str]:
        """Get connection settings for the configured completion provider"""
        provider = provider or self.LLM_PROVIDER
        if provider == "openai":
            return {
                "base_url": self.OPENAI_BASE_URL,
                "api_key": self.OPENAI_API_KEY,
                "model": self.OPENAI_MODEL,
            }
        return {
            "base_url": self.GEMINI_BASE_URL,
            "api_key": self.GOOGLE_API_KEY,
            "model": self.GEMINI_MODEL,
        }

    def is_oauth_configured(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)

    def describe(self) -> Dict[str, str]:
        """Startup summary with secrets reduced to configured / missing"""
        return {
            "llm_provider": self.LLM_PROVIDER,
            "llm_model": self.get_model_config()["model"],
            "google_api_key": "configured" if self.GOOGLE_API_KEY else "missing",
            "google_client_id": "configured" if self.GOOGLE_CLIENT_ID else "missing",
            "redirect_uri": self.GOOGLE_REDIRECT_URI,
            "time_zone": self.TIME_ZONE,
            "mock_calendar": str(self.USE_MOCK_CALENDAR),
        }
