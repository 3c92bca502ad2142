import pytest
from datetime import datetime, timezone

from config.settings import Config
from src.ai_agent.intent_extractor import IntentExtractor
from src.api.flask_server import SmartCalendarAPI
from src.auth.credential_store import InMemoryCredentialStore, UserCredential
from src.auth.oauth_flow import AuthorizationFlow
from src.calendar.mock_calendar_manager import MockCalendarManager
from src.scheduler.event_materializer import EventMaterializer
from src.scheduler.smart_scheduler import SmartScheduler
from tests.stubs import StubLLMClient


@pytest.fixture
def config():
    """Config with test OAuth and provider settings, independent of the environment"""
    config = Config()
    config.LLM_PROVIDER = "gemini"
    config.GOOGLE_API_KEY = "test-api-key"
    config.GOOGLE_CLIENT_ID = "test-client-id.apps.googleusercontent.com"
    config.GOOGLE_CLIENT_SECRET = "test-client-secret"
    config.GOOGLE_REDIRECT_URI = "http://localhost:3000/oauth2callback"
    config.TIME_ZONE = "UTC"
    config.DEFAULT_EVENT_SUMMARY = "Meeting"
    config.REMINDER_MINUTES = 10
    config.USE_MOCK_CALENDAR = False
    return config


@pytest.fixture
def now():
    return datetime(2025, 1, 14, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def credential():
    return UserCredential(
        user_id="user-1",
        access_token="ya29.test-access-token",
        refresh_token="1//test-refresh-token",
        expiry=datetime(2025, 1, 14, 11, 0, 0),
        scopes=["https://www.googleapis.com/auth/calendar"],
    )


@pytest.fixture
def store():
    return InMemoryCredentialStore()


@pytest.fixture
def llm():
    return StubLLMClient()


@pytest.fixture
def calendar():
    return MockCalendarManager()


@pytest.fixture
def scheduler(config, store, llm, calendar):
    return SmartScheduler(
        credential_store=store,
        auth_flow=AuthorizationFlow(config),
        intent_extractor=IntentExtractor(llm, config),
        materializer=EventMaterializer(config),
        calendar_manager=calendar,
        config=config,
    )


@pytest.fixture
def make_api(config, store, scheduler, llm):
    """Build the Flask API around the shared fixtures, overriding any collaborator"""
    def _make(**overrides):
        kwargs = {
            "config": config,
            "credential_store": store,
            "scheduler": scheduler,
            "auth_flow": AuthorizationFlow(config),
            "llm_client": llm,
        }
        kwargs.update(overrides)
        api = SmartCalendarAPI(**kwargs)
        api.app.config["TESTING"] = True
        return api
    return _make


@pytest.fixture
def client(make_api):
    return make_api().app.test_client()
