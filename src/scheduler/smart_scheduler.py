"""
Smart Scheduler - orchestrates extraction, materialization and calendar insert
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict
from zoneinfo import ZoneInfo

from config.settings import Config
from src.ai_agent.intent_extractor import IntentExtractor
from src.ai_agent.llm_client import create_llm_client
from src.auth.credential_store import CredentialStore
from src.auth.oauth_flow import AuthorizationFlow
from src.scheduler.errors import (
    AuthExpiredError,
    CalendarInsertError,
    CalendarPermissionError,
    ErrorKind,
    SchedulerError,
    ValidationError,
)
from src.scheduler.event_materializer import EventMaterializer
from utils.logger import SmartCalendarLogger
from utils.validators import RequestValidator

logger = logging.getLogger(__name__)


def local_now(time_zone: str) -> datetime:
    return datetime.now(ZoneInfo(time_zone))


class ScheduleState(Enum):
    INVALID = "invalid"
    UNAUTHENTICATED = "unauthenticated"
    SCHEDULED = "scheduled"
    AUTH_EXPIRED = "auth_expired"
    PERMISSION_DENIED = "permission_denied"
    FAILED = "failed"


@dataclass
class ScheduleOutcome:
    """Terminal state of one scheduling request and the response it maps to"""
    state: ScheduleState
    status_code: int
    body: Dict[str, Any]


class SmartScheduler:
    """
    Turns one utterance into one calendar event for an authenticated user.

    Every component failure is caught here exactly once and mapped to a single
    outcome. Nothing is retried.
    """

    def __init__(self, credential_store: CredentialStore, auth_flow: AuthorizationFlow,
                 intent_extractor: IntentExtractor, materializer: EventMaterializer,
                 calendar_manager, config: Config = None):
        self.config = config or Config()
        self.credential_store = credential_store
        self.auth_flow = auth_flow
        self.intent_extractor = intent_extractor
        self.materializer = materializer
        self.calendar_manager = calendar_manager

    @classmethod
    def from_config(cls, credential_store: CredentialStore, config: Config = None,
                    llm_client=None) -> "SmartScheduler":
        config = config or Config()
        llm_client = llm_client or create_llm_client(config)
        if config.USE_MOCK_CALENDAR:
            from src.calendar.mock_calendar_manager import MockCalendarManager
            calendar_manager = MockCalendarManager()
            logger.info("🔄 Using mock calendar manager")
        else:
            from src.calendar.calendar_manager import CalendarManager
            calendar_manager = CalendarManager(config)
            logger.info("✅ Using real Google Calendar integration")

        return cls(
            credential_store=credential_store,
            auth_flow=AuthorizationFlow(config),
            intent_extractor=IntentExtractor(llm_client, config),
            materializer=EventMaterializer(config),
            calendar_manager=calendar_manager,
            config=config,
        )

    def now(self) -> datetime:
        return local_now(self.config.TIME_ZONE)

    def schedule(self, user_query: str, user_id: str, now: datetime = None) -> ScheduleOutcome:
        start_time = time.time()
        outcome = self._schedule(user_query, user_id, now or self.now())
        SmartCalendarLogger.log_schedule_outcome(
            user_id, outcome.state.value, outcome.status_code, time.time() - start_time
        )
        return outcome

    def _schedule(self, user_query: str, user_id: str, now: datetime) -> ScheduleOutcome:
        missing = RequestValidator.require_fields({"userQuery": user_query, "userId": user_id},
                                                  ["userQuery", "userId"])
        if missing:
            error = ValidationError("Missing required fields: userQuery and userId")
            return ScheduleOutcome(ScheduleState.INVALID, error.status_code, error.to_dict())

        credential = self.credential_store.get(user_id)
        if credential is None:
            logger.info(f"User not authenticated: {user_id}")
            return ScheduleOutcome(ScheduleState.UNAUTHENTICATED, 401, {
                "error": "User not authenticated",
                "action": "authenticate",
                "message": "Call /auth/url first to get an authentication URL",
            })

        try:
            logger.info("🤖 Parsing schedule request...")
            intent = self.intent_extractor.extract(user_query, now)
            if intent.is_empty():
                logger.warning("Extraction underdetermined, applying defaults")

            event = self.materializer.materialize(intent, user_query, now)

            logger.info("📨 Creating calendar event...")
            credentials = self.auth_flow.authorized_client(credential)
            result = self.calendar_manager.insert(credentials, event)
        except CalendarInsertError as e:
            return self._calendar_failure(user_id, e)
        except SchedulerError as e:
            logger.error(f"❌ Schedule error: {e}")
            return self._failed(e.message)

        if result.token_refreshed:
            # Refresh happened inside the client library; keep the rotated token
            self.credential_store.put(user_id, credential.with_access_token(result.access_token, result.expiry))

        return ScheduleOutcome(ScheduleState.SCHEDULED, 200, {
            "success": True,
            "message": f'Event "{event.summary}" scheduled successfully!',
            "event": {
                "id": result.event_id,
                "link": result.link,
                "summary": event.summary,
                "start": event.to_body()["start"],
                "end": event.to_body()["end"],
                "attendees": list(event.attendees),
            },
        })

    def _calendar_failure(self, user_id: str, error: CalendarInsertError) -> ScheduleOutcome:
        if error.kind == ErrorKind.AUTH_EXPIRED:
            self.credential_store.delete(user_id)
            expired = AuthExpiredError("Authentication expired")
            body = expired.to_dict()
            body["message"] = "Re-authenticate via /auth/url"
            return ScheduleOutcome(ScheduleState.AUTH_EXPIRED, expired.status_code, body)

        if error.kind == ErrorKind.PERMISSION_DENIED:
            denied = CalendarPermissionError("permission denied")
            body = denied.to_dict()
            body["message"] = "Grant calendar access via /auth/url"
            body["details"] = error.message
            return ScheduleOutcome(ScheduleState.PERMISSION_DENIED, denied.status_code, body)

        return self._failed(error.message)

    def _failed(self, message: str) -> ScheduleOutcome:
        return ScheduleOutcome(ScheduleState.FAILED, 500, {
            "error": message,
            "details": "Failed to schedule event",
        })
