"""
Google Calendar integration for the Tab AI Scheduler
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config.settings import Config
from src.scheduler.errors import CalendarInsertError, ErrorKind
from src.scheduler.event_materializer import CalendarEvent

logger = logging.getLogger(__name__)

PERMISSION_REASONS = {"insufficientPermissions", "forbidden", "ACCESS_TOKEN_SCOPE_INSUFFICIENT"}

# Last-resort message signatures, only consulted when the error carries no usable status or reason
AUTH_EXPIRED_SIGNATURES = ("invalid_grant", "token expired", "expired or revoked", "invalid credentials")
PERMISSION_SIGNATURES = ("insufficient", "permission denied")


@dataclass
class InsertResult:
    event_id: str
    link: str
    access_token: str
    expiry: Optional[datetime] = None
    token_refreshed: bool = False


def _http_error_reasons(error: HttpError) -> set:
    reasons = set()
    details = getattr(error, "error_details", None)
    if isinstance(details, list):
        for detail in details:
            if isinstance(detail, dict):
                reasons.update(str(detail.get(key)) for key in ("reason", "status") if detail.get(key))
    try:
        payload = json.loads(error.content.decode("utf-8"))
        for item in payload.get("error", {}).get("errors", []):
            if item.get("reason"):
                reasons.add(item["reason"])
        if payload.get("error", {}).get("status"):
            reasons.add(payload["error"]["status"])
    except (ValueError, AttributeError):
        pass
    return reasons


def classify_calendar_error(error: Exception) -> Tuple[ErrorKind, Optional[int]]:
    """Map a calendar client failure onto an ErrorKind and HTTP status"""
    if isinstance(error, RefreshError):
        return ErrorKind.AUTH_EXPIRED, None

    status = None
    if isinstance(error, HttpError):
        status = error.resp.status
        if status == 401:
            return ErrorKind.AUTH_EXPIRED, status
        if status == 403 and _http_error_reasons(error) & PERMISSION_REASONS:
            return ErrorKind.PERMISSION_DENIED, status

    message = str(error).lower()
    if any(signature in message for signature in AUTH_EXPIRED_SIGNATURES):
        return ErrorKind.AUTH_EXPIRED, status
    if any(signature in message for signature in PERMISSION_SIGNATURES):
        return ErrorKind.PERMISSION_DENIED, status
    return ErrorKind.OTHER, status


class CalendarManager:
    """Wraps the Calendar API events.insert call"""

    def __init__(self, config: Config = None):
        self.config = config or Config()
        self.timeout = self.config.CALENDAR_TIMEOUT

    def _build_calendar_service(self, credentials: Credentials):
        http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=self.timeout))
        return build("calendar", "v3", http=http, cache_discovery=False)

    def insert(self, credentials: Credentials, event: CalendarEvent) -> InsertResult:
        """Create the event on the user's primary calendar"""
        original_token = credentials.token
        try:
            calendar_service = self._build_calendar_service(credentials)
            created_event = calendar_service.events().insert(
                calendarId=self.config.CALENDAR_ID,
                body=event.to_body(),
            ).execute()
        except (HttpError, RefreshError, TransportError, httplib2.HttpLib2Error, OSError) as e:
            kind, status = classify_calendar_error(e)
            logger.error(f"❌ Calendar insert failed ({kind.value}): {e}")
            raise CalendarInsertError(str(e), kind=kind, status=status) from e

        logger.info(f"✅ Event created: {created_event.get('htmlLink')}")
        return InsertResult(
            event_id=created_event.get("id", ""),
            link=created_event.get("htmlLink", ""),
            access_token=credentials.token,
            expiry=credentials.expiry,
            token_refreshed=credentials.token != original_token,
        )
