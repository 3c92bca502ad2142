"""
Mock calendar manager for running without Google Calendar
"""
import logging
import uuid
from typing import List, Optional

from src.calendar.calendar_manager import InsertResult
from src.scheduler.errors import CalendarInsertError
from src.scheduler.event_materializer import CalendarEvent

logger = logging.getLogger(__name__)


class MockCalendarManager:
    """Records inserted events instead of calling the Calendar API"""

    def __init__(self, fail_with: Optional[CalendarInsertError] = None):
        self.events: List[CalendarEvent] = []
        self.calls = 0
        self.fail_with = fail_with

    def insert(self, credentials, event: CalendarEvent) -> InsertResult:
        self.calls += 1
        if self.fail_with is not None:
            logger.info(f"MOCK: failing insert with {self.fail_with.kind.value}")
            raise self.fail_with

        self.events.append(event)
        event_id = f"mock_event_{uuid.uuid4().hex[:12]}"
        logger.info(f"MOCK: created event {event.summary} from {event.start_time} to {event.end_time}")
        return InsertResult(
            event_id=event_id,
            link=f"https://calendar.google.com/calendar/event?eid={event_id}",
            access_token=getattr(credentials, "token", ""),
            expiry=getattr(credentials, "expiry", None),
        )
