"""
Fills the gaps of an extracted intent with deterministic defaults
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from config.settings import Config
from src.ai_agent.intent_extractor import EventIntent
from utils.validators import DataSanitizer

logger = logging.getLogger(__name__)


@dataclass
class CalendarEvent:
    """A fully resolved event, ready for the calendar insert call"""
    summary: str
    description: str
    start_time: str
    end_time: str
    time_zone: str
    attendees: List[str] = field(default_factory=list)
    reminders: Dict[str, Any] = field(default_factory=lambda: {"useDefault": True})

    def to_body(self) -> Dict[str, Any]:
        """Google Calendar events.insert body"""
        return {
            "summary": self.summary,
            "description": self.description,
            "start": {"dateTime": self.start_time, "timeZone": self.time_zone},
            "end": {"dateTime": self.end_time, "timeZone": self.time_zone},
            "attendees": [{"email": email} for email in self.attendees],
            "reminders": self.reminders,
        }


class EventMaterializer:
    """Pure defaulting step: no I/O, never raises, never reads the clock.

    Besides filling absent fields, an extracted end that is not after the start
    is discarded and replaced by start + default duration, so every event has a
    positive length.
    """

    def __init__(self, config: Config = None):
        self.config = config or Config()
        self.time_zone = self.config.TIME_ZONE
        self.tz = ZoneInfo(self.time_zone)
        self.default_summary = self.config.DEFAULT_EVENT_SUMMARY
        self.duration = timedelta(minutes=self.config.DEFAULT_EVENT_DURATION_MINUTES)
        self.start_offset = timedelta(minutes=self.config.DEFAULT_START_OFFSET_MINUTES)

    def _local(self, value: datetime) -> datetime:
        # Naive datetimes are already wall-clock time in the configured zone
        if value.tzinfo is None:
            return value
        return value.astimezone(self.tz).replace(tzinfo=None)

    def _parse(self, value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            return self._local(datetime.fromisoformat(value.replace('Z', '+00:00')))
        except ValueError:
            logger.warning(f"Ignoring unparseable datetime from extraction: {value}")
            return None

    def _format(self, value: datetime) -> str:
        return value.strftime(self.config.LOCAL_DATETIME_FORMAT)

    def materialize(self, intent: EventIntent, utterance: str, now: datetime) -> CalendarEvent:
        summary = intent.summary or self.default_summary

        start = self._parse(intent.start_date_time)
        if start is None:
            start = self._local(now) + self.start_offset

        # The end default is derived from the start chosen above, never from now
        end = self._parse(intent.end_date_time)
        if end is None or end <= start:
            end = start + self.duration

        return CalendarEvent(
            summary=summary,
            description=f'Scheduled by Tab AI from the request: "{utterance}"',
            start_time=self._format(start),
            end_time=self._format(end),
            time_zone=self.time_zone,
            attendees=DataSanitizer.clean_attendees(intent.attendees),
            reminders={
                "useDefault": False,
                "overrides": [{"method": "popup", "minutes": self.config.REMINDER_MINUTES}],
            },
        )
