"""
LLM-assisted extraction of event details from a natural-language request
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.settings import Config

logger = logging.getLogger(__name__)


@dataclass
class EventIntent:
    """Whatever the model managed to extract. Every field may be missing."""
    summary: Optional[str] = None
    start_date_time: Optional[str] = None
    end_date_time: Optional[str] = None
    attendees: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.summary or self.start_date_time or self.end_date_time or self.attendees)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "startDateTime": self.start_date_time,
            "endDateTime": self.end_date_time,
            "attendees": list(self.attendees),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventIntent":
        """Keep only well-typed fields; anything malformed is treated as absent"""
        def text(key: str) -> Optional[str]:
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            return None

        attendees = data.get("attendees")
        if not isinstance(attendees, list):
            attendees = []

        return cls(
            summary=text("summary"),
            start_date_time=text("startDateTime"),
            end_date_time=text("endDateTime"),
            attendees=[a.strip() for a in attendees if isinstance(a, str) and a.strip()],
        )


def extract_first_json_object(response: str) -> Optional[str]:
    """Return the first balanced {...} substring, ignoring braces inside JSON strings"""
    start = response.find('{')
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(response[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return response[start:i + 1]
    return None


class IntentExtractor:
    """Turns an utterance into an EventIntent with one completion request"""

    def __init__(self, llm_client, config: Config = None):
        self.llm_client = llm_client
        self.config = config or Config()

    def build_prompt(self, utterance: str, now: datetime) -> str:
        return self.config.EVENT_EXTRACTION_PROMPT.format(
            current_time=now.strftime("%Y-%m-%dT%H:%M:%S (%A)"),
            utterance=utterance,
            default_summary=self.config.DEFAULT_EVENT_SUMMARY,
        )

    def extract(self, utterance: str, now: datetime) -> EventIntent:
        """Best-effort extraction.

        Provider failures raise UpstreamLLMError. A reply without a parseable
        JSON object yields an empty intent, which the materializer fills with
        defaults.
        """
        prompt = self.build_prompt(utterance, now)
        result = self.llm_client.generate(
            prompt,
            temperature=self.config.EXTRACTION_TEMPERATURE,
            max_tokens=self.config.EXTRACTION_MAX_TOKENS,
        )
        return self.parse_response(result.text)

    @staticmethod
    def parse_response(response: str) -> EventIntent:
        json_str = extract_first_json_object(response or "")
        if json_str is None:
            logger.warning("No JSON object in extraction response, using empty intent")
            return EventIntent()

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse extraction response: {e}")
            return EventIntent()

        if not isinstance(data, dict):
            return EventIntent()

        intent = EventIntent.from_dict(data)
        logger.info(f"📝 Parsed details: {intent.to_dict()}")
        return intent
