"""
Mock LLM client for running without a completion provider
"""
import json
import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from config.settings import Config
from src.ai_agent.llm_client import CompletionResult

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'
TIME_PATTERN = r'\b(?:at\s+)?(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b'
WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


class MockLLMClient:
    """Answers extraction prompts with regex heuristics and echoes questions"""

    def __init__(self, config: Config = None):
        self.config = config or Config()
        self.model = "mock-llm"
        self.prompts = []
        logger.info(f"Initialized Mock LLM client: {self.model}")

    @property
    def is_configured(self) -> bool:
        return True

    def generate(self, prompt: str, temperature: float, max_tokens: int,
                 top_p: float = None, top_k: int = None) -> CompletionResult:
        self.prompts.append(prompt)
        request = re.search(r'REQUEST: "(.*)"', prompt)
        current = re.search(r'CURRENT TIME: (\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})', prompt)
        if not request or not current:
            return CompletionResult(text=f"Mock answer: {prompt.splitlines()[0]}", tokens_used=0)

        now = datetime.strptime(current.group(1), self.config.LOCAL_DATETIME_FORMAT)
        details = self.parse_request(request.group(1), now)
        logger.info(f"🤖 MOCK: Parsed request into {details}")
        return CompletionResult(text=f"```json\n{json.dumps(details)}\n```", tokens_used=0)

    def ask(self, question: str, tabs_context: str = None,
            max_tokens: int = None, temperature: float = None) -> CompletionResult:
        context = "with" if tabs_context else "without"
        return CompletionResult(text=f"Mock answer to '{question}' {context} tab context", tokens_used=0)

    def parse_request(self, utterance: str, now: datetime) -> dict:
        content_lower = utterance.lower()

        day = self._resolve_day(content_lower, now)
        time_of_day = self._resolve_time(content_lower)

        start = None
        if day is not None or time_of_day is not None:
            if day is None:
                day = now.date()
            if time_of_day is None:
                time_of_day = (9, 0)
            start = datetime(day.year, day.month, day.day, *time_of_day)

        details = {
            "summary": self._extract_summary(utterance),
            "attendees": re.findall(EMAIL_PATTERN, utterance),
        }
        if start is not None:
            end = start + timedelta(minutes=self._extract_duration(content_lower))
            details["startDateTime"] = start.strftime(self.config.LOCAL_DATETIME_FORMAT)
            details["endDateTime"] = end.strftime(self.config.LOCAL_DATETIME_FORMAT)
        return details

    def _resolve_day(self, content_lower: str, now: datetime):
        if 'tomorrow' in content_lower:
            return (now + timedelta(days=1)).date()
        if 'today' in content_lower or 'tonight' in content_lower:
            return now.date()
        if re.search(r'next\s+week', content_lower):
            return (now + timedelta(days=7 - now.weekday())).date()
        for index, weekday in enumerate(WEEKDAYS):
            if re.search(rf'\b{weekday}\b', content_lower):
                days_ahead = (index - now.weekday()) % 7 or 7
                return (now + timedelta(days=days_ahead)).date()
        return None

    def _resolve_time(self, content_lower: str) -> Optional[Tuple[int, int]]:
        match = re.search(TIME_PATTERN, content_lower)
        if not match:
            if 'noon' in content_lower:
                return (12, 0)
            return None
        hour = int(match.group(1)) % 12
        if match.group(3) == 'pm':
            hour += 12
        return (hour, int(match.group(2) or 0))

    def _extract_duration(self, content_lower: str) -> int:
        duration_patterns = [
            (r'(\d+)\s*hours?', lambda x: int(x) * 60),
            (r'(\d+)\s*(?:minutes?|mins?)', lambda x: int(x)),
            (r'half\s*(?:an?\s*)?hour', lambda x: 30),
        ]
        for pattern, converter in duration_patterns:
            match = re.search(pattern, content_lower)
            if match:
                return converter(match.group(1) if match.groups() else None)
        return self.config.DEFAULT_EVENT_DURATION_MINUTES

    def _extract_summary(self, utterance: str) -> str:
        # Title is whatever precedes the first date or time phrase
        cut = re.split(
            r'\s+(?:tomorrow|today|tonight|next\s+week|on\s+\w+day|\w+day|at\s+\d|\d{1,2}(?::\d{2})?\s*(?:am|pm)|with\s|for\s)',
            utterance,
            maxsplit=1,
            flags=re.IGNORECASE,
        )[0].strip(' .,')
        cut = re.sub(r'^(?:please\s+)?(?:schedule|book|set up|create|add)\s+(?:a\s+|an\s+)?', '', cut,
                     flags=re.IGNORECASE)
        return cut[:1].upper() + cut[1:] if cut else self.config.DEFAULT_EVENT_SUMMARY
