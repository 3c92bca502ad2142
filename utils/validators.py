"""
Validation utilities for the Tab AI Scheduler
"""
import re
from typing import Any, Dict, List

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class RequestValidator:
    """Validator for incoming API requests"""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format"""
        return bool(re.match(EMAIL_PATTERN, email))

    @staticmethod
    def require_fields(request_data: Dict[str, Any], fields: List[str]) -> List[str]:
        """Return the required fields that are missing, blank or not strings"""
        missing = []
        for field in fields:
            value = request_data.get(field)
            if not isinstance(value, str) or not value.strip():
                missing.append(field)
        return missing


class DataSanitizer:
    """Sanitize and clean input data"""

    @staticmethod
    def sanitize_email(email: str) -> str:
        return email.strip().lower()

    @staticmethod
    def clean_attendees(attendees: List[str]) -> List[str]:
        """Normalise attendee emails, dropping invalid ones and duplicates, keeping order"""
        cleaned = []
        for email in attendees:
            email = DataSanitizer.sanitize_email(email)
            if RequestValidator.validate_email(email) and email not in cleaned:
                cleaned.append(email)
        return cleaned
