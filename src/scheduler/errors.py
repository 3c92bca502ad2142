"""
Error taxonomy for the scheduling pipeline

Components raise these; the scheduler and the API routes catch them once and
turn each into exactly one response.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """How a calendar or auth failure should be handled"""
    AUTH_EXPIRED = "auth_expired"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


class SchedulerError(Exception):
    status_code = 500
    action: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message}
        if self.action:
            body["action"] = self.action
        return body


class ValidationError(SchedulerError):
    """A required request field is missing"""
    status_code = 400


class ConfigError(SchedulerError):
    """Provider credentials are not configured"""
    status_code = 500


class UpstreamLLMError(SchedulerError):
    """The completion provider answered with a non-success status or nothing usable"""
    status_code = 500

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AuthExchangeError(SchedulerError):
    status_code = 500


class AuthExpiredError(SchedulerError):
    status_code = 401
    action = "reauthenticate"


class CalendarPermissionError(SchedulerError):
    status_code = 403
    action = "grant"


class CalendarInsertError(SchedulerError):
    """Calendar insert failed; kind tells the scheduler what to do about it"""
    status_code = 500

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER, status: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status = status
