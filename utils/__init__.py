"""
Utility modules for the Tab AI Scheduler
"""

from .logger import SmartCalendarLogger
from .validators import RequestValidator, DataSanitizer

__all__ = ['SmartCalendarLogger', 'RequestValidator', 'DataSanitizer']
