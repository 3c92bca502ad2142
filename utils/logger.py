"""
Logging utilities for the Tab AI Scheduler
"""
import json
import logging
import sys
from datetime import datetime


class SmartCalendarLogger:
    """Logging setup and structured request logging"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None):
        """Setup logging configuration"""

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Suppress some noisy loggers
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('googleapiclient').setLevel(logging.WARNING)
        logging.getLogger('google_auth_httplib2').setLevel(logging.WARNING)
        logging.getLogger('openai').setLevel(logging.WARNING)
        logging.getLogger('httpx').setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_schedule_outcome(user_id: str, state: str, status_code: int, processing_time: float):
        """One JSON line per scheduling request. Never includes tokens."""
        logger = logging.getLogger(__name__)

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "user_id": user_id,
            "state": state,
            "status_code": status_code,
            "processing_time_seconds": round(processing_time, 3),
        }

        logger.info(f"Schedule request processed: {json.dumps(log_entry)}")
