"""
Logging utilities for the Family Schedule Assistant
"""
import json
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# HTTP clients log every request at INFO
QUIET_LOGGERS = ('urllib3', 'openai', 'httpx', 'werkzeug')


class FamilyScheduleLogger:
    """Logging setup and request summaries for the API and cron jobs"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None,
                      quiet_loggers=QUIET_LOGGERS):
        """Send logs to stdout and, when ``log_file`` is set, a rotating file"""
        formatter = logging.Formatter(LOG_FORMAT)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024,
                                               backupCount=3, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        for name in quiet_loggers:
            logging.getLogger(name).setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_request_response(route: str, request_data: dict,
                             response_data: dict, status: int, processing_time: float):
        """Log which keys went in and out of a route, never the Hebrew payloads themselves"""
        logger = logging.getLogger(__name__)

        summary = {
            "at": datetime.now().isoformat(timespec="seconds"),
            "route": route,
            "status": status,
            "ms": int(processing_time * 1000),
            "in": sorted((request_data or {}).keys()),
            "out": sorted((response_data or {}).keys()),
        }
        if status >= 400 and isinstance(response_data, dict):
            summary["error"] = response_data.get("error")

        level = logging.WARNING if status >= 500 else logging.INFO
        logger.log(level, f"📨 {json.dumps(summary, ensure_ascii=False)}")
