"""Structured JSON logging for the API.

Every line is a single JSON object so CloudWatch Logs Insights can query
fields directly. Optional file output via AUDIT_LOG_FILE.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from listbackup_api.config.settings import get_settings

LOGGER_NAME = "listbackup.audit"

# Correlates all log lines emitted while serving one request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(""),
        }
        if hasattr(record, "audit_data"):
            log_entry.update(record.audit_data)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging() -> None:
    """Attach JSON handlers to the API logger according to settings."""
    settings = get_settings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = JSONFormatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if settings.audit_log_file:
        file_handler = logging.FileHandler(settings.audit_log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Lambda installs its own root handler; don't print twice
    logger.propagate = False


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestTimer:
    """Context manager to measure request latency."""

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
