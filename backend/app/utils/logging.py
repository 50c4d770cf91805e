# backend/app/utils/logging.py
"""
Logging configuration for the valuation API.

Sets up the root logger once at startup:
- Level from LOG_LEVEL, output format from LOG_FORMAT ("text" or "json")
- Every record carries the request's correlation ID
- Chatty HTTP client loggers are held at WARNING

Log Levels:
    DEBUG   - Cache hits/misses, upstream row counts
    INFO    - Service wiring, provider calls, portfolio changes
    WARNING - Best-effort degradations, rate-limit skips, retries
    ERROR   - Hard provider failures, unhealthy database

Usage:
    from app.utils import setup_logging

    setup_logging()                       # settings from the environment
    setup_logging(level="DEBUG")          # override for local debugging
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from app.config import settings
from app.utils.context import get_correlation_id

# timestamp | level | correlation_id | logger | message
DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

# Held at WARNING
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "urllib3",
    "asyncio",
    "sqlalchemy.engine.Engine",
]

# LogRecord attributes that are not user "extra" fields
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
})


class CorrelationIdFilter(logging.Filter):
    """Stamps record.correlation_id so formatters can use %(correlation_id)s."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:

        {"timestamp": "...", "level": "INFO", "logger": "app.services...",
         "correlation_id": "...", "message": "...", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry)


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Overrides LOG_LEVEL
        log_format: Overrides LOG_FORMAT ("text" or "json")
        suppress_noisy_loggers: Hold NOISY_LOGGERS at WARNING

    Raises:
        ValueError: If the level name is unknown
    """
    level_name = level or settings.log_level
    log_level = _get_log_level(level_name)
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}",
        extra={"config": {"level": level_name, "format": format_type}},
    )


def _get_log_level(level_name: str) -> int:
    name = level_name.upper().strip()
    if name == "WARN":
        name = "WARNING"

    valid = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    if name not in valid:
        raise ValueError(
            f"Invalid log level: '{level_name}'. Valid levels are: {', '.join(valid)}"
        )
    return getattr(logging, name)


def get_logger(name: str) -> logging.Logger:
    """Standard logger; correlation IDs are added by the handler filter."""
    return logging.getLogger(name)
