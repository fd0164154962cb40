"""
Structured Logging Configuration Module

JSON (or plain text) log lines for account requests, manager decisions and
notification dispatch. Every logger lives under the ``retail_banking``
namespace so one call to setup_logging configures the whole package, and a
per-request correlation id is attached to every record logged while that
request is handled.
"""

import contextvars
import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "retail_banking"

# Structured fields a record may carry besides its message
STRUCTURED_FIELDS = ("correlation_id", "user_id", "action", "resource", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(correlation_id)s %(message)s"

_correlation_id = contextvars.ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str):
    """Tag every record logged inside the block with correlation_id"""
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class CorrelationFilter(logging.Filter):
    """Copies the context's correlation id onto records that lack one"""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record; unset structured fields are omitted"""

    def format(self, record):
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", log_format: str = "json",
                  log_file: Optional[str] = None,
                  logger_name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Configure the package logger from settings.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" for JSONFormatter, "text" for plain lines
        log_file: Append to this file instead of writing to stderr
        logger_name: Logger to configure; the package root by default

    Raises:
        ValueError: Unknown level or format
    """
    levelno = logging.getLevelName(level.upper())
    if not isinstance(levelno, int):
        raise ValueError(f"Unknown log level: {level!r}")
    if log_format not in ("json", "text"):
        raise ValueError(f"Unknown log format: {log_format!r} (expected json or text)")

    logger = logging.getLogger(logger_name)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8") if log_file else logging.StreamHandler()
    handler.addFilter(CorrelationFilter())
    handler.setFormatter(JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(levelno)
    logger.propagate = False
    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Logger inside the package namespace.

    Accepts a module ``__name__`` or a short component name: "workflows" and
    "retail_banking.workflows" give the same logger.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               user_id: Optional[str] = None, action: Optional[str] = None,
               resource: Optional[str] = None, correlation_id: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a domain event with structured fields.

    Args:
        logger: Logger instance
        level: Level name (debug, info, warning, error)
        message: Human-readable message
        user_id: User the event concerns
        action: Dotted event name, e.g. "account_request.approved"
        resource: Id of the account, request or notification involved
        correlation_id: Overrides the id of the current request scope
        extra: Additional structured data
    """
    levelno = logging.getLevelName(level.upper())
    if not logger.isEnabledFor(levelno):
        return

    fields = {
        "user_id": user_id,
        "action": action,
        "resource": resource,
        "correlation_id": correlation_id or get_correlation_id(),
        "extra": extra,
    }
    logger.log(levelno, message, extra={k: v for k, v in fields.items() if v is not None},
               stacklevel=2)
