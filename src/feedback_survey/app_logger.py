"""Logging setup for the survey core."""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

LOGGER_NAME = "feedback_survey"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s session=%(session_id)s: %(message)s"

# Attached to every record emitted while a builder or respondent session is active.
_SESSION_ID: ContextVar[Optional[str]] = ContextVar("session_id", default=None)

_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "session_id"}


def set_session_id(session_id: Optional[str]) -> None:
    _SESSION_ID.set(session_id)


def clear_session_id() -> None:
    _SESSION_ID.set(None)


class SessionIdFilter(logging.Filter):
    """Adds session_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _SESSION_ID.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "session_id": getattr(record, "session_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        # extra={...} fields
        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except TypeError:
                payload[key] = str(value)

        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> logging.Logger:
    """Configure the package logger once; safe to call repeatedly."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(JsonFormatter() if json_logs else logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    base = logging.getLogger(LOGGER_NAME)
    if not name or name == LOGGER_NAME:
        return base
    if name.startswith(LOGGER_NAME + "."):
        name = name[len(LOGGER_NAME) + 1:]
    return base.getChild(name)
