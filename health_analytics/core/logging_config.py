"""
Logging setup for the analytics service.

Every line is a single JSON object. Besides the usual level/logger/message
fields it carries the request id and the subject (user_id) the request is
about, both taken from context variables so that services deep in the call
stack never pass them around, and a ``local_time`` in the reporting timezone
so log lines can be matched against report timestamps.

    {
        "timestamp": "2024-03-15T05:00:00.000Z",
        "local_time": "2024-03-15T12:00:00+07:00",
        "level": "INFO",
        "logger": "health_analytics.services.report.report_service",
        "message": "Report exported",
        "request_id": "a1b2c3d4",
        "subject_id": 7,
        "extra": {"format": "pdf", "bytes": 18234}
    }

Usage:
    setup_logging(tz=settings.reporting_timezone)   # once, at startup
    logger.info("Rendering report", extra={"format": "pdf"})
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional

# =============================================================================
# LOG CONTEXT
# =============================================================================

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
subject_id_var: ContextVar[Optional[int]] = ContextVar("subject_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_subject_id() -> Optional[int]:
    return subject_id_var.get()


def bind_subject(user_id: int) -> None:
    """Tag the rest of the current request's log lines with ``user_id``."""
    subject_id_var.set(user_id)


def clear_log_context() -> None:
    """Forget the request id and subject (end of request)."""
    request_id_var.set(None)
    subject_id_var.set(None)


# =============================================================================
# FORMATTERS
# =============================================================================

# LogRecord attributes that are never copied into "extra"
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
})


class JSONFormatter(logging.Formatter):
    """
    Single-line JSON formatter.

    Args:
        tz: Reporting timezone for the ``local_time`` field; omitted when None.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        super().__init__()
        self.tz = tz

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: Dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        }
        if self.tz is not None:
            log_entry["local_time"] = created.astimezone(self.tz).isoformat(timespec="seconds")
        log_entry.update({
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })

        request_id = get_request_id()
        if request_id:
            log_entry["request_id"] = request_id
        subject_id = get_subject_id()
        if subject_id is not None:
            log_entry["subject_id"] = subject_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ContextTextFormatter(logging.Formatter):
    """Human-readable lines with the request id and subject appended when set."""

    def __init__(self):
        super().__init__(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        tags = []
        request_id = get_request_id()
        if request_id:
            tags.append(f"req={request_id}")
        subject_id = get_subject_id()
        if subject_id is not None:
            tags.append(f"user={subject_id}")
        if tags:
            line = f"{line} [{' '.join(tags)}]"
        return line


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_uvicorn: bool = True,
    tz: Optional[tzinfo] = None,
) -> None:
    """
    Route all application and uvicorn logging through one stdout handler.

    LOG_LEVEL and LOG_FORMAT ("json" or "text") override the arguments.

    Args:
        level: Log level name.
        json_format: JSON lines if True, text lines otherwise.
        include_uvicorn: Also send uvicorn's loggers through the root handler.
        tz: Reporting timezone for JSON ``local_time``.
    """
    level = os.environ.get("LOG_LEVEL", level).upper()
    json_format = os.environ.get("LOG_FORMAT", "json" if json_format else "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(tz=tz) if json_format else ContextTextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    app_logger = logging.getLogger("health_analytics")
    app_logger.setLevel(level)
    app_logger.handlers = []
    app_logger.propagate = True

    if include_uvicorn:
        for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            logger = logging.getLogger(logger_name)
            logger.handlers = []
            logger.propagate = True

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "format": "json" if json_format else "text", "timezone": str(tz) if tz else None}
    )
