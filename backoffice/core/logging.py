"""
Logging configuration for the API and the CLI.

- **Console handler**: coloured, human-readable lines.
- **Rotating JSON file**: one JSON object per line for log aggregation, plus a
  separate error-only file.
- **Request-ID correlation**: the middleware stores the current request id in
  a context variable; :class:`RequestIDFilter` copies it onto every record so
  both formatters can print it.

Call :func:`setup_logging` once at start-up.  Modules only ever do
``logger = logging.getLogger(__name__)``.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from backoffice.core.config import settings

# Set by RequestContextMiddleware for the lifetime of one HTTP request.
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_FILE_NAME = "backoffice.log"
ERROR_LOG_FILE_NAME = "backoffice-error.log"

# Extra attributes copied into JSON lines when a caller passes them via ``extra=``.
_EXTRA_FIELDS = (
    "status_code",
    "method",
    "path",
    "elapsed_ms",
    "fund_id",
    "capital_call_id",
    "lp_id",
)


class RequestIDFilter(logging.Filter):
    """Attach the active request id (if any) to each record as ``request_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects::

        {"timestamp": "2025-02-17T10:30:00+00:00", "level": "INFO",
         "logger": "backoffice.services.capital_call_service",
         "message": "Recorded payment ...", "request_id": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with ANSI-coloured level names."""

    COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        request_id = getattr(record, "request_id", None)
        rid_str = f" [{request_id[:8]}]" if request_id else ""

        base = (
            f"{timestamp} | {colour}{record.levelname:<8}{self.RESET} | "
            f"{record.name}{rid_str} | {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def _resolve_level(level: Optional[str]) -> int:
    if settings.DEBUG:
        return logging.DEBUG
    name = (level or settings.LOG_LEVEL).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(level: Optional[str] = None, to_files: bool = True) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    level : str, optional
        Overrides ``settings.LOG_LEVEL``.  ``DEBUG=true`` always wins.
    to_files : bool
        The API writes rotating JSON files; the CLI passes ``False`` and only
        logs to the console.

    Repeated calls are no-ops once the root logger has handlers.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    resolved = _resolve_level(level)
    root_logger.setLevel(resolved)
    request_filter = RequestIDFilter()

    console_handler = logging.StreamHandler(sys.stderr if not to_files else sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.addFilter(request_filter)
    root_logger.addHandler(console_handler)

    if to_files:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        for file_name, file_level in (
            (LOG_FILE_NAME, resolved),
            (ERROR_LOG_FILE_NAME, logging.ERROR),
        ):
            handler = RotatingFileHandler(
                filename=os.path.join(settings.LOG_DIR, file_name),
                maxBytes=settings.LOG_FILE_MAX_BYTES,
                backupCount=settings.LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
            handler.setLevel(file_level)
            handler.setFormatter(JSONFormatter())
            handler.addFilter(request_filter)
            root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if settings.DEBUG else logging.WARNING
    )

    root_logger.debug(
        "Logging initialized: level=%s, files=%s",
        logging.getLevelName(resolved),
        os.path.join(settings.LOG_DIR, LOG_FILE_NAME) if to_files else "disabled",
    )
