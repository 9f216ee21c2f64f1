"""
Logging configuration.

Records from every handler carry a correlation_id: the request id set by
RequestIDMiddleware, or 'no-request-id' outside a request. LOG_FORMAT=json
switches all handlers to python-json-logger output for log aggregation.
When file logging is enabled, a rotating application log and a separate
rotating error log are written next to each other.
"""

import logging
import logging.config
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from useradmin.core.config import settings

# Set by RequestIDMiddleware for the duration of a request
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_TEXT_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(correlation_id)s] "
    "%(name)s:%(lineno)d - %(message)s"
)
_JSON_FIELDS = (
    "%(asctime)s %(name)s %(levelname)s %(correlation_id)s "
    "%(module)s %(funcName)s %(lineno)d %(message)s"
)

# Third-party loggers that get their own level and do not propagate
_LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "sqlalchemy.engine": "WARNING",  # INFO echoes every SQL statement
}


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = request_id_ctx.get() or "no-request-id"
        return True


def _rotating_file(path: str | Path, level: str, formatter: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": str(path),
        "maxBytes": settings.log_file_max_bytes,
        "backupCount": settings.log_file_backup_count,
        "encoding": "utf-8",
        "filters": ["correlation_id"],
    }


def get_logging_config() -> dict[str, Any]:
    """
    Build the dictConfig for the current settings.

    Returns:
        Dictionary compatible with logging.config.dictConfig()
    """
    formatter = "json" if settings.log_format == "json" else "text"

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": formatter,
            "stream": sys.stdout,
            "filters": ["correlation_id"],
        },
    }
    if settings.log_file_enabled:
        log_path = Path(settings.log_file_path)
        handlers["file"] = _rotating_file(log_path, settings.log_level, formatter)
        handlers["error_file"] = _rotating_file(
            log_path.parent / "error.log", "ERROR", formatter
        )

    app_handlers = list(handlers)

    loggers: dict[str, dict[str, Any]] = {
        name: {"level": level, "handlers": ["console"], "propagate": False}
        for name, level in _LIBRARY_LEVELS.items()
    }
    loggers["useradmin"] = {
        "level": settings.log_level,
        "handlers": app_handlers,
        "propagate": False,
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"format": _TEXT_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": _JSON_FIELDS,
                "rename_fields": {"levelname": "level", "asctime": "timestamp"},
            },
        },
        "filters": {"correlation_id": {"()": CorrelationIdFilter}},
        "handlers": handlers,
        "root": {"level": settings.log_level, "handlers": app_handlers},
        "loggers": loggers,
    }


def setup_logging() -> None:
    """Configure logging once at application startup."""
    if settings.log_file_enabled:
        Path(settings.log_file_path).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(get_logging_config())

    logging.getLogger(__name__).info(
        f"Logging configured: level={settings.log_level}, "
        f"format={settings.log_format}, file_enabled={settings.log_file_enabled}"
    )
