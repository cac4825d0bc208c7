"""
Structured logging.

Log calls attach their data under ``extra={"extra_fields": {...}}``. The JSON
formatter merges those fields into the record; the development formatter
prints them as ``key=value`` pairs after the message. Request and user ids
are picked up from context variables set per request.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from gamerec.core.config import get_settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[int | None] = ContextVar("user_id", default=None)

# Third-party loggers and the level they are held at
NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def _context_fields() -> dict[str, Any]:
    fields: dict[str, Any] = {}
    request_id = request_id_var.get()
    if request_id:
        fields["request_id"] = request_id
    user_id = user_id_var.get()
    if user_id is not None:
        fields["user_id"] = user_id
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, service: str, environment: str):
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "service": self.service,
            "env": self.environment,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_fields(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(getattr(record, "extra_fields", None) or {})

        # Russian reason strings and game names stay readable
        return json.dumps(log_data, ensure_ascii=False, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored single-line output with the extra fields inlined."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)

        context = _context_fields()
        tags = []
        if "request_id" in context:
            tags.append(context["request_id"][:8])
        if "user_id" in context:
            tags.append(f"u{context['user_id']}")
        prefix = f"[{' '.join(tags)}] " if tags else ""

        line = f"{color}{record.levelname:8}{self.RESET} {prefix}{record.name}: {record.getMessage()}"

        fields = getattr(record, "extra_fields", None)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _build_formatter(settings) -> logging.Formatter:
    log_format = settings.LOG_FORMAT.lower()
    if log_format == "auto":
        log_format = "json" if settings.ENVIRONMENT == "production" else "text"
    if log_format == "json":
        return JSONFormatter(service=settings.APP_NAME, environment=settings.ENVIRONMENT)
    return DevelopmentFormatter()


def setup_logging() -> None:
    """Install a single stdout handler on the root logger."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(settings))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers = [handler]

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """Adds fixed fields to every record; per-call extra_fields win on conflict."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})
        extra["extra_fields"] = {**self.extra, **extra.get("extra_fields", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> ContextLogger:
    """Logger bound to context fields such as user_id or game_id."""
    return ContextLogger(get_logger(name), context)
