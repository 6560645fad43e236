"""JSON logging configuration for vitrine API."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Context keys whose values must never reach the log stream
SECRET_CONTEXT_KEYS = {"token", "instance_token", "api_key", "authorization"}


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    redacted = {}
    for key, value in context.items():
        if key.lower() in SECRET_CONTEXT_KEYS and value:
            redacted[key] = "***"
        else:
            redacted[key] = value
    return redacted


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            log_data["context"] = redact_context(context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Configure JSON logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(f"vitrine.{name}")


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that merges bound context with per-call context."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = kwargs.pop("context", None)
        if context or self.extra:
            combined_context = {**self.extra, **(context or {})}
            kwargs["extra"] = {"context": combined_context}
        return msg, kwargs


def bind_logger(name: str, **context: Any) -> ContextLogger:
    return ContextLogger(get_logger(name), context)
