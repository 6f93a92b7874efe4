"""JSON logging configuration for the Gostly API."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Install a single stdout JSON handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"gostly.{name}")


def mask_sender(sender: Optional[str]) -> str:
    """Keep the channel prefix and last four digits of a guest number, e.g. whatsapp:+***4567."""
    if not sender:
        return "unknown"
    channel, _, number = sender.rpartition(":")
    prefix = f"{channel}:" if channel else ""
    if len(number) <= 4:
        return f"{prefix}{number}"
    return f"{prefix}{'+' if number.startswith('+') else ''}***{number[-4:]}"


class LoggerAdapter(logging.LoggerAdapter):
    """Binds one guest message's sender and property code into every record."""

    @classmethod
    def for_message(cls, logger: logging.Logger, sender: Optional[str], code: Optional[str] = None):
        extra = {"sender": mask_sender(sender)}
        if code:
            extra["property_code"] = code
        return cls(logger, extra)

    def bind(self, **context: Any) -> "LoggerAdapter":
        return LoggerAdapter(self.logger, {**self.extra, **context})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = kwargs.pop("context", None)
        extra = kwargs.get("extra") or {}
        combined_context = {**self.extra, **(extra.get("context") or {}), **(context or {})}
        if combined_context:
            kwargs["extra"] = {**extra, "context": combined_context}
        return msg, kwargs
