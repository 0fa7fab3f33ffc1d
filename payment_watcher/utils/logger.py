import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log line.
    Fields passed through `extra=` are emitted next to the message.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S,%f%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str = "watcher") -> logging.Logger:
    """
    Returns a JSON-logging logger for the given name.
    Safe to call many times; it will only configure the logger once.
    """
    logger = logging.getLogger(name)

    if getattr(logger, "_configured", False):
        return logger

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    # We emit JSON ourselves; keep records away from the root handlers.
    logger.propagate = False

    logger._configured = True  # type: ignore[attr-defined]

    return logger


def set_level(level: str) -> None:
    """
    Apply a log level to every logger created through get_logger().
    Called once at startup with the configured LOG_LEVEL.
    """
    resolved = getattr(logging, level.upper(), logging.INFO)
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and getattr(logger, "_configured", False):
            logger.setLevel(resolved)


_base_logger = get_logger("watcher")


def log(message: str, **fields: Any) -> None:
    """
    Quick structured log line without grabbing a logger.
    Example:
        log("health.check", path="/health", method="GET")
    """
    if fields:
        _base_logger.info(message, extra=fields)
    else:
        _base_logger.info(message)
