"""JSON-lines logging for the bounce client.

Anything passed through ``extra=`` lands as a top-level key next to the
message, so ``logger.info("Move Z Axis %s", "up", extra={"direction": "up"})``
renders as one object with a ``direction`` field.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any

import orjson

# Attributes every LogRecord carries; whatever else is set came from ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extra_fields(record),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=repr).decode()


def configure_logging(level: str = "INFO", *, name: str = "farmbot-bounce") -> logging.Logger:
    """Route all records through one stderr handler emitting JSON lines."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
    return logging.getLogger(name)


def redact_token(token: str, visible: int = 8) -> str:
    """Keep only a short prefix of a credential for log output."""
    if len(token) <= visible:
        return "***"
    return f"{token[:visible]}..."


__all__ = ["JsonFormatter", "configure_logging", "redact_token"]
