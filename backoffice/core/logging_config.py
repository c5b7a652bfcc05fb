"""Logging setup for the back office service."""

__all__ = [
    "JSONFormatter",
    "get_logger",
    "configure_logging",
]

import json
import logging
import sys
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "backoffice"

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Handle UUID, datetime, Decimal in log payloads."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


class JSONFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Structured extra data
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder, default=str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the backoffice namespace."""
    if name == _LOGGER_PREFIX or name.startswith(f"{_LOGGER_PREFIX}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: str | int = logging.INFO,
    json_output: bool = False,
    stream: Any = None,
) -> None:
    """Attach a single stream handler to the backoffice logger (idempotent)."""
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.setLevel(level)
    if logger.handlers:
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    logger.addHandler(handler)
