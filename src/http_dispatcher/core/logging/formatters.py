"""
Log formatters: JSON for log shipping, plain text for humans.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Type

from .config import LogFormat

# Атрибуты, которые есть у любой LogRecord; всё остальное пришло через extra
STANDARD_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

TEXT_LAYOUT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
TEXT_DATE_LAYOUT = "%Y-%m-%d %H:%M:%S"


def extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed via `extra` (and added by filters)."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in STANDARD_RECORD_FIELDS and not key.startswith('_')
    }


class JSONFormatter(logging.Formatter):
    """
    Одна запись = одна JSON-строка. Время в UTC, ISO 8601.

    Example output:
        {"timestamp": "2024-01-15T10:30:45.123000+00:00", "level": "INFO",
         "logger": "http_dispatcher", "message": "Batch completed",
         "batch_id": "5f0c...", "requests": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(extra_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # frozenset кодов, исключения и т.п. сериализуются через str()
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """
    Example output:
        [2024-01-15 10:30:45] [INFO] [http_dispatcher] Batch completed batch_id=5f0c requests=3
    """

    def __init__(self):
        super().__init__(fmt=TEXT_LAYOUT, datefmt=TEXT_DATE_LAYOUT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [f"{key}={value}" for key, value in extra_fields(record).items()]
        return " ".join([line, *pairs])


_FORMATTERS: Dict[LogFormat, Type[logging.Formatter]] = {
    LogFormat.JSON: JSONFormatter,
    LogFormat.TEXT: TextFormatter,
}


def get_formatter(format_type: str) -> logging.Formatter:
    """
    Formatter instance for "json" or "text" (any case).

    Raises:
        ValueError: If format_type is unknown
    """
    try:
        key = LogFormat(format_type.lower())
    except ValueError:
        known = ", ".join(fmt.value for fmt in _FORMATTERS)
        raise ValueError(f"Unknown format type: {format_type}. Available: {known}") from None
    return _FORMATTERS[key]()
