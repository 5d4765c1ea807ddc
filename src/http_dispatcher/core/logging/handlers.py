"""
Log handlers: stdout stream and size-rotated file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, TypeVar

from .config import DEFAULT_ROTATE_BYTES, DEFAULT_ROTATED_FILES

H = TypeVar("H", bound=logging.Handler)


def _prepared(handler: H, level: int, formatter: logging.Formatter,
              filters: Optional[Iterable[logging.Filter]]) -> H:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for record_filter in filters or ():
        handler.addFilter(record_filter)
    return handler


def create_console_handler(
    level: int,
    formatter: logging.Formatter,
    filters: Optional[Iterable[logging.Filter]] = None
) -> logging.StreamHandler:
    """Handler в stdout (stderr оставлен приложению)."""
    return _prepared(logging.StreamHandler(sys.stdout), level, formatter, filters)


def create_file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int = DEFAULT_ROTATE_BYTES,
    backup_count: int = DEFAULT_ROTATED_FILES,
    filters: Optional[Iterable[logging.Filter]] = None
) -> RotatingFileHandler:
    """
    Файл с ротацией по размеру; каталог создаётся при необходимости.

    Example:
        >>> create_file_handler("/var/log/dispatcher.log", logging.INFO, TextFormatter())
    """
    target = Path(file_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    rotating = RotatingFileHandler(
        target, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    return _prepared(rotating, level, formatter, filters)
