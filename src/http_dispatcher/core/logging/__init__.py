"""
Logging system for HTTP Dispatcher.

Example:
    >>> from http_dispatcher.core.logging import get_logger, LoggingConfig
    >>>
    >>> logger = get_logger(LoggingConfig.create(level="DEBUG", format="json"))
    >>> logger.info("Batch started", requests=3)
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import DispatcherLogger, get_logger, configure_logging
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .filters import (
    BatchIdFilter,
    ExtraFieldsFilter,
    set_batch_id,
    get_batch_id,
    clear_batch_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "DispatcherLogger",
    "get_logger",
    "configure_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    # Filters
    "BatchIdFilter",
    "ExtraFieldsFilter",
    "set_batch_id",
    "get_batch_id",
    "clear_batch_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
