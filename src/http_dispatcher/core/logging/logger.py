"""
Main logger for HTTP Dispatcher.
"""

import logging
from typing import Any, Dict, List, Optional

from .config import LoggingConfig
from .formatters import get_formatter
from .filters import BatchIdFilter, ExtraFieldsFilter
from .handlers import create_console_handler, create_file_handler
from ..utils import sanitize_headers, sanitize_url


def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credentials in `url` and `headers` fields."""
    sanitized = dict(fields)
    if isinstance(sanitized.get('url'), str):
        sanitized['url'] = sanitize_url(sanitized['url'])
    if isinstance(sanitized.get('headers'), dict):
        sanitized['headers'] = sanitize_headers(sanitized['headers'])
    return sanitized


class DispatcherLogger:
    """
    Structured logger used by the dispatcher, multiplexer and assembler.

    Keyword arguments of the log methods become record fields (`extra`).

    Example:
        >>> logger = DispatcherLogger(LoggingConfig.create(level="DEBUG"))
        >>> logger.info("Batch completed", requests=3, failed=0)
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = "http_dispatcher"):
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        level = self.config.level.numeric
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False
        # Повторная инициализация с тем же именем не должна дублировать вывод
        self._logger.handlers.clear()

        for handler in self._build_handlers(level):
            self._logger.addHandler(handler)

    def _build_handlers(self, level: int) -> List[logging.Handler]:
        cfg = self.config
        filters: List[logging.Filter] = []
        if cfg.enable_batch_id:
            filters.append(BatchIdFilter())
        if cfg.extra_fields:
            filters.append(ExtraFieldsFilter(cfg.extra_fields))

        formatter = get_formatter(cfg.format.value)
        handlers: List[logging.Handler] = []
        if cfg.enable_console:
            handlers.append(create_console_handler(level, formatter, filters))
        if cfg.enable_file and cfg.file_path:
            handlers.append(create_file_handler(
                cfg.file_path, level, formatter,
                max_bytes=cfg.max_bytes,
                backup_count=cfg.backup_count,
                filters=filters,
            ))
        return handlers

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, extra=_sanitize(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, extra=_sanitize(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, extra=_sanitize(kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, extra=_sanitize(kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log with traceback; call from an exception handler."""
        self._logger.exception(message, extra=_sanitize(kwargs))

    def close(self) -> None:
        """
        Flush and close all handlers.

        Idempotent - safe to call multiple times.
        """
        if self._closed:
            return

        for handler in self._logger.handlers[:]:
            try:
                handler.flush()
                handler.close()
            except (OSError, ValueError):
                # Stream already closed
                pass
            self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


# Global logger instance
_default_logger: Optional[DispatcherLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> DispatcherLogger:
    """
    Get global logger instance (config is only used on first call).

    Example:
        >>> logger = get_logger()
        >>> logger.info("Hello")
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = DispatcherLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> DispatcherLogger:
    """Replace the global logger with a newly configured one."""
    global _default_logger
    if _default_logger is not None:
        _default_logger.close()
    _default_logger = DispatcherLogger(config)
    return _default_logger
