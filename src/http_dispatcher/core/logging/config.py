"""
Logging configuration for HTTP Dispatcher.
"""

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Union

# Rotation threshold for the dispatcher log file
DEFAULT_ROTATE_BYTES = 10 * 1024 * 1024
DEFAULT_ROTATED_FILES = 5


class LogLevel(str, Enum):
    """Уровни логирования (имена совпадают с модулем logging)."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def numeric(self) -> int:
        return logging.getLevelName(self.value)


class LogFormat(str, Enum):
    """Формат записи: одна JSON-строка или читаемый текст."""
    JSON = "json"
    TEXT = "text"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Настройки логирования диспетчера.

    Записи о батчах (старт, ошибки транспорта, завершение) идут в stdout
    и/или в файл с ротацией. Если enable_batch_id включён, каждая запись
    получает поле batch_id текущего вызова fetch().

    Example:
        >>> config = LoggingConfig.create(level="DEBUG", format="json")
        >>> config.level.numeric
        10
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = DEFAULT_ROTATE_BYTES
    backup_count: int = DEFAULT_ROTATED_FILES
    enable_batch_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        problems = []
        if self.enable_file and not self.file_path:
            problems.append("file_path is required when enable_file=True")
        if self.max_bytes <= 0:
            problems.append(f"max_bytes must be positive, got {self.max_bytes}")
        if self.backup_count < 0:
            problems.append(f"backup_count must be non-negative, got {self.backup_count}")
        if problems:
            raise ValueError("; ".join(problems))

    @classmethod
    def create(
        cls,
        level: Union[str, LogLevel] = LogLevel.INFO,
        format: Union[str, LogFormat] = LogFormat.TEXT,
        extra_fields: Optional[Dict[str, Any]] = None,
        **options: Any
    ) -> "LoggingConfig":
        """
        Собрать конфиг из строковых значений (env, YAML).

        Регистр level/format не важен. Остальные ключевые аргументы
        соответствуют полям dataclass; неизвестный ключ даёт TypeError.

        Example:
            >>> LoggingConfig.create(level="debug", enable_file=True, file_path="/tmp/dispatcher.log")
        """
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise TypeError(f"Unknown logging options: {', '.join(sorted(unknown))}")

        return cls(
            level=LogLevel(str(getattr(level, "value", level)).upper()),
            format=LogFormat(str(getattr(format, "value", format)).lower()),
            extra_fields=dict(extra_fields or {}),
            **options
        )
