"""
Configuration file loader for YAML and JSON files.

File layout (YAML):

    dispatcher:
      timeout: 20
      connect_timeout: 5
      max_redirects: 3
      verify_tls: true
      ignored_errors: [28, 47]
      cookies_path: /var/lib/app/cookies.txt
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ..config import Settings
from ..exceptions import ConfigurationError
from .loader import settings_from_values

CONFIG_FILE_ENV_VAR = "DISPATCHER_CONFIG_FILE"

KNOWN_KEYS = frozenset({
    'timeout', 'connect_timeout', 'max_redirects', 'user_agent', 'ca_info',
    'verify_tls', 'ignored_errors', 'cookies_path',
})


class ConfigValidationError(ConfigurationError):
    """Raised when configuration file is invalid."""


class ConfigFileLoader:
    """
    Загрузчик Settings из файлов.

    Examples:
        >>> settings = ConfigFileLoader.from_yaml("dispatcher.yaml")
        >>> settings = ConfigFileLoader.from_file("dispatcher.json")  # Auto-detect
        >>> settings = ConfigFileLoader.from_env_path()  # DISPATCHER_CONFIG_FILE
    """

    @staticmethod
    def from_yaml(path: Union[str, Path]) -> Settings:
        """
        Загрузить Settings из YAML файла.

        Raises:
            FileNotFoundError: Если файл не найден
            ConfigValidationError: Если конфиг невалидный
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML syntax in {path}: {e}")

        return ConfigFileLoader._build_settings(data, str(path))

    @staticmethod
    def from_json(path: Union[str, Path]) -> Settings:
        """
        Загрузить Settings из JSON файла.

        Raises:
            FileNotFoundError: Если файл не найден
            ConfigValidationError: Если конфиг невалидный
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid JSON syntax in {path}: {e}")

        return ConfigFileLoader._build_settings(data, str(path))

    @staticmethod
    def from_file(path: Union[str, Path]) -> Settings:
        """Загрузить конфиг, формат определяется по расширению."""
        suffix = Path(path).suffix.lower()
        if suffix in (".yaml", ".yml"):
            return ConfigFileLoader.from_yaml(path)
        if suffix == ".json":
            return ConfigFileLoader.from_json(path)
        raise ConfigValidationError(
            f"Unsupported config file format: {suffix}. Use .yaml, .yml or .json"
        )

    @staticmethod
    def from_env_path() -> Settings:
        """Загрузить конфиг из файла, указанного в DISPATCHER_CONFIG_FILE."""
        path = os.environ.get(CONFIG_FILE_ENV_VAR)
        if not path:
            raise ConfigValidationError(f"{CONFIG_FILE_ENV_VAR} is not set")
        return ConfigFileLoader.from_file(path)

    @staticmethod
    def _build_settings(data: Any, source: str) -> Settings:
        if not data:
            raise ConfigValidationError(f"Empty config file: {source}")
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config root must be a mapping in {source}")

        section: Dict[str, Any] = data.get("dispatcher", data)
        if not isinstance(section, dict):
            raise ConfigValidationError(f"'dispatcher' section must be a mapping in {source}")

        unknown = set(section) - KNOWN_KEYS
        if unknown:
            raise ConfigValidationError(
                f"Unknown keys in {source}: {', '.join(sorted(unknown))}"
            )

        try:
            return settings_from_values(section)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"Invalid value in {source}: {e}") from e
