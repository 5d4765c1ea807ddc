"""
Configuration loader from environment variables and .env files.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..config import Settings
from ..exceptions import ConfigurationError
from ..logging.config import LoggingConfig
from .validator import DispatcherEnvSettings, parse_ignored_errors


def _read_env(env_file: Optional[str]) -> DispatcherEnvSettings:
    try:
        if env_file is not None:
            return DispatcherEnvSettings(_env_file=env_file)
        return DispatcherEnvSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid dispatcher environment: {e}") from e


def settings_from_values(values: Dict[str, Any]) -> Settings:
    """
    Build Settings from flat named values (env or config file).

    Only values that are present become option overrides; the rest keep the
    built-in defaults.
    """
    options: Dict[str, Any] = {}
    for name in ('connect_timeout', 'timeout', 'max_redirects', 'user_agent', 'ca_info'):
        if values.get(name) is not None:
            options[name] = values[name]

    return Settings(
        options=options,
        ignored_errors=parse_ignored_errors(values.get('ignored_errors')),
        cookies_path=values.get('cookies_path'),
        verify_tls=bool(values.get('verify_tls', False)),
    )


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Load Settings from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters
    2. Environment variables (DISPATCHER_*)
    3. .env file
    4. Defaults

    Example:
        >>> settings = load_from_env(timeout=30)
        >>> dispatcher = CurlDispatcher(settings)

    Raises:
        ConfigurationError: If an environment value is invalid
    """
    env = _read_env(env_file)

    values = env.model_dump(exclude_unset=True)
    # Defaults of the env model are the built-in defaults, so only set ones count
    values.update(overrides)

    try:
        return settings_from_values(values)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def load_logging_from_env(env_file: Optional[str] = None) -> Optional[LoggingConfig]:
    """
    LoggingConfig from DISPATCHER_LOG_* variables, or None when disabled.
    """
    env = _read_env(env_file)
    if not env.log_enabled:
        return None

    return LoggingConfig.create(
        level=env.log_level,
        format=env.log_format,
        enable_console=env.log_enable_console,
        enable_file=bool(env.log_file_path),
        file_path=env.log_file_path,
        max_bytes=env.log_max_bytes,
        backup_count=env.log_backup_count,
    )
