"""
Environment and file configuration for HTTP Dispatcher.

Example:
    >>> from http_dispatcher.core.env_config import load_from_env
    >>>
    >>> settings = load_from_env()               # DISPATCHER_* variables + .env
    >>> settings = load_from_env(timeout=30)     # explicit override wins
"""

from .loader import load_from_env, load_logging_from_env, settings_from_values
from .validator import DispatcherEnvSettings, parse_ignored_errors
from .file_loader import ConfigFileLoader, ConfigValidationError

__all__ = [
    "load_from_env",
    "load_logging_from_env",
    "settings_from_values",
    "DispatcherEnvSettings",
    "parse_ignored_errors",
    "ConfigFileLoader",
    "ConfigValidationError",
]
