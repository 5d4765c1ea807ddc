"""
Pydantic validators for environment configuration.
"""

from typing import Optional, Literal, Union, FrozenSet
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_MAX_REDIRECTS, DEFAULT_TIMEOUT

_IGNORE_ALL_VALUES = {"all", "true", "*"}


def parse_ignored_errors(value) -> Union[bool, FrozenSet[int], None]:
    """
    Parse the ignored_errors policy from env/file values.

    Examples:
        >>> parse_ignored_errors("all")
        True
        >>> parse_ignored_errors("7, 28")
        frozenset({7, 28})
        >>> parse_ignored_errors("")
    """
    if value is None or value is False:
        return None
    if value is True:
        return True
    if isinstance(value, str):
        text = value.strip().lower()
        if not text or text in {"none", "false"}:
            return None
        if text in _IGNORE_ALL_VALUES:
            return True
        try:
            return frozenset(int(part) for part in text.split(",") if part.strip())
        except ValueError:
            raise ValueError(f"ignored_errors must be 'all' or comma-separated codes, got {value!r}")
    if isinstance(value, int):
        return frozenset({value})
    return frozenset(int(code) for code in value)


class DispatcherEnvSettings(BaseSettings):
    """
    Dispatcher configuration from environment variables.

    Reads from:
    1. Environment variables (DISPATCHER_*)
    2. .env file
    3. Defaults

    Example .env file:
        DISPATCHER_TIMEOUT=20
        DISPATCHER_CONNECT_TIMEOUT=5
        DISPATCHER_IGNORED_ERRORS=28,47
        DISPATCHER_COOKIES_PATH=/var/lib/app/cookies.txt
        DISPATCHER_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix='DISPATCHER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # Transfer
    connect_timeout: int = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    timeout: int = Field(default=DEFAULT_TIMEOUT, gt=0)
    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=-1)
    user_agent: Optional[str] = None

    # TLS (verification is off unless enabled explicitly)
    verify_tls: bool = Field(default=False)
    ca_info: Optional[str] = None

    # Error policy and cookies
    ignored_errors: Optional[str] = Field(default=None, description="'all' or comma-separated CURLE codes")
    cookies_path: Optional[str] = None

    # Logging
    log_enabled: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="text")
    log_enable_console: bool = Field(default=True)
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)

    @field_validator('ignored_errors')
    @classmethod
    def validate_ignored_errors(cls, v: Optional[str]) -> Optional[str]:
        parse_ignored_errors(v)
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v
