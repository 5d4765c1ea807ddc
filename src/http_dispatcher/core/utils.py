"""
Utility functions for HTTP dispatcher.

Includes:
- URL/header sanitization for safe logging
- TLS trust root lookup
- Default cookie jar location
"""

import os
import ssl
import tempfile
from typing import Mapping, Optional, Set
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

import certifi


# Default sensitive parameter names that should be masked in logs
DEFAULT_SENSITIVE_PARAMS = {
    'api_key',
    'apikey',
    'api-key',
    'token',
    'access_token',
    'refresh_token',
    'key',
    'secret',
    'password',
    'auth',
    'client_secret',
    'session',
    'session_id',
}

SENSITIVE_HEADER_NAMES = {
    'authorization',
    'proxy-authorization',
    'x-api-key',
    'x-auth-token',
    'cookie',
    'set-cookie',
}

COOKIES_FILE_NAME = 'http-dispatcher-cookies.txt'


def sanitize_url(
    url: str,
    extra_params: Optional[Set[str]] = None,
    mask: str = 'REDACTED'
) -> str:
    """
    Mask sensitive query parameters in URL for safe logging.

    Args:
        url: The URL to sanitize
        extra_params: Additional parameter names to mask (case-insensitive)
        mask: The string to use for masking (default: 'REDACTED')

    Returns:
        Sanitized URL with sensitive parameters masked

    Examples:
        >>> sanitize_url('https://example.com/page?token=abc&lang=en')
        'https://example.com/page?token=REDACTED&lang=en'
    """
    if not url:
        return url

    sensitive_params = DEFAULT_SENSITIVE_PARAMS | (
        {p.lower() for p in extra_params} if extra_params else set()
    )

    try:
        parsed = urlparse(url)
    except ValueError:
        return '<unparseable url>'

    if not parsed.query:
        return url

    params = parse_qs(parsed.query, keep_blank_values=True)
    sanitized_params = {
        name: [mask] * len(values) if name.lower() in sensitive_params else values
        for name, values in params.items()
    }

    return urlunparse(parsed._replace(query=urlencode(sanitized_params, doseq=True)))


def sanitize_headers(headers: Mapping[str, str], mask: str = 'REDACTED') -> dict:
    """
    Mask sensitive headers for safe logging.

    Examples:
        >>> sanitize_headers({'Authorization': 'Bearer token123'})
        {'Authorization': 'REDACTED'}
    """
    return {
        key: mask if key.lower() in SENSITIVE_HEADER_NAMES else value
        for key, value in headers.items()
    }


def get_ca_bundle_path() -> str:
    """
    Путь к системному набору корневых сертификатов.

    Если у OpenSSL есть системный cafile - используем его, иначе
    бандл certifi.
    """
    cafile = ssl.get_default_verify_paths().cafile
    if cafile and os.path.isfile(cafile):
        return cafile
    return certifi.where()


def default_cookies_path() -> str:
    """Shared cookie jar in the system temp directory."""
    return os.path.join(tempfile.gettempdir(), COOKIES_FILE_NAME)


def format_request_time(total_time: float) -> str:
    """
    Format libcurl TOTAL_TIME (seconds) as milliseconds.

    Examples:
        >>> format_request_time(0.012345)
        '12.345 ms'
    """
    return f"{total_time * 1000:.3f} ms"
