"""
Система конфигурации для HTTP Dispatcher.

Все конфиги immutable (frozen dataclasses): Settings разделяется всеми
соединениями батча, ConnectionConfig строится один раз на соединение.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

import pycurl

from .models import RequestSpec
from .utils import default_cookies_path, get_ca_bundle_path

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REMOVAL SENTINEL
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class _Unset:
    """Marker type: an override with this value deletes the default option."""

    _instance: Optional['_Unset'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNSET'

    def __reduce__(self):
        return (_Unset, ())


UNSET = _Unset()

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# OPTION KEYS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

IGNORED_ERRORS_KEY = 'ignored_errors'
COOKIES_PATH_KEY = 'cookies_path'
VERIFY_TLS_KEY = 'verify_tls'

RESERVED_KEYS = frozenset({IGNORED_ERRORS_KEY, COOKIES_PATH_KEY, VERIFY_TLS_KEY})

# Friendly names for libcurl options
OPTION_ALIASES: Mapping[str, int] = MappingProxyType({
    'http_header': pycurl.HTTPHEADER,
    'post': pycurl.POST,
    'max_redirects': pycurl.MAXREDIRS,
    'connect_timeout': pycurl.CONNECTTIMEOUT,
    'timeout': pycurl.TIMEOUT,
    'ssl_verify_host': pycurl.SSL_VERIFYHOST,
    'ssl_verify_peer': pycurl.SSL_VERIFYPEER,
    'encoding': pycurl.ENCODING,
    'ca_info': pycurl.CAINFO,
    'auto_referer': pycurl.AUTOREFERER,
    'follow_location': pycurl.FOLLOWLOCATION,
    'ip_resolve': pycurl.IPRESOLVE,
    'user_agent': pycurl.USERAGENT,
    'cookie_jar': pycurl.COOKIEJAR,
    'cookie_file': pycurl.COOKIEFILE,
})

DEFAULT_MAX_REDIRECTS = 10
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_TIMEOUT = 10

IgnoredErrors = Union[bool, FrozenSet[int], None]


def resolve_option_key(key: Any) -> Any:
    """
    Привести ключ опции к константе pycurl.

    Алиасы ('max_redirects') превращаются в pycurl.MAXREDIRS, остальные
    ключи возвращаются как есть.
    """
    if isinstance(key, str):
        return OPTION_ALIASES.get(key.lower(), key)
    return key


def _normalize_ignored_errors(value: Any) -> IgnoredErrors:
    if value is None or value is False:
        return None
    if value is True:
        return True
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValueError(
            f"ignored_errors must be True, None or a collection of error codes, got {value!r}"
        )
    return frozenset(int(code) for code in value)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SETTINGS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class Settings:
    """
    Настройки батча запросов.

    Args:
        options: Переопределения опций libcurl (ключ - константа pycurl или алиас)
        ignored_errors: True (игнорировать всё), набор кодов CURLE_* или None
        cookies_path: Путь к общему cookie jar (None = файл во временной папке)
        verify_tls: Проверять TLS сертификат и хост (по умолчанию выключено)

    Examples:
        >>> Settings.create(timeout=30, ignored_errors={28})
        >>> Settings.create(options={pycurl.MAXREDIRS: 3, pycurl.ENCODING: UNSET})
        >>> Settings.from_mapping({pycurl.TIMEOUT: 5, 'ignored_errors': True})
    """
    options: Mapping[Any, Any] = field(default_factory=lambda: MappingProxyType({}))
    ignored_errors: IgnoredErrors = None
    cookies_path: Optional[str] = None
    verify_tls: bool = False

    def __post_init__(self):
        """Нормализация и заморозка."""
        resolved = {resolve_option_key(key): value for key, value in dict(self.options).items()}
        object.__setattr__(self, 'options', MappingProxyType(resolved))
        object.__setattr__(
            self, 'ignored_errors', _normalize_ignored_errors(self.ignored_errors)
        )

    @classmethod
    def create(
        cls,
        options: Optional[Mapping[Any, Any]] = None,
        ignored_errors: Any = None,
        cookies_path: Optional[str] = None,
        verify_tls: bool = False,
        **aliases: Any
    ) -> 'Settings':
        """
        Удобный конструктор.

        Именованные аргументы, совпадающие с алиасами (timeout, max_redirects,
        user_agent, ...), добавляются в options.

        Raises:
            ValueError: Если передан неизвестный именованный аргумент
        """
        merged: Dict[Any, Any] = dict(options or {})
        for name, value in aliases.items():
            if name not in OPTION_ALIASES:
                raise ValueError(f"Unknown option alias: {name}")
            merged[OPTION_ALIASES[name]] = value

        return cls(
            options=merged,
            ignored_errors=ignored_errors,
            cookies_path=cookies_path,
            verify_tls=verify_tls,
        )

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[Any, Any]]) -> 'Settings':
        """
        Построить Settings из плоского словаря.

        Зарезервированные ключи (ignored_errors, cookies_path, verify_tls)
        становятся полями, всё остальное - переопределениями опций.
        """
        if isinstance(mapping, Settings):
            return mapping

        mapping = dict(mapping or {})
        return cls(
            options={k: v for k, v in mapping.items() if k not in RESERVED_KEYS},
            ignored_errors=mapping.get(IGNORED_ERRORS_KEY),
            cookies_path=mapping.get(COOKIES_PATH_KEY),
            verify_tls=bool(mapping.get(VERIFY_TLS_KEY, False)),
        )

    def get(self, key: Any, default: Any = None) -> Any:
        """Lookup an override by pycurl constant or alias."""
        return self.options.get(resolve_option_key(key), default)

    def has(self, key: Any) -> bool:
        return resolve_option_key(key) in self.options

    def with_options(self, **aliases: Any) -> 'Settings':
        """
        Создать новые Settings с дополнительными переопределениями.

        Example:
            >>> strict = settings.with_options(timeout=3, max_redirects=0)
        """
        merged = dict(self.options)
        for name, value in aliases.items():
            merged[resolve_option_key(name)] = value

        return Settings(
            options=merged,
            ignored_errors=self.ignored_errors,
            cookies_path=self.cookies_path,
            verify_tls=self.verify_tls,
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONNECTION CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def request_header_lines(request: RequestSpec) -> list:
    """Request headers as 'Name: v1, v2' lines, User-Agent excluded."""
    return [
        f"{name}: {', '.join(values)}"
        for name, values in request.headers
        if name.lower() != 'user-agent'
    ]


def default_options(request: RequestSpec, settings: Settings) -> Dict[int, Any]:
    """
    Дефолтный набор опций libcurl для одного запроса.

    Args:
        request: Запрос
        settings: Настройки батча (cookies_path, verify_tls)

    Returns:
        Новый dict {pycurl.OPTION: value}
    """
    cookies = settings.cookies_path or default_cookies_path()

    return {
        pycurl.HTTPHEADER: request_header_lines(request),
        pycurl.POST: request.method.upper() == 'POST',
        pycurl.MAXREDIRS: DEFAULT_MAX_REDIRECTS,
        pycurl.CONNECTTIMEOUT: DEFAULT_CONNECT_TIMEOUT,
        pycurl.TIMEOUT: DEFAULT_TIMEOUT,
        pycurl.SSL_VERIFYHOST: 2 if settings.verify_tls else 0,
        pycurl.SSL_VERIFYPEER: 1 if settings.verify_tls else 0,
        pycurl.ENCODING: '',
        pycurl.CAINFO: get_ca_bundle_path(),
        pycurl.AUTOREFERER: 1,
        pycurl.FOLLOWLOCATION: 1,
        pycurl.IPRESOLVE: pycurl.IPRESOLVE_V4,
        pycurl.USERAGENT: request.get_header_line('User-Agent'),
        pycurl.COOKIEJAR: cookies,
        pycurl.COOKIEFILE: cookies,
    }


def merge_options(defaults: Mapping[Any, Any], overrides: Mapping[Any, Any]) -> Dict[Any, Any]:
    """
    Применить переопределения к дефолтам.

    UNSET удаляет ключ, любое другое значение заменяет дефолт. Ключи, которых
    нет среди дефолтов, передаются как есть.

    Examples:
        >>> merge_options({1: 'a', 2: 'b'}, {2: UNSET, 3: 'c'})
        {1: 'a', 3: 'c'}
    """
    merged = dict(defaults)
    for key, value in overrides.items():
        if value is UNSET:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Итоговый набор опций libcurl для одного соединения.

    Examples:
        >>> config = ConnectionConfig.build(request, Settings())
        >>> config.options[pycurl.MAXREDIRS]
        10
    """
    options: Mapping[Any, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if isinstance(self.options, dict):
            object.__setattr__(self, 'options', MappingProxyType(dict(self.options)))

    @classmethod
    def build(cls, request: RequestSpec, settings: Optional[Settings] = None) -> 'ConnectionConfig':
        """
        Собрать конфиг: дефолты + переопределения + опции, зависящие от метода.

        Args:
            request: Запрос
            settings: Настройки батча

        Returns:
            Immutable ConnectionConfig
        """
        settings = settings or Settings()
        options = merge_options(default_options(request, settings), settings.options)

        method = request.method.upper()
        if method == 'HEAD':
            options[pycurl.NOBODY] = 1
        elif method not in ('GET', 'POST'):
            options[pycurl.CUSTOMREQUEST] = method

        if options.get(pycurl.POST) or (pycurl.CUSTOMREQUEST in options and request.body):
            options[pycurl.POSTFIELDS] = request.body

        return cls(options=options)

    def get(self, key: Any, default: Any = None) -> Any:
        return self.options.get(resolve_option_key(key), default)

    def __contains__(self, key: Any) -> bool:
        return resolve_option_key(key) in self.options
