"""
Иерархия исключений HTTP Dispatcher.

Классификация:
- TransportError - единственный тип ошибки транспорта (код libcurl + запрос)
- ConfigurationError - невалидные настройки (env, файлы конфигурации)
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import RequestSpec

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CURL ERROR CODES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

CURLE_OK = 0
CURLE_COULDNT_RESOLVE_PROXY = 5
CURLE_COULDNT_RESOLVE_HOST = 6
CURLE_COULDNT_CONNECT = 7
CURLE_WRITE_ERROR = 23
CURLE_OPERATION_TIMEDOUT = 28
CURLE_TOO_MANY_REDIRECTS = 47

TLS_ERROR_CODES = frozenset({35, 51, 53, 54, 58, 59, 60, 77, 80, 82, 83, 90, 91})

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DispatcherException(Exception):
    """Базовое исключение HTTP Dispatcher."""

    retryable: bool = False

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОШИБКИ ТРАНСПОРТА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(DispatcherException):
    """
    Ошибка транспорта libcurl.

    Args:
        message: Сообщение libcurl
        code: Числовой код ошибки (CURLE_*)
        request: Исходный запрос

    Examples:
        >>> err = TransportError("Could not resolve host", 6, request)
        >>> err.code
        6
    """

    def __init__(self, message: str, code: int, request: Optional['RequestSpec'] = None):
        self.code = code
        self.request = request

        full_message = message
        if request is not None:
            full_message += f" (url: {request.uri})"

        super().__init__(full_message)

    @property
    def url(self) -> Optional[str]:
        return self.request.uri if self.request is not None else None

class DNSError(TransportError):
    """DNS resolution failed."""
    retryable = True

class ConnectionError(TransportError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Network unreachable
    """
    retryable = True

class TimeoutError(TransportError):
    """Превышен connect или total таймаут."""
    retryable = True

class TooManyRedirectsError(TransportError):
    """Превышен лимит MAXREDIRS."""

class TLSError(TransportError):
    """Ошибка TLS рукопожатия или проверки сертификата."""

class WriteAbortedError(TransportError):
    """
    Write callback прервал передачу.

    Для бинарного контента это ожидаемое поведение и ошибка подавляется
    классификатором; сюда попадают только неподавленные случаи.
    """

class IncompleteTransferError(TransportError):
    """
    Передача не завершилась: multi-интерфейс вышел из цикла досрочно.

    Код - статус CurlMulti (CURLM_*), а не CURLE_*.
    """
    retryable = True

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# КОНФИГУРАЦИЯ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ConfigurationError(DispatcherException):
    """Ошибка конфигурации."""

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_ERRORS_BY_CODE = {
    CURLE_COULDNT_RESOLVE_PROXY: DNSError,
    CURLE_COULDNT_RESOLVE_HOST: DNSError,
    CURLE_COULDNT_CONNECT: ConnectionError,
    CURLE_WRITE_ERROR: WriteAbortedError,
    CURLE_OPERATION_TIMEDOUT: TimeoutError,
    CURLE_TOO_MANY_REDIRECTS: TooManyRedirectsError,
}


def classify_curl_error(
    code: int,
    message: str,
    request: Optional['RequestSpec'] = None
) -> TransportError:
    """
    Конвертировать код ошибки libcurl в наше исключение.

    Args:
        code: Код CURLE_*
        message: Сообщение libcurl
        request: Запрос, на котором произошла ошибка

    Returns:
        Подкласс TransportError с правильной классификацией

    Examples:
        >>> exc = classify_curl_error(28, "Operation timed out", request)
        >>> assert isinstance(exc, TimeoutError)
        >>> assert exc.retryable == True
    """
    if code in TLS_ERROR_CODES:
        return TLSError(message, code, request)

    error_class = _ERRORS_BY_CODE.get(code, TransportError)
    return error_class(message, code, request)
