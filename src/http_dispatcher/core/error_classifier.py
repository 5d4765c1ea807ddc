# src/http_dispatcher/core/error_classifier.py

from typing import TYPE_CHECKING, Optional

from .config import IgnoredErrors
from .exceptions import (
    CURLE_WRITE_ERROR,
    IncompleteTransferError,
    classify_curl_error,
)

if TYPE_CHECKING:
    from .connection import Connection
    from .logging import DispatcherLogger


class ErrorClassifier:
    """Решает, подавить ошибку транспорта или выбросить TransportError"""

    def __init__(self, ignored_errors: IgnoredErrors = None, logger: Optional['DispatcherLogger'] = None):
        self.ignored_errors = ignored_errors
        self._logger = logger

    def is_ignored(self, code: int) -> bool:
        """Код входит в политику ignored_errors"""
        if self.ignored_errors is True:
            return True
        return bool(self.ignored_errors) and code in self.ignored_errors

    def is_suppressed(self, code: int, connection: 'Connection') -> bool:
        """Проверяет, нужно ли подавить ошибку"""

        if connection.unresolved:
            # code is a CURLM status here, not comparable with CURLE codes
            return self.ignored_errors is True

        if self.is_ignored(code):
            return True

        # The write callback aborted the transfer to skip a binary download
        return code == CURLE_WRITE_ERROR and connection.is_binary

    def check(self, code: int, message: str, connection: 'Connection') -> None:
        """Выбрасывает TransportError, если ошибка не подавлена"""

        if self.is_suppressed(code, connection):
            if self._logger:
                self._logger.debug(
                    "Transport error suppressed",
                    code=code,
                    error=message,
                    url=connection.request.uri,
                    is_binary=connection.is_binary,
                )
            return

        if connection.unresolved:
            raise IncompleteTransferError(message, code, connection.request)

        raise classify_curl_error(code, message, connection.request)
