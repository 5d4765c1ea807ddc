"""
Response assembly from a completed connection.
"""

from typing import TYPE_CHECKING, Any, Optional

from .connection import Connection
from .error_classifier import ErrorClassifier
from .models import DefaultResponseFactory, ResponseFactory
from .utils import format_request_time

if TYPE_CHECKING:
    from .logging import DispatcherLogger

# 5MB cap on the body copied into a response
MAX_BODY_SIZE = 5_000_000

CONTENT_LOCATION_HEADER = 'Content-Location'
REQUEST_TIME_HEADER = 'X-Request-Time'


class ResponseAssembler:
    """
    Собирает ответ из состояния соединения.

    Args:
        classifier: ErrorClassifier для проверки ошибок транспорта
        response_factory: Фабрика ответов (create_response(status_code))
        max_body_size: Максимум байт тела в ответе
        logger: DispatcherLogger (опционально)
    """

    def __init__(
        self,
        classifier: ErrorClassifier,
        response_factory: Optional[ResponseFactory] = None,
        max_body_size: int = MAX_BODY_SIZE,
        logger: Optional['DispatcherLogger'] = None
    ):
        self.classifier = classifier
        self.response_factory = response_factory or DefaultResponseFactory()
        self.max_body_size = max_body_size
        self._logger = logger

    def assemble(self, connection: Connection) -> Any:
        """
        Построить ответ и закрыть соединение.

        Args:
            connection: Соединение после Multiplexer.run()

        Returns:
            Объект, созданный response_factory

        Raises:
            TransportError: Если ошибка транспорта не подавлена
        """
        try:
            info = connection.transfer_info()

            failure = connection.failure
            if failure is not None:
                code, message = failure
                self.classifier.check(code, message, connection)

            response = self.response_factory.create_response(info.status_code)

            for name, value in connection.headers:
                response.add_header(name, value)

            response.add_header(CONTENT_LOCATION_HEADER, info.effective_url)
            response.add_header(REQUEST_TIME_HEADER, format_request_time(info.total_time))

            if connection.body_size:
                response.write_body(connection.read_body(self.max_body_size))

            if self._logger:
                self._logger.debug(
                    "Response assembled",
                    url=info.effective_url,
                    status_code=info.status_code,
                    body_size=connection.body_size,
                    is_binary=connection.is_binary,
                    duration_ms=round(info.total_time * 1000, 3),
                )

            return response

        finally:
            connection.close()
