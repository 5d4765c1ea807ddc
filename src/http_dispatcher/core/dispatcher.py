# src/http_dispatcher/core/dispatcher.py
import uuid
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

import pycurl
import requests

from .assembler import MAX_BODY_SIZE, ResponseAssembler
from .config import ConnectionConfig, Settings
from .connection import Connection
from .error_classifier import ErrorClassifier
from .exceptions import TransportError
from .logging import DispatcherLogger, LoggingConfig
from .logging.filters import clear_batch_id, set_batch_id
from .models import RequestSpec, ResponseFactory
from .multiplexer import DEFAULT_SELECT_TIMEOUT, Multiplexer

RequestLike = Union[RequestSpec, requests.Request, requests.PreparedRequest]
SettingsLike = Union[Settings, Mapping[Any, Any], None]


def _as_request_spec(request: RequestLike) -> RequestSpec:
    if isinstance(request, RequestSpec):
        return request
    if isinstance(request, (requests.Request, requests.PreparedRequest)):
        return RequestSpec.from_requests(request)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")


class CurlDispatcher:
    """
    Отправляет один или несколько запросов через libcurl.

    Features:
        - Батч запросов в одном потоке через CurlMulti
        - Порядок ответов совпадает с порядком запросов
        - Прерывание загрузки бинарного контента по Content-Type
        - Политика подавления ошибок (ignored_errors)
        - Каждый handle закрывается ровно один раз

    Example:
        >>> with CurlDispatcher(Settings.create(timeout=5)) as dispatcher:
        ...     html, api = dispatcher.fetch(
        ...         RequestSpec.create("GET", "https://example.com"),
        ...         RequestSpec.create("GET", "https://example.com/api.json"),
        ...     )
    """

    def __init__(
        self,
        settings: SettingsLike = None,
        response_factory: Optional[ResponseFactory] = None,
        logging: Optional[LoggingConfig] = None,
        select_timeout: float = DEFAULT_SELECT_TIMEOUT,
        max_body_size: int = MAX_BODY_SIZE,
        curl_factory: Callable[[], Any] = pycurl.Curl,
        multi_factory: Callable[[], Any] = pycurl.CurlMulti,
    ):
        """
        Initialize dispatcher.

        Args:
            settings: Settings или плоский dict (см. Settings.from_mapping)
            response_factory: Фабрика ответов (по умолчанию http_dispatcher.Response)
            logging: Конфигурация логирования (None = без логов)
            select_timeout: Максимальное ожидание активности сокетов (сек)
            max_body_size: Максимум байт тела в ответе
            curl_factory: Фабрика easy-handle
            multi_factory: Фабрика multi-handle
        """
        self._settings = Settings.from_mapping(settings)
        self._logger: Optional[DispatcherLogger] = (
            DispatcherLogger(config=logging) if logging else None
        )
        self._curl_factory = curl_factory
        self._classifier = ErrorClassifier(self._settings.ignored_errors, logger=self._logger)
        self._multiplexer = Multiplexer(
            multi_factory=multi_factory,
            select_timeout=select_timeout,
            logger=self._logger,
        )
        self._assembler = ResponseAssembler(
            classifier=self._classifier,
            response_factory=response_factory,
            max_body_size=max_body_size,
            logger=self._logger,
        )

        if self._logger and not self._settings.verify_tls:
            self._logger.warning("TLS peer and host verification is disabled")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def settings(self) -> Settings:
        return self._settings

    def close(self) -> None:
        """Release the logger handlers."""
        if self._logger is not None:
            self._logger.close()

    # ==================== Dispatch ====================

    def fetch(self, *requests_: RequestLike, return_exceptions: bool = False) -> List[Any]:
        """
        Выполнить запросы и вернуть ответы в исходном порядке.

        Args:
            *requests_: RequestSpec, requests.Request или requests.PreparedRequest
            return_exceptions: Вернуть TransportError на месте ответа вместо raise

        Returns:
            Список ответов (len == количество запросов)

        Raises:
            TransportError: Первая неподавленная ошибка (после сборки всех ответов)
        """
        specs = [_as_request_spec(request) for request in requests_]
        if not specs:
            return []

        set_batch_id(str(uuid.uuid4()))
        try:
            connections = self._open(specs)
            try:
                results = self._collect(self._multiplexer.run(connections))
            finally:
                # No-op for connections the assembler already closed
                for connection in connections:
                    connection.close()

            errors = [result for result in results if isinstance(result, TransportError)]

            if self._logger:
                self._logger.info(
                    "Batch completed",
                    requests=len(specs),
                    failed=len(errors),
                )
        finally:
            clear_batch_id()

        if errors and not return_exceptions:
            raise errors[0]

        return results

    def fetch_one(self, request: RequestLike) -> Any:
        """Shortcut for a single request."""
        return self.fetch(request)[0]

    def _open(self, specs: Sequence[RequestSpec]) -> List[Connection]:
        connections: List[Connection] = []
        try:
            for spec in specs:
                config = ConnectionConfig.build(spec, self._settings)
                connections.append(Connection(spec, config, curl_factory=self._curl_factory))

                if self._logger:
                    self._logger.debug("Connection created", method=spec.method, url=spec.uri)
        except Exception:
            for connection in connections:
                connection.close()
            raise

        return connections

    def _collect(self, connections: Sequence[Connection]) -> List[Any]:
        """Assemble every connection; errors stay in place."""
        results: List[Any] = []
        for connection in connections:
            try:
                results.append(self._assembler.assemble(connection))
            except TransportError as exc:
                if self._logger:
                    self._logger.debug(
                        "Transport error",
                        url=connection.request.uri,
                        code=exc.code,
                        error=exc.message,
                    )
                results.append(exc)
        return results


def fetch(
    settings: SettingsLike,
    response_factory: Optional[ResponseFactory],
    *requests_: RequestLike
) -> List[Any]:
    """
    Выполнить запросы с заданными настройками.

    Example:
        >>> responses = fetch({'ignored_errors': True}, None, RequestSpec.create("GET", "http://example.com"))
    """
    with CurlDispatcher(settings, response_factory=response_factory) as dispatcher:
        return dispatcher.fetch(*requests_)
