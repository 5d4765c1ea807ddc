"""
Multiplexer: drives connections to completion.

A single connection is performed synchronously. A batch shares one
pycurl.CurlMulti and is polled cooperatively on the calling thread until no
transfer is active or the multi interface reports a failure.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

import pycurl

from .connection import Connection

if TYPE_CHECKING:
    from .logging import DispatcherLogger

# Upper bound for one wait on socket activity (seconds)
DEFAULT_SELECT_TIMEOUT = 1.0

MULTI_OK_STATUSES = frozenset({pycurl.E_MULTI_OK, pycurl.E_CALL_MULTI_PERFORM})


class Multiplexer:
    """
    Драйвер соединений поверх CurlMulti.

    Args:
        multi_factory: Фабрика multi-handle (по умолчанию pycurl.CurlMulti)
        select_timeout: Максимальное ожидание активности сокетов (сек)
        logger: DispatcherLogger (опционально)

    Example:
        >>> connections = Multiplexer().run(connections)
        >>> [c.result_code for c in connections]
        [0, 0, 6]
    """

    def __init__(
        self,
        multi_factory: Callable[[], Any] = pycurl.CurlMulti,
        select_timeout: float = DEFAULT_SELECT_TIMEOUT,
        logger: Optional['DispatcherLogger'] = None
    ):
        if select_timeout <= 0:
            raise ValueError("select_timeout must be positive")

        self._multi_factory = multi_factory
        self._select_timeout = select_timeout
        self._logger = logger

    def run(self, connections: Sequence[Connection]) -> List[Connection]:
        """
        Выполнить все соединения.

        Args:
            connections: Соединения в порядке отправки

        Returns:
            Те же соединения в том же порядке
        """
        connections = list(connections)

        if not connections:
            return connections

        if len(connections) == 1:
            connections[0].perform()
            return connections

        self._run_batch(connections)
        return connections

    def _run_batch(self, connections: List[Connection]) -> None:
        multi = self._multi_factory()
        registry: Dict[int, int] = {}
        added: List[Connection] = []

        try:
            for index, connection in enumerate(connections):
                multi.add_handle(connection.handle)
                added.append(connection)
                registry[id(connection.handle)] = index
                connection.mark_sending()

            status = self._poll(multi, connections, registry)

            if status not in MULTI_OK_STATUSES:
                self._resolve_pending(connections, status)

        finally:
            try:
                for connection in added:
                    multi.remove_handle(connection.handle)
            finally:
                multi.close()

    def _poll(self, multi: Any, connections: List[Connection], registry: Dict[int, int]) -> int:
        """Poll loop; returns the last aggregate status."""
        iterations = 0

        while True:
            iterations += 1
            try:
                status, active = multi.perform()
            except pycurl.error as exc:
                # pycurl raises for every non-OK CURLM status
                status, active = exc.args[0], 0

            ok = status in MULTI_OK_STATUSES
            if ok and active:
                multi.select(self._select_timeout)

            self._drain(multi, connections, registry)

            if not ok:
                if self._logger:
                    self._logger.warning(
                        "Multi interface failed, leaving transfers unresolved",
                        status=status,
                        iterations=iterations,
                    )
                return status

            if not active:
                break

        if self._logger:
            self._logger.debug("Multiplexer finished", iterations=iterations, connections=len(connections))

        return status

    def _drain(self, multi: Any, connections: List[Connection], registry: Dict[int, int]) -> None:
        """Record every queued completion event on its connection."""
        while True:
            queued, succeeded, failed = multi.info_read()

            for handle in succeeded:
                connections[registry[id(handle)]].record_result(0, "")

            for handle, code, message in failed:
                connections[registry[id(handle)]].record_result(code, message)

            if queued == 0:
                break

    def _resolve_pending(self, connections: List[Connection], status: int) -> None:
        message = f"Transfer incomplete: multi interface returned status {status}"
        for connection in connections:
            if connection.result_code is None:
                connection.mark_unresolved(status, message)
