"""
Connection: one libcurl handle plus the state captured from its transfer.

Header and body callbacks are closures over the owning Connection and are
installed on the handle at construction time.
"""

import re
import tempfile
from enum import Enum
from typing import Any, Callable, List, NamedTuple, Optional

import pycurl

from .config import ConnectionConfig
from .models import RequestSpec

HEADER_LINE_RE = re.compile(r'^([\w-]+):(.*)$')
STATUS_LINE_RE = re.compile(r'^HTTP/\d')
TEXT_CONTENT_RE = re.compile(r'text|html|json', re.IGNORECASE)

# Any value != len(chunk) makes libcurl fail the transfer with CURLE_WRITE_ERROR
WRITE_ABORT = 0

# Body sink stays in memory up to this size, then spills to a temp file
SPOOL_MAX_SIZE = 2 * 1024 * 1024


class ConnectionState(str, Enum):
    """Lifecycle of a single transfer."""
    CREATED = "created"
    SENDING = "sending"
    RECEIVING = "receiving"
    COMPLETED = "completed"
    FAILED = "failed"


class TransferInfo(NamedTuple):
    """Transfer metadata queried from the handle."""
    status_code: int
    effective_url: str
    total_time: float


def is_text_content_type(value: str) -> bool:
    """
    Проверить, является ли Content-Type текстовым.

    Examples:
        >>> is_text_content_type("text/html; charset=utf-8")
        True
        >>> is_text_content_type("application/octet-stream")
        False
    """
    return TEXT_CONTENT_RE.search(value) is not None


class Connection:
    """
    Одно соединение: handle libcurl, запрос и захваченное состояние.

    Attributes:
        request: Исходный запрос
        config: Итоговые опции libcurl
        handle: pycurl.Curl (эксклюзивно принадлежит соединению)
        headers: Список [name, value] в порядке получения, дубликаты сохраняются
        is_binary: Выставляется один раз при нетекстовом Content-Type
        body: Буфер тела (создаётся при первом чанке)
        error_code: Код ошибки из синхронного perform()
        result_code: Код из события завершения multi-интерфейса

    Example:
        >>> connection = Connection(request, ConnectionConfig.build(request, settings))
        >>> connection.perform()
        >>> connection.transfer_info().status_code
        200
    """

    def __init__(
        self,
        request: RequestSpec,
        config: ConnectionConfig,
        curl_factory: Callable[[], Any] = pycurl.Curl
    ):
        self.request = request
        self.config = config
        self.headers: List[List[str]] = []
        self.is_binary = False
        self.body: Optional[tempfile.SpooledTemporaryFile] = None
        self._body_size = 0
        self.error_code: Optional[int] = None
        self.error_message: Optional[str] = None
        self.result_code: Optional[int] = None
        self.result_message: Optional[str] = None
        self.unresolved = False
        self.state = ConnectionState.CREATED
        self._closed = False

        self.handle = curl_factory()
        try:
            self.handle.setopt(pycurl.URL, request.uri)
            for option, value in config.options.items():
                self.handle.setopt(option, value)

            self.handle.setopt(pycurl.HEADERFUNCTION, self._make_header_handler())
            self.handle.setopt(pycurl.WRITEFUNCTION, self._make_body_handler())
        except BaseException:
            self.close()
            raise

    def __repr__(self) -> str:
        return f"<Connection {self.request.method} {self.request.uri} [{self.state.value}]>"

    # ==================== Callbacks ====================

    def _make_header_handler(self) -> Callable[[bytes], int]:
        def on_header_line(raw: bytes) -> int:
            if self.state == ConnectionState.SENDING:
                self.state = ConnectionState.RECEIVING

            line = raw.decode('iso-8859-1').rstrip('\r\n')
            match = HEADER_LINE_RE.match(line)

            if match:
                name = match.group(1).lower()
                value = match.group(2).strip()
                self.headers.append([name, value])

                if name == 'content-type' and not is_text_content_type(value):
                    self.is_binary = True

            elif self.headers and line.strip() and not STATUS_LINE_RE.match(line):
                # Folded continuation of the previous header
                self.headers[-1][1] += ' ' + line.strip()

            return len(raw)

        return on_header_line

    def _make_body_handler(self) -> Callable[[bytes], int]:
        def on_body_chunk(chunk: bytes) -> int:
            if self.is_binary:
                return WRITE_ABORT

            if self.body is None:
                self.body = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)

            written = self.body.write(chunk)
            self._body_size += written
            return written

        return on_body_chunk

    # ==================== Execution ====================

    def mark_sending(self) -> None:
        self.state = ConnectionState.SENDING

    def perform(self) -> None:
        """
        Выполнить передачу синхронно.

        Ошибки pycurl не пробрасываются: код и сообщение сохраняются в
        error_code / error_message для классификатора.
        """
        self.mark_sending()
        try:
            self.handle.perform()
        except pycurl.error as exc:
            code, message = exc.args[0], exc.args[1] if len(exc.args) > 1 else ""
            self.error_code = code
            self.error_message = message or self.handle.errstr()
            self.state = ConnectionState.FAILED
        else:
            self.state = ConnectionState.COMPLETED

    def record_result(self, code: int, message: str = "") -> None:
        """Store the completion event reported by the multi interface."""
        self.result_code = code
        self.result_message = message
        self.state = ConnectionState.COMPLETED if code == 0 else ConnectionState.FAILED

    def mark_unresolved(self, code: int, message: str) -> None:
        """Transfer never received a completion event."""
        self.unresolved = True
        self.record_result(code, message)

    @property
    def failure(self) -> Optional[tuple]:
        """
        (code, message) of the failure to classify, or None.

        Результат multi-интерфейса имеет приоритет над ошибкой perform().
        """
        if self.result_code:
            return self.result_code, self.result_message or ""
        if self.error_code:
            return self.error_code, self.error_message or ""
        return None

    def transfer_info(self) -> TransferInfo:
        return TransferInfo(
            status_code=int(self.handle.getinfo(pycurl.RESPONSE_CODE)),
            effective_url=self.handle.getinfo(pycurl.EFFECTIVE_URL) or self.request.uri,
            total_time=float(self.handle.getinfo(pycurl.TOTAL_TIME)),
        )

    # ==================== Body ====================

    @property
    def body_size(self) -> int:
        return self._body_size

    def read_body(self, limit: int) -> bytes:
        """Read up to ``limit`` bytes from the start of the body sink."""
        if self.body is None:
            return b""
        self.body.seek(0)
        return self.body.read(limit)

    # ==================== Cleanup ====================

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the handle and the body sink. Idempotent."""
        if self._closed:
            return
        self._closed = True

        try:
            self.handle.close()
        finally:
            if self.body is not None:
                self.body.close()
