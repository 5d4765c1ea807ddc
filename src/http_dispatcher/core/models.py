"""
Request and response models.

RequestSpec is the immutable input owned by the caller. Response is the
default mutable response produced by DefaultResponseFactory; any object
exposing add_header() and write_body() can take its place.
"""

import io
from dataclasses import dataclass, field
from http.client import responses as _reason_phrases
from typing import List, Mapping, Optional, Protocol, Sequence, Tuple, Union

import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

HeaderValues = Union[str, Sequence[str]]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REQUEST
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RequestSpec:
    """
    Описание одного HTTP запроса.

    Args:
        method: HTTP метод
        uri: Полный URL
        headers: Упорядоченный multimap ((name, (value, ...)), ...)
        body: Тело запроса (POST и методы с CUSTOMREQUEST)

    Examples:
        >>> RequestSpec.create("GET", "http://example.com")
        >>> RequestSpec.create("POST", "http://example.com/api",
        ...                    headers={"Accept": ["text/html", "application/json"]},
        ...                    body=b"a=1")
    """
    method: str
    uri: str
    headers: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    body: bytes = b""

    @classmethod
    def create(
        cls,
        method: str,
        uri: str,
        headers: Optional[Mapping[str, HeaderValues]] = None,
        body: Union[bytes, str] = b"",
    ) -> 'RequestSpec':
        """Удобный конструктор из dict заголовков."""
        normalized = []
        for name, values in (headers or {}).items():
            if isinstance(values, str):
                values = (values,)
            normalized.append((name, tuple(values)))

        if isinstance(body, str):
            body = body.encode('utf-8')

        return cls(method=method, uri=uri, headers=tuple(normalized), body=body)

    @classmethod
    def from_requests(
        cls,
        request: Union[requests.Request, requests.PreparedRequest]
    ) -> 'RequestSpec':
        """
        Создать RequestSpec из объекта requests.

        Args:
            request: requests.Request или requests.PreparedRequest

        Returns:
            RequestSpec с методом, URL, заголовками и телом

        Example:
            >>> req = requests.Request("GET", "http://example.com", headers={"Accept": "text/html"})
            >>> spec = RequestSpec.from_requests(req)
        """
        if isinstance(request, requests.Request):
            request = request.prepare()

        body = request.body or b""
        return cls.create(
            method=request.method or "GET",
            uri=request.url or "",
            headers=dict(request.headers),
            body=body,
        )

    def get_header(self, name: str) -> List[str]:
        """All values of a header (case-insensitive name match)."""
        lowered = name.lower()
        values: List[str] = []
        for header_name, header_values in self.headers:
            if header_name.lower() == lowered:
                values.extend(header_values)
        return values

    def get_header_line(self, name: str) -> str:
        """Header values joined with ', ' (empty string if absent)."""
        return ", ".join(self.get_header(name))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RESPONSE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class Response:
    """
    Ответ, собранный из состояния соединения.

    Заголовки хранятся списком пар: порядок сохраняется, дубликаты не
    объединяются.

    Examples:
        >>> response = Response(200)
        >>> response.add_header("set-cookie", "a=1")
        >>> response.add_header("set-cookie", "b=2")
        >>> response.get_header("Set-Cookie")
        ['a=1', 'b=2']
    """
    status_code: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: io.BytesIO = field(default_factory=io.BytesIO)

    def add_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    def get_header(self, name: str) -> List[str]:
        lowered = name.lower()
        return [value for header_name, value in self.headers if header_name.lower() == lowered]

    def get_header_line(self, name: str) -> str:
        return ", ".join(self.get_header(name))

    def has_header(self, name: str) -> bool:
        return bool(self.get_header(name))

    def write_body(self, data: bytes) -> int:
        return self.body.write(data)

    @property
    def content(self) -> bytes:
        return self.body.getvalue()

    @property
    def text(self) -> str:
        encoding = get_encoding_from_headers(
            CaseInsensitiveDict({'content-type': self.get_header_line('content-type')})
        )
        return self.content.decode(encoding or 'utf-8', errors='replace')

    @property
    def url(self) -> Optional[str]:
        """Final URL after redirects (from Content-Location)."""
        locations = self.get_header('Content-Location')
        return locations[-1] if locations else None

    def to_requests(self) -> requests.Response:
        """
        Сконвертировать в requests.Response.

        Дубликаты заголовков объединяются через ', ' (CaseInsensitiveDict
        хранит одно значение на имя).

        Returns:
            requests.Response с тем же статусом, телом и заголовками
        """
        response = requests.Response()
        response.status_code = self.status_code
        response.reason = _reason_phrases.get(self.status_code, "")
        response.url = self.url or ""
        response._content = self.content

        headers: CaseInsensitiveDict = CaseInsensitiveDict()
        for name, value in self.headers:
            if name in headers:
                headers[name] = f"{headers[name]}, {value}"
            else:
                headers[name] = value
        response.headers = headers
        response.encoding = get_encoding_from_headers(headers)

        return response


class ResponseFactory(Protocol):
    """Anything that can produce a mutable response for a status code."""

    def create_response(self, status_code: int):
        ...


class DefaultResponseFactory:
    """Factory producing http_dispatcher.Response objects."""

    def create_response(self, status_code: int) -> Response:
        return Response(status_code=status_code)
