"""
Fake libcurl handles for unit tests.

FakeCurl replays a scripted transfer through the HEADERFUNCTION and
WRITEFUNCTION callbacks the Connection installs, and fails the transfer the
way libcurl does when the write callback returns a short count.
"""

from typing import Any, Dict, List, Optional, Sequence

import pycurl

from http_dispatcher.core.exceptions import CURLE_WRITE_ERROR


class FakeCurl:
    """Stand-in for pycurl.Curl driven by a script."""

    def __init__(
        self,
        header_lines: Sequence[bytes] = (),
        chunks: Sequence[bytes] = (),
        status_code: int = 200,
        effective_url: Optional[str] = None,
        total_time: float = 0.012,
        error: Optional[tuple] = None,
    ):
        self.header_lines = list(header_lines)
        self.chunks = list(chunks)
        self.status_code = status_code
        self.effective_url = effective_url
        self.total_time = total_time
        self.error = error
        self.options: Dict[Any, Any] = {}
        self.close_calls = 0
        self.perform_calls = 0

    def setopt(self, option: Any, value: Any) -> None:
        self.options[option] = value

    def transfer(self) -> Optional[tuple]:
        """Run the scripted transfer; returns (code, message) on failure."""
        self.perform_calls += 1

        on_header = self.options[pycurl.HEADERFUNCTION]
        on_body = self.options[pycurl.WRITEFUNCTION]

        for line in self.header_lines:
            if on_header(line) != len(line):
                return (CURLE_WRITE_ERROR, "Failed writing header")

        for chunk in self.chunks:
            if on_body(chunk) != len(chunk):
                return (CURLE_WRITE_ERROR, "Failure writing output to destination")

        return self.error

    def perform(self) -> None:
        failure = self.transfer()
        if failure is not None:
            raise pycurl.error(*failure)

    def getinfo(self, option: Any) -> Any:
        if option == pycurl.RESPONSE_CODE:
            return self.status_code
        if option == pycurl.EFFECTIVE_URL:
            return self.effective_url or self.options.get(pycurl.URL)
        if option == pycurl.TOTAL_TIME:
            return self.total_time
        raise KeyError(option)

    def errstr(self) -> str:
        return ""

    def close(self) -> None:
        self.close_calls += 1


class FakeMulti:
    """
    Stand-in for pycurl.CurlMulti.

    Every handle finishes on the first perform(); completion events are
    queued in `completion_order` (indices into the added handles), so tests
    can make later requests finish first. `fail_status` makes perform()
    raise the way pycurl does for a non-OK CURLM status.
    """

    def __init__(self, completion_order: Optional[List[int]] = None, fail_status: Optional[int] = None,
                 complete_before_failure: int = 0):
        self.handles: List[FakeCurl] = []
        self.completion_order = completion_order
        self.fail_status = fail_status
        self.complete_before_failure = complete_before_failure
        self.queue: List[tuple] = []
        self.removed: List[FakeCurl] = []
        self.select_calls = 0
        self.perform_calls = 0
        self.closed = False

    def add_handle(self, handle: FakeCurl) -> None:
        self.handles.append(handle)

    def remove_handle(self, handle: FakeCurl) -> None:
        self.removed.append(handle)

    def perform(self):
        self.perform_calls += 1
        order = self.completion_order or list(range(len(self.handles)))

        if self.perform_calls == 1:
            if self.fail_status is not None:
                order = order[:self.complete_before_failure]

            for index in order:
                handle = self.handles[index]
                self.queue.append((handle, handle.transfer()))

            if self.fail_status is not None:
                raise pycurl.error(self.fail_status, "perform failed")

            # Report activity once so the loop exercises select()
            return pycurl.E_MULTI_OK, len(self.handles)

        return pycurl.E_MULTI_OK, 0

    def select(self, timeout: float) -> int:
        self.select_calls += 1
        return 1

    def info_read(self):
        if not self.queue:
            return 0, [], []

        handle, failure = self.queue.pop(0)
        if failure is None:
            return len(self.queue), [handle], []
        return len(self.queue), [], [(handle, failure[0], failure[1])]

    def close(self) -> None:
        self.closed = True


def html_headers(content_type: bytes = b"text/html; charset=utf-8") -> List[bytes]:
    return [
        b"HTTP/1.1 200 OK\r\n",
        b"Content-Type: " + content_type + b"\r\n",
        b"Server: fake\r\n",
        b"\r\n",
    ]
