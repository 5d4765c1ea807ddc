"""
Tests for Multiplexer.
"""

import pycurl
import pytest

from fakes import FakeCurl, FakeMulti, html_headers
from http_dispatcher.core.config import ConnectionConfig, Settings
from http_dispatcher.core.connection import Connection, ConnectionState
from http_dispatcher.core.exceptions import CURLE_COULDNT_CONNECT
from http_dispatcher.core.models import RequestSpec
from http_dispatcher.core.multiplexer import Multiplexer


def make_connections(curls):
    connections = []
    for index, curl in enumerate(curls):
        request = RequestSpec.create("GET", f"http://example.com/{index}")
        config = ConnectionConfig.build(request, Settings())
        connections.append(Connection(request, config, curl_factory=lambda c=curl: c))
    return connections


def text_curl(body):
    return FakeCurl(header_lines=html_headers(), chunks=[body])


class TestRun:

    def test_empty(self):
        multi = FakeMulti()
        assert Multiplexer(multi_factory=lambda: multi).run([]) == []
        assert multi.perform_calls == 0

    def test_single_connection_performed_without_multi(self):
        def no_multi():
            raise AssertionError("multi handle must not be created")

        curl = text_curl(b"one")
        connections = make_connections([curl])

        result = Multiplexer(multi_factory=no_multi).run(connections)

        assert result == connections
        assert curl.perform_calls == 1
        assert connections[0].state == ConnectionState.COMPLETED
        assert connections[0].read_body(10) == b"one"

    def test_batch_results_in_request_order(self):
        curls = [text_curl(b"first"), text_curl(b"second"), text_curl(b"third")]
        connections = make_connections(curls)
        multi = FakeMulti(completion_order=[2, 0, 1])

        result = Multiplexer(multi_factory=lambda: multi).run(connections)

        assert result == connections
        assert [c.read_body(10) for c in result] == [b"first", b"second", b"third"]
        assert [c.result_code for c in result] == [0, 0, 0]

    def test_batch_records_failures_per_connection(self):
        curls = [
            text_curl(b"ok"),
            FakeCurl(error=(CURLE_COULDNT_CONNECT, "Connection refused")),
        ]
        connections = make_connections(curls)

        Multiplexer(multi_factory=lambda: FakeMulti()).run(connections)

        assert connections[0].failure is None
        assert connections[1].failure == (CURLE_COULDNT_CONNECT, "Connection refused")
        assert connections[1].state == ConnectionState.FAILED

    def test_batch_waits_on_select_while_active(self):
        multi = FakeMulti()
        connections = make_connections([text_curl(b"a"), text_curl(b"b")])

        Multiplexer(multi_factory=lambda: multi, select_timeout=0.5).run(connections)

        assert multi.select_calls == 1
        assert multi.perform_calls == 2

    def test_handles_removed_and_multi_closed(self):
        curls = [text_curl(b"a"), text_curl(b"b")]
        multi = FakeMulti()

        Multiplexer(multi_factory=lambda: multi).run(make_connections(curls))

        assert multi.removed == curls
        assert multi.closed is True

    def test_handles_not_closed_by_multiplexer(self):
        curls = [text_curl(b"a"), text_curl(b"b")]
        connections = make_connections(curls)

        Multiplexer(multi_factory=lambda: FakeMulti()).run(connections)

        assert [curl.close_calls for curl in curls] == [0, 0]
        assert not any(c.closed for c in connections)

    def test_non_positive_select_timeout_rejected(self):
        with pytest.raises(ValueError, match="select_timeout"):
            Multiplexer(select_timeout=0)


class TestEarlyExit:
    """The multi interface reports a failure before every transfer finished."""

    def test_pending_connections_marked_unresolved(self):
        curls = [text_curl(b"a"), text_curl(b"b"), text_curl(b"c")]
        connections = make_connections(curls)
        multi = FakeMulti(fail_status=pycurl.E_MULTI_OUT_OF_MEMORY, complete_before_failure=1)

        Multiplexer(multi_factory=lambda: multi).run(connections)

        assert connections[0].unresolved is False
        assert connections[0].failure is None
        assert connections[1].unresolved is True
        assert connections[2].unresolved is True
        assert connections[1].failure[0] == pycurl.E_MULTI_OUT_OF_MEMORY

    def test_cleanup_after_failure(self):
        curls = [text_curl(b"a"), text_curl(b"b")]
        multi = FakeMulti(fail_status=pycurl.E_MULTI_INTERNAL_ERROR)

        Multiplexer(multi_factory=lambda: multi).run(make_connections(curls))

        assert multi.removed == curls
        assert multi.closed is True
        assert multi.perform_calls == 1


class TestCleanupOnRaise:

    def test_only_added_handles_removed(self):
        class BrokenMulti(FakeMulti):
            def add_handle(self, handle):
                if len(self.handles) == 1:
                    raise pycurl.error(pycurl.E_MULTI_BAD_EASY_HANDLE, "bad easy handle")
                super().add_handle(handle)

        curls = [text_curl(b"a"), text_curl(b"b")]
        multi = BrokenMulti()

        with pytest.raises(pycurl.error):
            Multiplexer(multi_factory=lambda: multi).run(make_connections(curls))

        assert multi.removed == curls[:1]
        assert multi.closed is True

    def test_multi_closed_when_remove_handle_fails(self):
        class StickyMulti(FakeMulti):
            def remove_handle(self, handle):
                raise pycurl.error(pycurl.E_MULTI_BAD_EASY_HANDLE, "bad easy handle")

        multi = StickyMulti()

        with pytest.raises(pycurl.error):
            Multiplexer(multi_factory=lambda: multi).run(make_connections([text_curl(b"a"), text_curl(b"b")]))

        assert multi.closed is True
