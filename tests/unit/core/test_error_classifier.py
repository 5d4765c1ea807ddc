"""Тесты для ErrorClassifier."""

import logging

import pytest

from fakes import FakeCurl
from http_dispatcher.core.config import ConnectionConfig, Settings
from http_dispatcher.core.connection import Connection
from http_dispatcher.core.error_classifier import ErrorClassifier
from http_dispatcher.core.exceptions import (
    CURLE_COULDNT_CONNECT,
    CURLE_OPERATION_TIMEDOUT,
    CURLE_WRITE_ERROR,
    ConnectionError,
    IncompleteTransferError,
    TimeoutError,
    WriteAbortedError,
)
from http_dispatcher.core.logging import DispatcherLogger, LoggingConfig
from http_dispatcher.core.models import RequestSpec


@pytest.fixture
def connection():
    request = RequestSpec.create("GET", "http://example.com/file")
    return Connection(request, ConnectionConfig.build(request, Settings()), curl_factory=FakeCurl)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# is_ignored
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_nothing_ignored_by_default():
    classifier = ErrorClassifier()
    assert not classifier.is_ignored(CURLE_OPERATION_TIMEDOUT)

def test_ignore_all():
    classifier = ErrorClassifier(True)
    assert classifier.is_ignored(CURLE_OPERATION_TIMEDOUT)
    assert classifier.is_ignored(CURLE_COULDNT_CONNECT)

def test_ignore_listed_codes():
    classifier = ErrorClassifier(frozenset({CURLE_OPERATION_TIMEDOUT}))
    assert classifier.is_ignored(CURLE_OPERATION_TIMEDOUT)
    assert not classifier.is_ignored(CURLE_COULDNT_CONNECT)

def test_empty_set_ignores_nothing():
    classifier = ErrorClassifier(frozenset())
    assert not classifier.is_ignored(CURLE_OPERATION_TIMEDOUT)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# check
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_check_raises_classified_error(connection):
    classifier = ErrorClassifier()

    with pytest.raises(TimeoutError) as exc_info:
        classifier.check(CURLE_OPERATION_TIMEDOUT, "Operation timed out", connection)

    assert exc_info.value.code == CURLE_OPERATION_TIMEDOUT
    assert exc_info.value.request is connection.request
    assert "Operation timed out" in str(exc_info.value)
    assert "http://example.com/file" in str(exc_info.value)

def test_check_suppresses_ignored_code(connection):
    ErrorClassifier(frozenset({CURLE_COULDNT_CONNECT})).check(
        CURLE_COULDNT_CONNECT, "refused", connection
    )

def test_write_error_suppressed_for_binary(connection):
    connection.is_binary = True
    ErrorClassifier().check(CURLE_WRITE_ERROR, "Failure writing output", connection)

def test_write_error_raised_for_text(connection):
    with pytest.raises(WriteAbortedError):
        ErrorClassifier().check(CURLE_WRITE_ERROR, "Failure writing output", connection)

def test_binary_flag_does_not_suppress_other_codes(connection):
    connection.is_binary = True
    with pytest.raises(ConnectionError):
        ErrorClassifier().check(CURLE_COULDNT_CONNECT, "refused", connection)

def test_unresolved_transfer_raises_incomplete(connection):
    connection.is_binary = True
    connection.mark_unresolved(3, "Transfer incomplete")

    with pytest.raises(IncompleteTransferError) as exc_info:
        ErrorClassifier().check(3, "Transfer incomplete", connection)

    assert exc_info.value.retryable is True

def test_unresolved_transfer_suppressed_when_ignoring_all(connection):
    connection.mark_unresolved(3, "Transfer incomplete")
    ErrorClassifier(True).check(3, "Transfer incomplete", connection)

def test_unresolved_transfer_not_matched_against_code_list(connection):
    connection.mark_unresolved(3, "Transfer incomplete")

    with pytest.raises(IncompleteTransferError):
        ErrorClassifier(frozenset({3})).check(3, "Transfer incomplete", connection)

def test_suppressed_error_logged(connection, tmp_path):
    log_file = tmp_path / "classifier.log"
    config = LoggingConfig.create(
        level="DEBUG", format="json", enable_console=False, enable_file=True, file_path=str(log_file)
    )
    with DispatcherLogger(config, name="test_classifier") as logger:
        ErrorClassifier(True, logger=logger).check(CURLE_OPERATION_TIMEDOUT, "timed out", connection)

    content = log_file.read_text()
    assert "Transport error suppressed" in content
    assert '"code": 28' in content

def test_not_logged_without_logger(connection, caplog):
    with caplog.at_level(logging.DEBUG):
        ErrorClassifier(True).check(CURLE_OPERATION_TIMEDOUT, "timed out", connection)

    assert caplog.records == []
