"""
Pytest configuration and fixtures for http-dispatcher-core tests.
"""

import pytest

from http_dispatcher.core.config import Settings
from http_dispatcher.core.logging.config import LoggingConfig
from http_dispatcher.core.logging.filters import clear_batch_id
from local_server import start_server


@pytest.fixture(scope="session")
def http_server():
    """Local HTTP server; yields its base URL."""
    server, thread = start_server()
    host, port = server.server_address
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture
def settings(tmp_path):
    """Settings with an isolated cookie jar."""
    return Settings(cookies_path=str(tmp_path / "cookies.txt"))


@pytest.fixture(autouse=True)
def _reset_batch_id():
    yield
    clear_batch_id()


@pytest.fixture
def logging_config_with_file(tmp_path):
    """JSON logging to a file in a temporary directory."""
    log_file = tmp_path / "dispatcher.log"
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )
