"""HTTP Dispatcher - concurrent libcurl request dispatcher."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.dispatcher import CurlDispatcher, fetch
from .core.config import UNSET, Settings, ConnectionConfig
from .core.models import RequestSpec, Response, ResponseFactory, DefaultResponseFactory
from .core.logging import LoggingConfig
from .core.exceptions import (
    DispatcherException,
    TransportError,
    DNSError,
    ConnectionError,
    TimeoutError,
    TooManyRedirectsError,
    TLSError,
    WriteAbortedError,
    IncompleteTransferError,
    ConfigurationError,
)
from .core.env_config import load_from_env, ConfigFileLoader

# Users configure handlers themselves via logging.getLogger('http_dispatcher')
logging.getLogger('http_dispatcher').addHandler(logging.NullHandler())

try:
    __version__ = version("http-dispatcher-core")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__author__ = "HTTP Dispatcher Contributors"
__license__ = "MIT"

__all__ = [
    # Core
    "CurlDispatcher",
    "fetch",

    # Config
    "UNSET",
    "Settings",
    "ConnectionConfig",
    "LoggingConfig",
    "load_from_env",
    "ConfigFileLoader",

    # Models
    "RequestSpec",
    "Response",
    "ResponseFactory",
    "DefaultResponseFactory",

    # Exceptions
    "DispatcherException",
    "TransportError",
    "DNSError",
    "ConnectionError",
    "TimeoutError",
    "TooManyRedirectsError",
    "TLSError",
    "WriteAbortedError",
    "IncompleteTransferError",
    "ConfigurationError",

    # Version
    "__version__",
]
