"""Core HTTP Dispatcher модули."""

from .config import (
    UNSET,
    OPTION_ALIASES,
    Settings,
    ConnectionConfig,
    default_options,
    merge_options,
    resolve_option_key,
)
from .models import RequestSpec, Response, ResponseFactory, DefaultResponseFactory
from .connection import Connection, ConnectionState, TransferInfo
from .multiplexer import Multiplexer
from .assembler import ResponseAssembler, MAX_BODY_SIZE
from .error_classifier import ErrorClassifier
from .dispatcher import CurlDispatcher, fetch
from .exceptions import (
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
    classify_curl_error,
)

__all__ = [
    # Config
    "UNSET",
    "OPTION_ALIASES",
    "Settings",
    "ConnectionConfig",
    "default_options",
    "merge_options",
    "resolve_option_key",
    # Models
    "RequestSpec",
    "Response",
    "ResponseFactory",
    "DefaultResponseFactory",
    # Core
    "Connection",
    "ConnectionState",
    "TransferInfo",
    "Multiplexer",
    "ResponseAssembler",
    "MAX_BODY_SIZE",
    "ErrorClassifier",
    "CurlDispatcher",
    "fetch",
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
    "classify_curl_error",
]
