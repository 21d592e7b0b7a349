"""Transport and error handling for remote table sources."""

from .error_handling import (
    ErrorCategory,
    InvalidQueryError,
    ParseError,
    SourceQueryError,
    TableQueryError,
    TransportError,
    UnsupportedFormatError,
    categorize_error,
)
from .retrying import RetryingTransport
from .transport import HttpTransport, RawResponse, Transport

__all__ = [
    "HttpTransport",
    "RawResponse",
    "Transport",
    "RetryingTransport",
    "ErrorCategory",
    "categorize_error",
    "TableQueryError",
    "TransportError",
    "UnsupportedFormatError",
    "ParseError",
    "SourceQueryError",
    "InvalidQueryError",
]
