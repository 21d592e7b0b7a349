"""Error types and categorization for data source operations."""

import asyncio
import json
from enum import Enum
from typing import Optional

import aiohttp


class ErrorCategory(Enum):
    """Categories for different types of source errors."""
    NETWORK = "network"
    SERVER = "server"
    CLIENT = "client"
    TIMEOUT = "timeout"
    DATA = "data"
    UNKNOWN = "unknown"


def categorize_status(status: Optional[int]) -> ErrorCategory:
    """Map an HTTP status code to an error category."""
    if status is None:
        return ErrorCategory.NETWORK
    if 400 <= status < 500:
        return ErrorCategory.CLIENT
    elif 500 <= status < 600:
        return ErrorCategory.SERVER
    return ErrorCategory.UNKNOWN


def categorize_error(exception: Exception) -> ErrorCategory:
    """Categorize an exception into error types for better handling."""
    if isinstance(exception, SourceQueryError):
        return categorize_error(exception.cause)
    elif isinstance(exception, TransportError):
        return exception.category
    elif isinstance(exception, (ParseError, UnsupportedFormatError)):
        return ErrorCategory.DATA
    elif isinstance(exception, asyncio.TimeoutError):
        return ErrorCategory.TIMEOUT
    elif isinstance(exception, aiohttp.ClientConnectorError):
        return ErrorCategory.NETWORK
    elif isinstance(exception, aiohttp.ClientResponseError):
        return categorize_status(exception.status)
    elif isinstance(exception, aiohttp.ClientError):
        return ErrorCategory.NETWORK
    elif isinstance(exception, (json.JSONDecodeError, UnicodeDecodeError, ValueError)):
        return ErrorCategory.DATA
    else:
        return ErrorCategory.UNKNOWN


class TableQueryError(Exception):
    """Base class for every error raised by the engine."""


class TransportError(TableQueryError):
    """Raised when a fetch does not complete or returns a non-success status."""

    def __init__(
        self,
        message: str,
        url: str,
        status: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
    ):
        self.url = url
        self.status = status
        self.category = category or categorize_status(status)
        super().__init__(message)


class UnsupportedFormatError(TableQueryError):
    """Raised when a response declares a content type we cannot parse."""

    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(f"Unsupported content type: {content_type}")


class ParseError(TableQueryError):
    """Raised when a JSON or CSV body is malformed."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)


class SourceQueryError(TableQueryError):
    """Wraps a transport or parse failure with the source it came from."""

    def __init__(self, source_key: str, cause: Exception):
        self.source_key = source_key
        self.cause = cause
        super().__init__(f"Error fetching data from {source_key}: {cause}")

    @property
    def category(self) -> ErrorCategory:
        return categorize_error(self.cause)


class InvalidQueryError(TableQueryError, ValueError):
    """Raised for page or limit values that are not positive integers."""
