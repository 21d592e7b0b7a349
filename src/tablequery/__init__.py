"""Data retrieval, parsing, caching, filtering and pagination for table widgets."""

from .api import (
    HttpTransport,
    InvalidQueryError,
    ParseError,
    RetryingTransport,
    SourceQueryError,
    TableQueryError,
    TransportError,
    UnsupportedFormatError,
)
from .data import (
    Dataset,
    PagePlan,
    PaginationOptions,
    Query,
    QueryEngine,
    QueryResult,
    RemoteSource,
    SourceCache,
    StaticSource,
    get_shared_cache,
    parse,
    plan,
)

__version__ = "0.1.0"

__all__ = [
    "HttpTransport",
    "RetryingTransport",
    "TableQueryError",
    "TransportError",
    "UnsupportedFormatError",
    "ParseError",
    "SourceQueryError",
    "InvalidQueryError",
    "Dataset",
    "PagePlan",
    "PaginationOptions",
    "Query",
    "QueryEngine",
    "QueryResult",
    "RemoteSource",
    "StaticSource",
    "SourceCache",
    "get_shared_cache",
    "parse",
    "plan",
]
