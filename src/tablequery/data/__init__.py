"""Parsing, caching, querying and pagination of table data."""

from .cache import SourceCache, get_shared_cache
from .models import (
    Dataset,
    PagePlan,
    PageToken,
    Query,
    QueryResult,
    RemoteSource,
    Source,
    StaticSource,
    TokenKind,
    make_source,
)
from .pagination import PaginationOptions, plan, plan_for_result, total_pages_for
from .parsing import DataFormat, ParsedBody, classify_content_type, parse
from .query_engine import QueryEngine, TableBinding, filter_records, slice_window

__all__ = [
    "Dataset",
    "PagePlan",
    "PageToken",
    "Query",
    "QueryResult",
    "RemoteSource",
    "Source",
    "StaticSource",
    "TokenKind",
    "make_source",
    "SourceCache",
    "get_shared_cache",
    "DataFormat",
    "ParsedBody",
    "classify_content_type",
    "parse",
    "QueryEngine",
    "TableBinding",
    "filter_records",
    "slice_window",
    "PaginationOptions",
    "plan",
    "plan_for_result",
    "total_pages_for",
]
