"""Typed contracts for sources, datasets, queries and page plans."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Sequence, Union

import pandas as pd

from ..api.error_handling import InvalidQueryError, ParseError
from ..config.settings import Settings

Record = Mapping[str, Any]


def _dedupe(columns: Iterable[Any]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(str(column) for column in columns))


@dataclass(frozen=True)
class Dataset:
    """Parsed tabular data: an ordered column set plus records in source order."""

    columns: tuple[str, ...]
    records: tuple[Record, ...]

    @classmethod
    def from_records(
        cls, records: Iterable[Record], columns: Sequence[str] | None = None
    ) -> "Dataset":
        """Build a dataset, deriving columns from the first record when not given."""
        if isinstance(records, (str, bytes, Mapping)):
            raise ParseError(f"Expected a sequence of records, got {type(records).__name__}")
        try:
            records = tuple(records)
        except TypeError:
            raise ParseError(f"Expected a sequence of records, got {type(records).__name__}") from None
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise ParseError(f"Record {index} is a {type(record).__name__}, expected a mapping")
        if columns is None:
            columns = records[0].keys() if records else ()
        return cls(columns=_dedupe(columns), records=records)

    def __len__(self) -> int:
        return len(self.records)

    def distinct_values(self, column: str) -> list[Any]:
        """Distinct values of ``column`` in first-seen order, skipping absent fields."""
        seen: dict[Any, None] = {}
        for record in self.records:
            if column in record:
                try:
                    seen.setdefault(record[column], None)
                except TypeError:
                    # unhashable values are compared by their string form
                    seen.setdefault(str(record[column]), None)
        return list(seen)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(list(self.records), columns=list(self.columns))


@dataclass(frozen=True)
class RemoteSource:
    """A source fetched over HTTP; keyed by its URL."""

    url: str

    @property
    def key(self) -> str:
        return self.url


@dataclass(frozen=True, eq=False)
class StaticSource:
    """An in-memory dataset supplied by the caller.

    ``records`` is either a sequence of mappings or a mapping holding such a
    sequence under ``results``. The data is held by reference and keyed by
    its identity, so two distinct datasets never share a key.
    """

    records: Any
    columns: Sequence[str] | None = None

    @property
    def key(self) -> str:
        return f"static:{id(self.records):x}"

    def dataset(self) -> Dataset:
        records = self.records
        if isinstance(records, Mapping) and "results" in records:
            records = records["results"]
        return Dataset.from_records(records, self.columns)


Source = Union[RemoteSource, StaticSource]


def make_source(value: Any) -> Source:
    """Wrap a URL string or a dataset in the matching source variant."""
    if isinstance(value, (RemoteSource, StaticSource)):
        return value
    if isinstance(value, str):
        return RemoteSource(value)
    return StaticSource(value)


def _positive_int(value: Any, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidQueryError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise InvalidQueryError(f"{name} must be a positive integer, got {value!r}") from None
    if number < 1:
        raise InvalidQueryError(f"{name} must be a positive integer, got {value!r}")
    return number


@dataclass(frozen=True)
class Query:
    """Per-column substring filters plus the requested page window."""

    filters: Mapping[str, str] = field(default_factory=dict)
    page: int = Settings.DEFAULT_PAGE
    limit: int = Settings.DEFAULT_LIMIT
    paginate: bool = True

    def __post_init__(self):
        for name in ("page", "limit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidQueryError(f"{name} must be a positive integer, got {value!r}")

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None = None, paginate: bool = True) -> "Query":
        """Split raw request params into page/limit and column filters.

        ``None`` filter values are dropped; every other value is compared by
        its string form.
        """
        params = dict(params or {})
        page = _positive_int(params.get("page"), "page", Settings.DEFAULT_PAGE)
        limit = _positive_int(params.get("limit"), "limit", Settings.DEFAULT_LIMIT)
        filters = {
            str(key): str(value)
            for key, value in params.items()
            if key not in Settings.RESERVED_PARAMS and value is not None
        }
        return cls(filters=filters, page=page, limit=limit, paginate=paginate)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class QueryResult:
    """The window handed back to the caller plus the filtered total."""

    results: list[Record]
    total_results: int
    page: int = Settings.DEFAULT_PAGE
    limit: int = Settings.DEFAULT_LIMIT
    paginated: bool = True
    columns: tuple[str, ...] = ()

    @property
    def total_pages(self) -> int:
        if not self.paginated:
            return 1 if self.total_results else 0
        return math.ceil(self.total_results / self.limit)

    @property
    def next_page(self) -> int | None:
        if self.paginated and self.page * self.limit < self.total_results:
            return self.page + 1
        return None

    @property
    def previous_page(self) -> int | None:
        if self.paginated and self.page > 1:
            return self.page - 1
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [dict(record) for record in self.results],
            "totalResults": self.total_results,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
            "next": self.next_page,
            "previous": self.previous_page,
            "headers": list(self.columns),
        }

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(list(self.results), columns=list(self.columns) or None)


class TokenKind(str, Enum):
    """Kinds of navigation tokens in a page plan."""

    PAGE = "page"
    ELLIPSIS = "ellipsis"
    FIRST = "first"
    PREV = "prev"
    NEXT = "next"
    LAST = "last"


_CONTROL_LABELS = {
    TokenKind.ELLIPSIS: "...",
    TokenKind.FIRST: "First",
    TokenKind.PREV: "Prev",
    TokenKind.NEXT: "Next",
    TokenKind.LAST: "Last",
}


@dataclass(frozen=True)
class PageToken:
    """One pager button; ``page`` is the target page (None for an ellipsis)."""

    kind: TokenKind
    page: int | None = None
    active: bool = False

    @property
    def label(self) -> str:
        if self.kind is TokenKind.PAGE:
            return str(self.page)
        return _CONTROL_LABELS[self.kind]


@dataclass(frozen=True)
class PagePlan:
    """Ordered navigation tokens for a pager."""

    tokens: tuple[PageToken, ...] = ()

    def __iter__(self) -> Iterator[PageToken]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def labels(self) -> list[str]:
        return [token.label for token in self.tokens]

    def pages(self) -> list[int]:
        """Numeric page tokens in order."""
        return [token.page for token in self.tokens if token.kind is TokenKind.PAGE]
