"""Query execution against remote and static table sources."""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..api.error_handling import SourceQueryError, TableQueryError, categorize_error
from ..api.transport import HttpTransport, Transport
from .cache import SourceCache, get_shared_cache
from .models import Dataset, Query, QueryResult, Record, RemoteSource, Source, make_source
from .parsing import parse


def _as_text(value: Any) -> str:
    """String form of a field for comparison; absent fields compare as empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def filter_records(records: Iterable[Record], filters: Mapping[str, Any]) -> List[Record]:
    """Keep records whose fields contain every filter value, ignoring case."""
    needles = [(column, str(value).casefold()) for column, value in filters.items()]
    if not needles:
        return list(records)
    return [
        record
        for record in records
        if all(needle in _as_text(record.get(column)).casefold() for column, needle in needles)
    ]


def slice_window(records: Sequence[Record], page: int, limit: int) -> List[Record]:
    """Return the ``page``-th run of ``limit`` records, clamped to the sequence."""
    start = (page - 1) * limit
    return list(records[start:start + limit])


class QueryEngine:
    """Resolves a source to a dataset, then filters and paginates it.

    Remote datasets are memoized in the injected ``SourceCache`` (the
    process-wide cache when none is given). Static datasets are filtered in
    place and never cached.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        cache: Optional[SourceCache] = None,
        logger_obj: Optional[logging.Logger] = None,
    ):
        self.logger = logger_obj or logging.getLogger(__name__)
        self.transport = transport if transport is not None else HttpTransport(logger_obj=self.logger)
        self.cache = cache if cache is not None else get_shared_cache()

    async def load(self, source: Union[Source, Any]) -> Dataset:
        """Return the full dataset behind ``source``, fetching it on a cache miss."""
        source = make_source(source)
        if not isinstance(source, RemoteSource):
            try:
                return source.dataset()
            except TableQueryError as e:
                raise self._source_error(source, e) from e

        cached = self.cache.get(source.key)
        if cached is not None:
            self.logger.debug(f"Cache hit for {source.key}")
            return cached

        try:
            raw = await self.transport.fetch(source.url)
            parsed = parse(raw)
            dataset = Dataset.from_records(parsed.records, parsed.columns)
        except TableQueryError as e:
            raise self._source_error(source, e) from e

        self.cache.put(source.key, dataset)
        self.logger.info(f"Loaded {len(dataset)} records from {source.key}")
        return dataset

    def _source_error(self, source: Source, error: TableQueryError) -> SourceQueryError:
        error_category = categorize_error(error)
        self.logger.error(f"Error fetching data from {source.key} ({error_category.value}): {error}")
        return SourceQueryError(source.key, error)

    async def query(
        self,
        source: Union[Source, Any],
        query: Union[Query, Mapping[str, Any], None] = None,
    ) -> QueryResult:
        """Filter the source's records and cut out the requested page.

        ``total_results`` counts the whole filtered set. When
        ``query.paginate`` is false the window is the whole filtered set.
        """
        if not isinstance(query, Query):
            query = Query.from_params(query)

        dataset = await self.load(source)
        filtered = filter_records(dataset.records, query.filters)

        if query.paginate:
            window = slice_window(filtered, query.page, query.limit)
        else:
            window = filtered

        return QueryResult(
            results=[dict(record) for record in window],
            total_results=len(filtered),
            page=query.page,
            limit=query.limit,
            paginated=query.paginate,
            columns=dataset.columns,
        )

    def bind(self, source: Union[Source, Any], paginate: bool = True) -> "TableBinding":
        """Fix a source and its pagination policy for repeated queries."""
        return TableBinding(self, make_source(source), paginate)


class TableBinding:
    """A data source bound to an engine with one pagination policy."""

    def __init__(self, engine: QueryEngine, source: Source, paginate: bool = True):
        self.engine = engine
        self.source = source
        self.paginate = paginate

    async def query(self, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """Run raw params (``page``, ``limit`` and column filters) against the source."""
        return await self.engine.query(self.source, Query.from_params(params, paginate=self.paginate))

    async def load(self) -> Dataset:
        return await self.engine.load(self.source)
