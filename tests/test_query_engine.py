"""
Tests for QueryEngine filtering, pagination and source caching.

Tests cover:
- Filter semantics (case-insensitive substring, AND across columns)
- Window slicing and totals
- Cache hits avoiding repeat fetches
- Static sources bypassing the cache
- Error wrapping with the source key
- Concurrent cache misses fetching independently
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from tablequery.api.error_handling import (
    ErrorCategory,
    InvalidQueryError,
    ParseError,
    SourceQueryError,
    TransportError,
    UnsupportedFormatError,
)
from tablequery.data.cache import SourceCache, get_shared_cache
from tablequery.data.models import Query, RemoteSource, StaticSource
from tablequery.data.query_engine import QueryEngine, filter_records, slice_window

PEOPLE_URL = "https://example.test/people.json"
CITIES_URL = "https://example.test/cities.csv"


class TestFilterRecords:
    """Test the pure filtering helper."""

    def test_substring_match(self):
        records = [{"a": "10"}, {"a": "2"}]
        assert filter_records(records, {"a": "1"}) == [{"a": "10"}]

    def test_case_insensitive(self):
        records = [{"name": "ALICE"}, {"name": "bob"}]
        assert filter_records(records, {"name": "aLiC"}) == [{"name": "ALICE"}]

    def test_and_across_filters(self):
        records = [
            {"name": "Alice", "city": "Boston"},
            {"name": "Alan", "city": "Austin"},
            {"name": "Bob", "city": "Boston"},
        ]
        assert filter_records(records, {"name": "al", "city": "bos"}) == [{"name": "Alice", "city": "Boston"}]

    def test_no_filters_keeps_everything(self):
        records = [{"a": "1"}, {"a": "2"}]
        assert filter_records(records, {}) == records

    def test_non_string_values_are_compared_by_string_form(self):
        records = [{"n": 125}, {"n": 7}, {"n": True}, {"n": None}]
        assert filter_records(records, {"n": "12"}) == [{"n": 125}]
        assert filter_records(records, {"n": "TRUE"}) == [{"n": True}]

    def test_original_values_are_not_mutated(self):
        records = [{"n": 125}]
        filter_records(records, {"n": "2"})
        assert records == [{"n": 125}]
        assert isinstance(records[0]["n"], int)

    def test_missing_field_only_matches_empty_filter(self):
        records = [{"a": "x"}, {"b": "y"}]
        assert filter_records(records, {"a": "x"}) == [{"a": "x"}]
        assert filter_records(records, {"a": ""}) == records


class TestSliceWindow:
    """Test the pure slicing helper."""

    def test_first_page(self):
        assert slice_window(list(range(25)), 1, 10) == list(range(10))

    def test_last_partial_page(self):
        assert slice_window(list(range(25)), 3, 10) == [20, 21, 22, 23, 24]

    def test_page_past_the_end(self):
        assert slice_window(list(range(25)), 4, 10) == []


class TestRemoteQueries:
    """Test queries against remote sources through a stub transport."""

    @pytest.mark.asyncio
    async def test_no_filters_returns_first_page_and_total(self, engine, people):
        result = await engine.query(PEOPLE_URL, Query(limit=2))

        assert result.total_results == len(people)
        assert result.results == people[:2]
        assert result.columns == ("name", "city", "age")

    @pytest.mark.asyncio
    async def test_defaults_are_page_one_limit_ten(self, engine, people):
        result = await engine.query(PEOPLE_URL)

        assert result.page == 1
        assert result.limit == 10
        assert result.results == people

    @pytest.mark.asyncio
    async def test_filters_from_params(self, engine):
        result = await engine.query(PEOPLE_URL, {"city": "boston", "page": "1", "limit": "10"})

        assert result.total_results == 2
        assert [r["name"] for r in result.results] == ["Alice", "Dave"]

    @pytest.mark.asyncio
    async def test_total_counts_full_filtered_set(self, engine):
        result = await engine.query(PEOPLE_URL, Query(filters={"city": "o"}, page=2, limit=2))

        # Boston, Portland and Boston contain "o"
        assert result.total_results == 3
        assert [r["name"] for r in result.results] == ["Dave"]

    @pytest.mark.asyncio
    async def test_page_beyond_results_is_empty(self, engine):
        result = await engine.query(PEOPLE_URL, Query(page=3, limit=5))

        assert result.results == []
        assert result.total_results == 5

    @pytest.mark.asyncio
    async def test_no_match_is_not_an_error(self, engine):
        result = await engine.query(PEOPLE_URL, Query(filters={"name": "zzz"}))

        assert result.results == []
        assert result.total_results == 0

    @pytest.mark.asyncio
    async def test_paginate_false_returns_whole_filtered_set(self, engine, people):
        result = await engine.query(PEOPLE_URL, Query(limit=2, paginate=False))

        assert result.results == people
        assert result.total_results == 5
        assert result.paginated is False

    @pytest.mark.asyncio
    async def test_csv_source(self, engine):
        result = await engine.query(CITIES_URL, Query(filters={"state": "or"}))

        assert result.total_results == 1
        assert result.results == [{"city": "Portland, OR", "state": "OR", "population": "652503"}]
        assert result.columns == ("city", "state", "population")

    @pytest.mark.asyncio
    async def test_second_query_uses_cache(self, engine, fake_transport, cache):
        await engine.query(PEOPLE_URL, Query(filters={"city": "boston"}))
        result = await engine.query(PEOPLE_URL, Query(filters={"name": "eve"}))

        fake_transport.fetch.assert_awaited_once_with(PEOPLE_URL)
        assert PEOPLE_URL in cache
        assert [r["name"] for r in result.results] == ["Eve"]

    @pytest.mark.asyncio
    async def test_identical_queries_are_idempotent(self, engine):
        query = Query(filters={"age": "3"}, page=1, limit=1)
        first = await engine.query(PEOPLE_URL, query)
        second = await engine.query(PEOPLE_URL, query)

        assert first == second

    @pytest.mark.asyncio
    async def test_returned_records_do_not_alias_cache(self, engine, cache):
        result = await engine.query(PEOPLE_URL)
        result.results[0]["name"] = "Mallory"

        assert cache.get(PEOPLE_URL).records[0]["name"] == "Alice"

    @pytest.mark.asyncio
    async def test_each_url_is_cached_separately(self, engine, fake_transport, cache):
        await engine.query(PEOPLE_URL)
        await engine.query(CITIES_URL)

        assert fake_transport.fetch.await_count == 2
        assert set(cache.keys()) == {PEOPLE_URL, CITIES_URL}

    @pytest.mark.asyncio
    async def test_concurrent_misses_each_fetch_and_last_write_wins(self, cache, make_response, people):
        release_first = asyncio.Event()
        calls = []

        async def fetch(url):
            calls.append(url)
            if len(calls) == 1:
                await release_first.wait()
                return make_response(people[:2], url=url)
            release_first.set()
            return make_response(people, url=url)

        transport = Mock()
        transport.fetch = AsyncMock(side_effect=fetch)
        engine = QueryEngine(transport=transport, cache=cache, logger_obj=Mock())

        first, second = await asyncio.gather(engine.query(PEOPLE_URL), engine.query(PEOPLE_URL))

        assert transport.fetch.await_count == 2
        assert first.total_results == 2
        assert second.total_results == len(people)
        assert PEOPLE_URL in cache
        assert len(cache.get(PEOPLE_URL)) == 2


class TestStaticQueries:
    """Test queries against in-memory datasets."""

    @pytest.mark.asyncio
    async def test_static_list(self, engine, fake_transport, cache):
        data = [{"id": 1, "tag": "red"}, {"id": 2, "tag": "blue"}, {"id": 12, "tag": "Red"}]
        result = await engine.query(data, Query(filters={"id": "1"}))

        assert result.results == [{"id": 1, "tag": "red"}, {"id": 12, "tag": "Red"}]
        assert result.columns == ("id", "tag")
        fake_transport.fetch.assert_not_called()
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_static_results_mapping(self, engine):
        data = {"results": [{"a": "x"}, {"a": "y"}]}
        result = await engine.query(StaticSource(data), Query(limit=1))

        assert result.results == [{"a": "x"}]
        assert result.total_results == 2

    @pytest.mark.asyncio
    async def test_static_values_keep_their_type(self, engine):
        data = [{"n": 5}]
        result = await engine.query(data, Query(filters={"n": "5"}))

        assert result.results == [{"n": 5}]
        assert isinstance(data[0]["n"], int)

    @pytest.mark.asyncio
    async def test_static_explicit_columns(self, engine):
        source = StaticSource([{"b": 1, "a": 2}], columns=["a", "b"])
        result = await engine.query(source)

        assert result.columns == ("a", "b")

    @pytest.mark.asyncio
    async def test_static_empty_dataset(self, engine):
        result = await engine.query(StaticSource([]))

        assert result.results == []
        assert result.total_results == 0
        assert result.columns == ()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data, message",
        [
            ([1, 2], "Record 0 is a int"),
            (5, "sequence of records"),
            ({"a": 1}, "sequence of records"),
        ],
    )
    async def test_malformed_static_dataset_is_wrapped(self, engine, cache, data, message):
        source = StaticSource(data)

        with pytest.raises(SourceQueryError) as exc_info:
            await engine.query(source)

        assert exc_info.value.source_key == source.key
        assert isinstance(exc_info.value.cause, ParseError)
        assert message in str(exc_info.value)
        assert exc_info.value.category is ErrorCategory.DATA
        engine.logger.error.assert_called_once()
        assert len(cache) == 0


class TestErrors:
    """Test error wrapping."""

    @pytest.fixture
    def failing_engine(self, cache):
        transport = Mock()
        transport.fetch = AsyncMock()
        return QueryEngine(transport=transport, cache=cache, logger_obj=Mock()), transport

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped_with_source_key(self, failing_engine, cache):
        engine, transport = failing_engine
        cause = TransportError("HTTP error! status: 500", url=PEOPLE_URL, status=500)
        transport.fetch.side_effect = cause

        with pytest.raises(SourceQueryError) as exc_info:
            await engine.query(PEOPLE_URL)

        assert exc_info.value.source_key == PEOPLE_URL
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.category is ErrorCategory.SERVER
        assert PEOPLE_URL in str(exc_info.value)
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_unsupported_format_is_wrapped(self, failing_engine, make_response):
        engine, transport = failing_engine
        transport.fetch.return_value = make_response("<html/>", content_type="text/html")

        with pytest.raises(SourceQueryError) as exc_info:
            await engine.query(PEOPLE_URL)

        assert isinstance(exc_info.value.cause, UnsupportedFormatError)
        assert exc_info.value.category is ErrorCategory.DATA

    @pytest.mark.asyncio
    async def test_parse_error_discards_response(self, failing_engine, make_response, cache):
        engine, transport = failing_engine
        transport.fetch.return_value = make_response('a,b\n1,"broken\n', content_type="text/csv")

        with pytest.raises(SourceQueryError) as exc_info:
            await engine.query(PEOPLE_URL)

        assert isinstance(exc_info.value.cause, ParseError)
        assert PEOPLE_URL not in cache

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, failing_engine):
        engine, transport = failing_engine
        transport.fetch.side_effect = TransportError("down", url=PEOPLE_URL)

        with pytest.raises(SourceQueryError):
            await engine.query(PEOPLE_URL)

        engine.logger.error.assert_called_once()
        assert PEOPLE_URL in engine.logger.error.call_args[0][0]

    @pytest.mark.asyncio
    async def test_failure_is_not_cached_so_retry_refetches(self, failing_engine, make_response, people):
        engine, transport = failing_engine
        transport.fetch.side_effect = [
            TransportError("down", url=PEOPLE_URL),
            make_response(people),
        ]

        with pytest.raises(SourceQueryError):
            await engine.query(PEOPLE_URL)
        result = await engine.query(PEOPLE_URL)

        assert result.total_results == len(people)
        assert transport.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_invalid_params(self, engine):
        with pytest.raises(InvalidQueryError):
            await engine.query(PEOPLE_URL, {"page": "0"})


class TestBindingAndWiring:
    """Test TableBinding and default wiring."""

    @pytest.mark.asyncio
    async def test_binding_fixes_paginate_policy(self, engine, people):
        unpaged = engine.bind(PEOPLE_URL, paginate=False)
        paged = engine.bind(PEOPLE_URL, paginate=True)

        everything = await unpaged.query({"limit": 2})
        window = await paged.query({"limit": 2})

        assert len(everything.results) == len(people)
        assert len(window.results) == 2

    @pytest.mark.asyncio
    async def test_binding_load(self, engine):
        dataset = await engine.bind(RemoteSource(CITIES_URL)).load()

        assert len(dataset) == 3
        assert dataset.distinct_values("state") == ["MA", "OR", "TX"]

    def test_default_cache_is_shared(self):
        assert QueryEngine(transport=Mock()).cache is get_shared_cache()

    def test_empty_injected_cache_is_kept(self):
        cache = SourceCache()
        assert QueryEngine(transport=Mock(), cache=cache).cache is cache
