# tests/conftest.py
import json
import logging
from unittest.mock import AsyncMock, Mock

import pytest

from tablequery.api.transport import RawResponse
from tablequery.data.cache import SourceCache
from tablequery.data.query_engine import QueryEngine

# Keep test output quiet unless a test asserts on log records
logging.getLogger("tablequery").setLevel(logging.CRITICAL)

PEOPLE_URL = "https://example.test/people.json"
CITIES_URL = "https://example.test/cities.csv"

PEOPLE = [
    {"name": "Alice", "city": "Boston", "age": "30"},
    {"name": "Bob", "city": "Portland", "age": "25"},
    {"name": "Carol", "city": "Austin", "age": "41"},
    {"name": "Dave", "city": "Boston", "age": "35"},
    {"name": "Eve", "city": "Denver", "age": "28"},
]

CITIES_CSV = (
    "city, state, population\n"
    "Boston, MA, 675647\n"
    "\"Portland, OR\", OR, 652503\n"
    "Austin, TX\n"
    "\n"
)


def _make_response(body, content_type="application/json", url=PEOPLE_URL, status=200, charset=None):
    if not isinstance(body, (bytes, str)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")
    return RawResponse(
        url=url,
        status=status,
        content_type=content_type,
        body=body,
        headers={"Content-Type": content_type} if content_type else {},
        charset=charset,
    )


@pytest.fixture
def make_response():
    """Factory for RawResponse objects; dict/list bodies are JSON-encoded."""
    return _make_response


@pytest.fixture
def people():
    return [dict(person) for person in PEOPLE]


@pytest.fixture
def cities_csv():
    return CITIES_CSV


@pytest.fixture
def cache():
    """An isolated cache so tests never see each other's datasets."""
    return SourceCache()


@pytest.fixture
def fake_transport():
    """Transport stub serving the people JSON and the cities CSV by URL."""
    responses = {
        PEOPLE_URL: _make_response({"results": PEOPLE}, url=PEOPLE_URL),
        CITIES_URL: _make_response(CITIES_CSV, content_type="text/csv; charset=utf-8", url=CITIES_URL),
    }

    async def fetch(url):
        return responses[url]

    transport = Mock()
    transport.fetch = AsyncMock(side_effect=fetch)
    return transport


@pytest.fixture
def engine(fake_transport, cache):
    return QueryEngine(transport=fake_transport, cache=cache, logger_obj=Mock())
