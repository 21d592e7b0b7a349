"""HTTP transport for remote table sources."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

import aiohttp

from ..config.api import TransportConfig
from .error_handling import TransportError, categorize_error


@dataclass(frozen=True)
class RawResponse:
    """Undecoded response payload plus the headers the parser needs."""

    url: str
    status: int
    content_type: Optional[str]
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    charset: Optional[str] = None

    def text(self) -> str:
        """Decode the body using the declared charset."""
        return self.body.decode(self.charset or TransportConfig.DEFAULT_CHARSET)


class Transport(Protocol):
    """Anything that can GET a URL and hand back a RawResponse."""

    async def fetch(self, url: str) -> RawResponse:
        ...


class HttpTransport:
    """Fetches remote sources over HTTP with aiohttp.

    A transport opened with ``async with`` reuses one session for every
    fetch; otherwise each fetch opens and closes its own session.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = TransportConfig.REQUEST_TIMEOUT,
        logger_obj: Optional[logging.Logger] = None,
    ):
        self.logger = logger_obj or logging.getLogger(__name__)
        self._session = session
        self._owns_session = False
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"User-Agent": TransportConfig.USER_AGENT}

    async def __aenter__(self) -> "HttpTransport":
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=self.headers)
            self._owns_session = True
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._owns_session = False

    async def fetch(self, url: str) -> RawResponse:
        """GET ``url`` and return its body; no retries are attempted."""
        self.logger.info(f"Fetching data from URL: {url}")
        if self._session is not None:
            return await self._get(self._session, url)
        async with aiohttp.ClientSession(headers=self.headers) as session:
            return await self._get(session, url)

    async def _get(self, session: aiohttp.ClientSession, url: str) -> RawResponse:
        try:
            async with session.get(url, timeout=self.timeout) as resp:
                if resp.status >= 400:
                    raise TransportError(
                        f"HTTP error! status: {resp.status}", url=url, status=resp.status
                    )
                body = await resp.read()
                return RawResponse(
                    url=url,
                    status=resp.status,
                    content_type=resp.headers.get("Content-Type"),
                    body=body,
                    headers=dict(resp.headers),
                    charset=resp.charset,
                )
        except TransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error_category = categorize_error(e)
            self.logger.error(f"Request failed with {error_category.value} error: {e}")
            raise TransportError(
                f"Request to {url} failed: {str(e) or type(e).__name__}",
                url=url,
                category=error_category,
            ) from e
