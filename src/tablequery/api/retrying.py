"""Opt-in retry wrapper for transports.

The engine never retries on its own; callers that want retries wrap their
transport in ``RetryingTransport`` before handing it to the engine.
"""

import logging
from typing import Optional

import backoff

from ..config.api import TransportConfig
from .error_handling import ErrorCategory, TransportError
from .transport import RawResponse, Transport

_module_logger = logging.getLogger(__name__)


def _backoff_handler(details):
    """Log backoff attempts with the error category."""
    exception = details["exception"]
    _module_logger.warning(
        f"Backing off {details['wait']:.1f}s after {exception.category.value} error "
        f"(attempt {details['tries']}): {exception}"
    )


def _giveup_handler(details):
    exception = details["exception"]
    _module_logger.error(f"Giving up on {exception.url} after {details['tries']} attempt(s): {exception}")


def _is_permanent(exception: TransportError) -> bool:
    """Client errors will not succeed on retry."""
    return exception.category is ErrorCategory.CLIENT


class RetryingTransport:
    """Retries failed fetches of an inner transport with exponential backoff."""

    def __init__(
        self,
        inner: Transport,
        max_tries: int = TransportConfig.MAX_RETRIES,
        base: float = TransportConfig.RETRY_BASE_DELAY,
        factor: float = 1,
        max_delay: Optional[float] = TransportConfig.RETRY_MAX_DELAY,
    ):
        if max_tries < 1:
            raise ValueError("max_tries must be at least 1")
        self.inner = inner
        self.max_tries = max_tries
        self.base = base
        self.factor = factor
        self.max_delay = max_delay

    async def fetch(self, url: str) -> RawResponse:
        retrying_fetch = backoff.on_exception(
            backoff.expo,
            TransportError,
            max_tries=self.max_tries,
            giveup=_is_permanent,
            on_backoff=_backoff_handler,
            on_giveup=_giveup_handler,
            jitter=backoff.full_jitter,
            base=self.base,
            factor=self.factor,
            max_value=self.max_delay,
        )(self._fetch_once)
        return await retrying_fetch(url)

    async def _fetch_once(self, url: str) -> RawResponse:
        return await self.inner.fetch(url)
