"""Dependency injection container for the query engine."""

import logging
from typing import Any, Optional

from ..api.retrying import RetryingTransport
from ..api.transport import HttpTransport, Transport
from ..config.api import TransportConfig
from ..config.settings import Settings
from ..data.cache import SourceCache, get_shared_cache
from ..data.query_engine import QueryEngine, TableBinding
from ..utils.logger_setup import setup_logging


class DependencyContainer:
    """Wires transport, cache and engine together.

    By default every container shares the process-wide ``SourceCache``;
    pass a fresh cache to isolate one container from the rest.
    """

    def __init__(
        self,
        cache: Optional[SourceCache] = None,
        max_tries: int = 1,
        request_timeout: Optional[float] = TransportConfig.REQUEST_TIMEOUT,
        logger_name: str = "tablequery",
        log_level: int = logging.INFO,
        log_to_file: bool = False,
        console_output: bool = True,
    ):
        self.cache = cache if cache is not None else get_shared_cache()
        self.max_tries = max_tries
        self.request_timeout = request_timeout
        if log_to_file:
            Settings.ensure_directories()
        self.logger = setup_logging(
            logger_name, log_level=log_level, log_to_file=log_to_file, console_output=console_output
        )

        self._transport: Optional[Transport] = None
        self._query_engine: Optional[QueryEngine] = None

    @property
    def transport(self) -> Transport:
        """Get or create the transport, wrapped for retries when requested."""
        if self._transport is None:
            transport: Transport = HttpTransport(timeout=self.request_timeout)
            if self.max_tries > 1:
                transport = RetryingTransport(transport, max_tries=self.max_tries)
            self._transport = transport
        return self._transport

    @property
    def query_engine(self) -> QueryEngine:
        """Get or create the query engine."""
        if self._query_engine is None:
            self._query_engine = QueryEngine(transport=self.transport, cache=self.cache)
        return self._query_engine

    def bind(self, source: Any, paginate: bool = True) -> TableBinding:
        """Bind a source to the engine with a fixed pagination policy."""
        return self.query_engine.bind(source, paginate=paginate)

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger instance."""
        if name:
            return logging.getLogger(name)
        return self.logger
