"""In-memory cache of parsed remote sources."""

import logging
import threading
from typing import Dict, List, Optional

from .models import Dataset


class SourceCache:
    """Maps a source key to its parsed dataset for the life of the process.

    Entries never expire and the store is unbounded. Concurrent misses for
    the same key are not deduplicated: each caller fetches and parses, and
    the last ``put`` wins.
    """

    def __init__(self):
        self._store: Dict[str, Dataset] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def get(self, source_key: str) -> Optional[Dataset]:
        with self._lock:
            return self._store.get(source_key)

    def put(self, source_key: str, dataset: Dataset) -> None:
        with self._lock:
            replaced = source_key in self._store
            self._store[source_key] = dataset
        if replaced:
            self._logger.debug(f"Replaced cached dataset for {source_key}")
        else:
            self._logger.debug(f"Cached {len(dataset)} records for {source_key}")

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store)

    def __contains__(self, source_key: object) -> bool:
        with self._lock:
            return source_key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# Process-wide cache shared by default wiring
_shared_cache = SourceCache()


def get_shared_cache() -> SourceCache:
    """Return the process-wide cache instance."""
    return _shared_cache
