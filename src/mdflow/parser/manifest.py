"""Fetch-result cache shared across one import resolution.

Every reference to the same remote identity is satisfied by at most one
underlying fetch. Concurrent first access to a key is serialized on a
per-key lock; later accesses are plain cache reads.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterator, Mapping, Optional

from mdflow.parser.remote import Fetcher

logger = logging.getLogger(__name__)


class ImportManifest:
    """Thread-safe mapping of remote identity to fetched content."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._contents: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._contents

    def __len__(self) -> int:
        with self._lock:
            return len(self._contents)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._contents)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._contents.get(key)

    def put(self, key: str, content: str) -> None:
        with self._lock:
            self._contents[key] = content

    def _lock_for(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def get_or_fetch(self, key: str, fetcher: Fetcher) -> str:
        """
        Return cached content for ``key``, fetching it once if missing.

        Errors raised by ``fetcher`` propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Manifest hit: %s", key)
            return cached

        with self._lock_for(key):
            # another thread may have fetched while we waited
            cached = self.get(key)
            if cached is not None:
                return cached

            logger.debug("Fetching remote import: %s", key)
            content = fetcher(key)
            with self._lock:
                self._contents[key] = content
                # waiters still hold the lock object; later callers hit the cache
                self._key_locks.pop(key, None)
            return content
