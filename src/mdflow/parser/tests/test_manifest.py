"""
Tests for the remote fetch manifest.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from mdflow.parser.manifest import ImportManifest


class TestImportManifest:
    """Tests for ImportManifest."""

    def test_initial_contents(self):
        manifest = ImportManifest({"o/r/a.md@v1": "A"})

        assert "o/r/a.md@v1" in manifest
        assert len(manifest) == 1
        assert manifest.get("o/r/a.md@v1") == "A"
        assert manifest.get("o/r/b.md@v1") is None
        assert list(manifest) == ["o/r/a.md@v1"]

    def test_get_or_fetch_caches(self):
        calls = []

        def fetcher(key):
            calls.append(key)
            return f"content of {key}"

        manifest = ImportManifest()

        assert manifest.get_or_fetch("o/r/a.md@v1", fetcher) == "content of o/r/a.md@v1"
        assert manifest.get_or_fetch("o/r/a.md@v1", fetcher) == "content of o/r/a.md@v1"
        assert calls == ["o/r/a.md@v1"]

    def test_fetch_error_not_cached(self):
        manifest = ImportManifest()

        def failing(key):
            raise ConnectionError("unreachable")

        with pytest.raises(ConnectionError):
            manifest.get_or_fetch("o/r/a.md@v1", failing)

        assert "o/r/a.md@v1" not in manifest
        assert manifest.get_or_fetch("o/r/a.md@v1", lambda key: "ok") == "ok"

    def test_concurrent_first_access_fetches_once(self):
        calls = []
        calls_lock = threading.Lock()

        def slow_fetcher(key):
            with calls_lock:
                calls.append(key)
            time.sleep(0.05)
            return "shared"

        manifest = ImportManifest()
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(
                pool.map(lambda _: manifest.get_or_fetch("o/r/a.md@v1", slow_fetcher), range(16))
            )

        assert results == ["shared"] * 16
        assert calls == ["o/r/a.md@v1"]

    def test_different_keys_fetch_independently(self):
        manifest = ImportManifest()

        manifest.get_or_fetch("o/r/a.md@v1", lambda key: "A")
        manifest.get_or_fetch("o/r/b.md@v1", lambda key: "B")

        assert sorted(manifest.keys()) == ["o/r/a.md@v1", "o/r/b.md@v1"]

    def test_key_lock_released_after_fetch(self):
        manifest = ImportManifest()

        manifest.get_or_fetch("o/r/a.md@v1", lambda key: "A")

        assert manifest._key_locks == {}
        assert manifest.get("o/r/a.md@v1") == "A"
