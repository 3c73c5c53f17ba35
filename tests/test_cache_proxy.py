"""Tests for namespace-scoped cache proxies."""

from unittest.mock import patch

import orjson
import pytest
from conftest import dumps

from tosu_offline.cache.envelope import EnvelopeCodec
from tosu_offline.cache.proxy import CacheProxy
from tosu_offline.storage.memory import MemoryKeyValueStore


class TestCacheProxy:
    """Test CacheProxy reads, writes and clearing."""

    @pytest.fixture
    def books_cache(self, store, codec) -> CacheProxy:
        return CacheProxy(store, "books", codec)

    @pytest.fixture
    def audio_cache(self, store, codec) -> CacheProxy:
        return CacheProxy(store, "audio", codec)

    @pytest.mark.asyncio
    async def test_set_and_get_cached(self, audio_cache):
        """Test enveloped round trip through the proxy."""
        assert await audio_cache.set_cached("null", [{"id": "c1"}]) is True

        assert await audio_cache.get_cached("null") == [{"id": "c1"}]
        entry = await audio_cache.get_entry("null")
        assert entry.timestamp is not None

    @pytest.mark.asyncio
    async def test_set_raw_stores_plain_json(self, books_cache, store):
        """Test raw writes carry no envelope."""
        await books_cache.set_raw("all_books", [{"id": "b1"}])

        assert orjson.loads(await store.get("all_books")) == [{"id": "b1"}]

    @pytest.mark.asyncio
    async def test_keys_registered_once(self, audio_cache, store):
        """Test written keys are tracked in the namespace registry."""
        await audio_cache.set_cached("null", [])
        await audio_cache.set_cached("col1", {"id": "col1"})
        await audio_cache.set_cached("col1", {"id": "col1", "name": "x"})

        assert await audio_cache.keys() == ["null", "col1"]
        assert orjson.loads(await store.get("cache_keys_audio")) == ["null", "col1"]

    @pytest.mark.asyncio
    async def test_clear_all_scoped_to_namespace(self, audio_cache, books_cache, store):
        """Test clearing one namespace leaves other keys alone."""
        await audio_cache.set_cached("null", [])
        await audio_cache.set_cached("col1", {"id": "col1"})
        await books_cache.set_raw("all_books", [])
        await store.set("offline_audio_tracks", "[]")

        cleared = await audio_cache.clear_all()

        assert cleared == 2
        remaining = set(await store.keys())
        assert "null" not in remaining
        assert "col1" not in remaining
        assert "cache_keys_audio" not in remaining
        assert {"all_books", "offline_audio_tracks", "cache_keys_books"} <= remaining
        assert await audio_cache.keys() == []

    @pytest.mark.asyncio
    async def test_clear_key(self, audio_cache, store):
        """Test clearing one key deregisters it."""
        await audio_cache.set_cached("null", [])
        await audio_cache.set_cached("col1", {"id": "col1"})

        assert await audio_cache.clear_key("col1") is True

        assert await store.get("col1") is None
        assert await audio_cache.keys() == ["null"]

    @pytest.mark.asyncio
    async def test_clear_missing_key(self, audio_cache):
        """Test clearing an unknown key is not an error."""
        assert await audio_cache.clear_key("never-written") is True

    @pytest.mark.asyncio
    async def test_keys_tolerates_corrupt_registry(self, audio_cache, store):
        await store.set("cache_keys_audio", "{oops")

        assert await audio_cache.keys() == []


class TestCacheProxyQuota:
    """Test that a write and its registry update share one eviction."""

    NOW = 1_700_000_000_009

    @pytest.fixture
    def full_store(self) -> MemoryKeyValueStore:
        entries = {
            key: dumps({"data": "x" * 20, "timestamp": 1_700_000_000_000 + i})
            for i, key in enumerate(["a", "b", "c"], start=1)
        }
        return MemoryKeyValueStore(entries)

    def proxy(self, store: MemoryKeyValueStore, slack: int) -> CacheProxy:
        store.max_bytes = store.used_bytes() + slack
        return CacheProxy(store, "audio", EnvelopeCodec(store))

    @pytest.mark.asyncio
    async def test_registry_failure_evicts_only_once(self, full_store):
        """Test a dropped registry update rolls the value back without a second eviction."""
        audio_cache = self.proxy(full_store, slack=5)

        with patch("tosu_offline.cache.envelope.now_ms", return_value=self.NOW):
            assert await audio_cache.set_cached("d", "x" * 20) is False

        assert set(full_store.snapshot()) == {"b", "c"}
        assert await audio_cache.keys() == []

    @pytest.mark.asyncio
    async def test_value_and_registry_fit_after_one_eviction(self, full_store):
        """Test the single eviction makes room for both writes."""
        audio_cache = self.proxy(full_store, slack=30)

        with patch("tosu_offline.cache.envelope.now_ms", return_value=self.NOW):
            assert await audio_cache.set_cached("d", "x" * 20) is True

        assert set(full_store.snapshot()) == {"b", "c", "d", "cache_keys_audio"}
        assert await audio_cache.keys() == ["d"]
        assert await audio_cache.get_cached("d") == "x" * 20
