"""
Namespace-scoped cache operations.

Domain proxies compose a CacheProxy rather than inheriting from a base
class. Each CacheProxy remembers the keys it has written in a raw registry
entry (``cache_keys_<namespace>``) so that clearing a namespace never
touches another domain's data or the download indexes.
"""

import logging
from typing import Any

from ..storage.base import KeyValueStore, StorageError
from .envelope import CacheEnvelope, EnvelopeCodec

logger = logging.getLogger(__name__)

REGISTRY_PREFIX = "cache_keys_"


class CacheProxy:
    """
    Cached-read, write, and clear operations for one namespace.

    Example:
        books_cache = CacheProxy(store, namespace="books")
        await books_cache.set_raw("all_books", books)
        books = await books_cache.get_cached("all_books")
    """

    def __init__(self, store: KeyValueStore, namespace: str, codec: EnvelopeCodec | None = None):
        """
        Args:
            store: Backing key-value store
            namespace: Name used to scope clear_all
            codec: Shared codec (created if not given)
        """
        self.store = store
        self.namespace = namespace
        self.codec = codec or EnvelopeCodec(store)
        self.registry_key = f"{REGISTRY_PREFIX}{namespace}"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_cached(self, key: str) -> Any | None:
        """Return the cached payload for key, or None."""
        return await self.codec.read(key)

    async def get_entry(self, key: str) -> CacheEnvelope | None:
        """Return the cached envelope (payload plus timestamp) for key."""
        return await self.codec.read_entry(key)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def set_cached(self, key: str, value: Any) -> bool:
        """Store value in an envelope. Best-effort: False if dropped."""
        return await self._store(key, self.codec.encode(value))

    async def set_raw(self, key: str, value: Any) -> bool:
        """Store value without an envelope. Best-effort: False if dropped."""
        return await self._store(key, self.codec.encode_raw(value))

    # -------------------------------------------------------------------------
    # Clearing
    # -------------------------------------------------------------------------

    async def keys(self) -> list[str]:
        """Keys written through this namespace."""
        registered = await self.codec.read(self.registry_key)
        if not isinstance(registered, list):
            return []
        return [k for k in registered if isinstance(k, str)]

    async def clear_key(self, key: str) -> bool:
        """
        Delete one key.

        Returns:
            True if the store accepted the delete
        """
        try:
            await self.store.delete(key)
        except StorageError as e:
            logger.error("Error clearing cache key %s: %s", key, e)
            return False

        registered = await self.keys()
        if key in registered:
            registered.remove(key)
            await self.codec.write_raw(self.registry_key, registered)
        return True

    async def clear_all(self) -> int:
        """
        Delete every key owned by this namespace.

        Returns:
            Number of keys deleted
        """
        owned = await self.keys()
        try:
            await self.store.multi_delete([*owned, self.registry_key])
        except StorageError as e:
            logger.error("Error clearing cache namespace '%s': %s", self.namespace, e)
            return 0

        logger.info("Cleared %d cached keys from '%s'", len(owned), self.namespace)
        return len(owned)

    async def _store(self, key: str, payload: str) -> bool:
        # The value and its registry entry share one eviction budget.
        items = [(key, payload)]
        registered = await self.keys()
        if key not in registered:
            items.append((self.registry_key, self.codec.encode_raw([*registered, key])))
        return await self.codec.write_serialized(items)
