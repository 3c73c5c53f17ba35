"""
Reactive single-entry eviction.

Invoked only after a write has already failed. Removes exactly one key:
the enveloped entry with the smallest timestamp. Values that are not valid
JSON rank as timestamp zero and go first. Well-formed values without an
envelope timestamp hold on-device state (download indexes, the book list,
key registries) that cannot be refetched, so they are never candidates.
"""

import logging

import orjson

from ..storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

CORRUPT_TIMESTAMP = 0


def entry_timestamp(raw: str) -> int | None:
    """
    Eviction rank of a stored value.

    Returns:
        The envelope timestamp, CORRUPT_TIMESTAMP for unparseable values,
        or None if the value is not an eviction candidate
    """
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return CORRUPT_TIMESTAMP

    if isinstance(parsed, dict):
        timestamp = parsed.get("timestamp")
        if isinstance(timestamp, int | float) and not isinstance(timestamp, bool):
            return int(timestamp)
    return None


async def find_oldest(store: KeyValueStore) -> str | None:
    """Return the key evict_oldest would remove, without removing it."""
    keys = await store.keys()
    if not keys:
        return None

    oldest_key: str | None = None
    oldest_time: int | None = None

    for key, raw in await store.multi_get(keys):
        if raw is None:
            continue
        timestamp = entry_timestamp(raw)
        if timestamp is None:
            continue
        # Strict comparison keeps the first key on ties.
        if oldest_time is None or timestamp < oldest_time:
            oldest_key, oldest_time = key, timestamp

    return oldest_key


async def evict_oldest(store: KeyValueStore) -> str | None:
    """
    Delete the single oldest cache entry.

    Returns:
        The evicted key, or None if nothing was evictable or the store failed
    """
    try:
        oldest_key = await find_oldest(store)
        if oldest_key is None:
            logger.warning("No evictable cache entry found")
            return None

        await store.delete(oldest_key)
    except StorageError as e:
        logger.error("Error while evicting cache entry: %s", e)
        return None

    logger.info("Evicted oldest cache entry '%s'", oldest_key)
    return oldest_key
