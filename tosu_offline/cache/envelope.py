"""
Timestamped envelopes for cached payloads.

Every enveloped write stores ``{"data": ..., "timestamp": <ms>}`` so that
the eviction policy can find the oldest entry. Readers also accept the
legacy raw format (no envelope) and return the whole parsed value.
"""

import logging
import time
from typing import Any, Generic, TypeVar

import orjson

from ..storage.base import KeyValueStore, StorageError
from .eviction import evict_oldest

logger = logging.getLogger(__name__)

T = TypeVar("T")


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return time.time_ns() // 1_000_000


class CacheEnvelope(Generic[T]):
    """A cached payload with its write time."""

    def __init__(self, data: T, timestamp: int | None):
        self.data = data
        self.timestamp = timestamp

    @property
    def is_legacy(self) -> bool:
        """True when the value was stored without an envelope."""
        return self.timestamp is None

    @property
    def age_ms(self) -> int | None:
        if self.timestamp is None:
            return None
        return now_ms() - self.timestamp

    def to_dict(self) -> dict:
        """Serialize for storage."""
        return {"data": self.data, "timestamp": self.timestamp}

    @classmethod
    def from_parsed(cls, parsed: Any) -> "CacheEnvelope":
        """Wrap a parsed stored value, tolerating the raw format."""
        if isinstance(parsed, dict) and "data" in parsed:
            timestamp = parsed.get("timestamp")
            if not isinstance(timestamp, int | float) or isinstance(timestamp, bool):
                timestamp = None
            return cls(data=parsed["data"], timestamp=int(timestamp) if timestamp is not None else None)
        return cls(data=parsed, timestamp=None)


class EnvelopeCodec:
    """
    Reads and writes cache entries against a KeyValueStore.

    Writes are best-effort: a failed write triggers a single eviction and one
    retry, then the write is dropped. Reads never raise on bad data.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._last_timestamp = 0

    def _next_timestamp(self) -> int:
        # Non-decreasing even if the wall clock steps backwards.
        self._last_timestamp = max(now_ms(), self._last_timestamp)
        return self._last_timestamp

    async def read_entry(self, key: str) -> CacheEnvelope | None:
        """
        Read the envelope stored at key.

        Returns:
            The envelope, or None if the key is missing, unreadable, or corrupt
        """
        try:
            raw = await self.store.get(key)
        except StorageError as e:
            logger.error("Cache read failed for '%s': %s", key, e)
            return None

        if raw is None:
            return None

        try:
            parsed = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.error("Invalid cache format for '%s': %s", key, e)
            return None

        return CacheEnvelope.from_parsed(parsed)

    async def read(self, key: str) -> Any | None:
        """Read the payload stored at key, or None."""
        entry = await self.read_entry(key)
        return entry.data if entry is not None else None

    async def write(self, key: str, data: Any) -> bool:
        """
        Store data wrapped in an envelope.

        Returns:
            True if the value was persisted
        """
        return await self.write_serialized([(key, self.encode(data))])

    async def write_raw(self, key: str, data: Any) -> bool:
        """
        Store data as plain JSON, without an envelope.

        Returns:
            True if the value was persisted
        """
        return await self.write_serialized([(key, self.encode_raw(data))])

    def encode(self, data: Any) -> str:
        """Serialize data in a freshly stamped envelope."""
        envelope = CacheEnvelope(data=data, timestamp=self._next_timestamp())
        return orjson.dumps(envelope.to_dict()).decode("utf-8")

    def encode_raw(self, data: Any) -> str:
        return orjson.dumps(data).decode("utf-8")

    async def write_serialized(self, items: list[tuple[str, str]]) -> bool:
        """
        Persist already serialized values in order.

        All items share one eviction and one retry. If an item is still
        rejected after that, the items of this batch already written are
        deleted again and the whole batch is dropped.

        Returns:
            True if every item was persisted
        """
        written: list[str] = []
        evicted = False
        for key, payload in items:
            try:
                await self.store.set(key, payload)
                written.append(key)
                continue
            except StorageError as e:
                if evicted:
                    logger.warning("Dropping cache write for '%s' after eviction: %s", key, e)
                    await self._rollback(written)
                    return False
                logger.warning("Cache write failed for '%s' (%s), evicting oldest entry", key, e)

            await evict_oldest(self.store)
            evicted = True

            try:
                await self.store.set(key, payload)
                written.append(key)
            except StorageError as e:
                logger.warning("Dropping cache write for '%s' after eviction: %s", key, e)
                await self._rollback(written)
                return False
        return True

    async def _rollback(self, keys: list[str]) -> None:
        if not keys:
            return
        try:
            await self.store.multi_delete(keys)
        except StorageError as e:
            logger.error("Could not roll back cache keys %s: %s", keys, e)
