"""
Shared read machinery for the domain proxies.

Two read modes:
- cached-first: a cache hit returns without touching the network
- fresh-first: the network is tried first, the result is merged with the
  cached local state and persisted; on failure the cached value is used

Every network call goes through ``asyncio.wait_for`` so a hung request
cannot block its task forever, and the network is skipped entirely while
the reachability signal reports the device as offline.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..cache.proxy import CacheProxy
from ..network.reachability import ReachabilityMonitor
from .result import NetworkUnavailableError, Outcome, Source

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[Any]]
Parser = Callable[[Any], T]
Merger = Callable[[Any, Any], Any]


def require_list(data: Any) -> list:
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")
    return data


def require_dict(data: Any) -> dict:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    return data


class CatalogReader:
    """
    Cached-first and fresh-first reads over one CacheProxy.

    Fetchers return data in its cache shape (plain JSON values). Parsers turn
    that data into the value handed to callers and raise TypeError or
    ValueError (pydantic's ValidationError included) when the shape is
    wrong, which makes a cached value count as a miss.
    """

    def __init__(
        self,
        cache: CacheProxy,
        reachability: ReachabilityMonitor | None = None,
        fetch_timeout: float | None = 15.0,
        raw: bool = False,
    ):
        """
        Args:
            cache: Namespace cache to read and write
            reachability: Connectivity signal; None means always try the network
            fetch_timeout: Seconds before a fetch is abandoned (None disables)
            raw: Store values without an envelope
        """
        self.cache = cache
        self.reachability = reachability
        self.fetch_timeout = fetch_timeout
        self.raw = raw

    @property
    def is_offline(self) -> bool:
        return self.reachability is not None and self.reachability.is_offline

    async def store(self, key: str, data: Any) -> bool:
        if self.raw:
            return await self.cache.set_raw(key, data)
        return await self.cache.set_cached(key, data)

    async def cached_data(self, key: str, parse: Parser) -> Any | None:
        """Cached data at key if it parses, else None."""
        data = await self.cache.get_cached(key)
        if data is None:
            return None
        try:
            parse(data)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring cached '%s' with unexpected shape: %s", key, e)
            return None
        return data

    async def read_cached(self, key: str, parse: Parser[T]) -> Outcome[T]:
        data = await self.cached_data(key, parse)
        if data is None:
            return Outcome.missing(key)
        return Outcome(parse(data), Source.CACHE, key=key)

    async def fetch(self, fetcher: Fetcher) -> Any:
        """
        Call the fetcher with the configured timeout.

        Raises:
            NetworkUnavailableError: If the device is offline
        """
        if self.is_offline:
            raise NetworkUnavailableError("device is offline")
        return await asyncio.wait_for(fetcher(), self.fetch_timeout)

    async def cached_first(self, key: str, fetcher: Fetcher, parse: Parser[T]) -> Outcome[T]:
        """Return the cached value, fetching and caching it on a miss."""
        cached = await self.read_cached(key, parse)
        if cached.ok:
            return cached

        try:
            data = await self.fetch(fetcher)
            value = parse(data)
        except Exception as e:
            logger.warning("Fetch for '%s' failed with nothing cached: %s", key, e)
            return Outcome.missing(key, e)

        await self.store(key, data)
        return Outcome(value, Source.NETWORK, key=key)

    async def fresh_first(
        self,
        key: str,
        fetcher: Fetcher,
        parse: Parser[T],
        merge: Merger | None = None,
    ) -> Outcome[T]:
        """Fetch, merge with cached local state, persist; fall back to cache."""
        try:
            data = await self.fetch(fetcher)
            parse(data)
        except Exception as e:
            logger.warning("Fetch for '%s' failed, using cache: %s", key, e)
            cached = await self.read_cached(key, parse)
            if cached.ok:
                return cached
            return Outcome.missing(key, e)

        if merge is not None:
            previous = await self.cached_data(key, parse)
            if previous is not None:
                data = merge(data, previous)

        await self.store(key, data)
        return Outcome(parse(data), Source.NETWORK, key=key)
