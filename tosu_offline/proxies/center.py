"""
Practice center directory proxy (``all_centers``, enveloped).
"""

from ..api.models import Center
from ..api.source import ContentSource
from ..cache.proxy import CacheProxy
from ..network.reachability import ReachabilityMonitor
from .common import CatalogReader, require_list
from .result import Outcome

NAMESPACE = "centers"
CENTERS_KEY = "all_centers"


def parse_centers(data) -> list[Center]:
    return [Center.model_validate(item) for item in require_list(data)]


class CenterProxy:
    """Cached access to the center directory."""

    def __init__(
        self,
        cache: CacheProxy,
        source: ContentSource,
        reachability: ReachabilityMonitor | None = None,
        fetch_timeout: float | None = 15.0,
    ):
        self.cache = cache
        self.source = source
        self.reader = CatalogReader(cache, reachability=reachability, fetch_timeout=fetch_timeout)

    async def _fetch(self) -> list[dict]:
        return [c.to_cache() for c in await self.source.fetch_centers()]

    async def get_centers_result(self) -> Outcome[list[Center]]:
        return await self.reader.cached_first(CENTERS_KEY, self._fetch, parse_centers)

    async def get_centers(self) -> list[Center]:
        return (await self.get_centers_result()).value_or([])

    async def get_centers_fresh_result(self) -> Outcome[list[Center]]:
        return await self.reader.fresh_first(CENTERS_KEY, self._fetch, parse_centers)

    async def get_centers_fresh(self) -> list[Center]:
        return (await self.get_centers_fresh_result()).value_or([])

    async def clear_cache(self) -> int:
        return await self.cache.clear_all()
