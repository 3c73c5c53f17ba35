"""
Video catalog proxy.

Keys: ``video_categories`` for the category list and ``<categoryId>`` for
each category's videos, both enveloped.
"""

from ..api.models import VideoCollection, VideoCollectionDetail
from ..api.source import ContentSource
from ..cache.proxy import CacheProxy
from ..network.reachability import ReachabilityMonitor
from .common import CatalogReader, require_dict, require_list
from .result import Outcome

NAMESPACE = "videos"
CATEGORIES_KEY = "video_categories"


def parse_categories(data) -> list[VideoCollection]:
    return [VideoCollection.model_validate(item) for item in require_list(data)]


def parse_detail(data) -> VideoCollectionDetail:
    return VideoCollectionDetail.model_validate(require_dict(data))


class VideoProxy:
    """Cached access to video categories and their videos."""

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

    async def _fetch_categories(self) -> list[dict]:
        return [c.to_cache() for c in await self.source.fetch_video_categories()]

    def _detail_fetcher(self, category_id: str):
        async def fetch() -> dict:
            return (await self.source.fetch_video_detail(category_id)).to_cache()

        return fetch

    async def get_video_categories_result(self) -> Outcome[list[VideoCollection]]:
        return await self.reader.cached_first(CATEGORIES_KEY, self._fetch_categories, parse_categories)

    async def get_video_categories(self) -> list[VideoCollection]:
        return (await self.get_video_categories_result()).value_or([])

    async def get_video_categories_fresh_result(self) -> Outcome[list[VideoCollection]]:
        return await self.reader.fresh_first(CATEGORIES_KEY, self._fetch_categories, parse_categories)

    async def get_video_categories_fresh(self) -> list[VideoCollection]:
        return (await self.get_video_categories_fresh_result()).value_or([])

    async def get_video_category_by_id_result(self, category_id: str) -> Outcome[VideoCollectionDetail]:
        return await self.reader.cached_first(category_id, self._detail_fetcher(category_id), parse_detail)

    async def get_video_category_by_id(self, category_id: str) -> VideoCollectionDetail | None:
        return (await self.get_video_category_by_id_result(category_id)).value

    async def get_video_category_by_id_fresh_result(self, category_id: str) -> Outcome[VideoCollectionDetail]:
        return await self.reader.fresh_first(category_id, self._detail_fetcher(category_id), parse_detail)

    async def get_video_category_by_id_fresh(self, category_id: str) -> VideoCollectionDetail | None:
        return (await self.get_video_category_by_id_fresh_result(category_id)).value

    async def clear_cache(self) -> int:
        return await self.cache.clear_all()
