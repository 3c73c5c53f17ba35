"""
Audio catalog proxy.

Category listings and collection details share one key space: both are
stored at ``<categoryId>`` (``null`` for the root listing) as envelopes.
A listing is a JSON array and a detail is an object, so a value of the
other shape is treated as a cache miss.
"""

import logging

from ..api.models import AudioCollection, AudioCollectionDetail
from ..api.source import ContentSource
from ..cache.proxy import CacheProxy
from ..network.reachability import ReachabilityMonitor
from .common import CatalogReader, require_dict, require_list
from .merge import audio_track_id, merge_audio_detail, patch_entry
from .result import Outcome

logger = logging.getLogger(__name__)

NAMESPACE = "audio"


def category_key(category_id: str | None) -> str:
    return "null" if category_id is None else str(category_id)


def parse_collections(data) -> list[AudioCollection]:
    return [AudioCollection.model_validate(item) for item in require_list(data)]


def parse_detail(data) -> AudioCollectionDetail:
    return AudioCollectionDetail.model_validate(require_dict(data))


class AudioProxy:
    """Cached access to audio categories and collections."""

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

    # -------------------------------------------------------------------------
    # Category listings
    # -------------------------------------------------------------------------

    def _category_fetcher(self, category_id: str | None):
        async def fetch() -> list[dict]:
            collections = await self.source.fetch_audio_category(category_id)
            return [c.to_cache() for c in collections]

        return fetch

    async def get_audio_category_result(self, category_id: str | None) -> Outcome[list[AudioCollection]]:
        return await self.reader.cached_first(
            category_key(category_id), self._category_fetcher(category_id), parse_collections
        )

    async def get_audio_category(self, category_id: str | None) -> list[AudioCollection]:
        """Collections under a category, cache first. Empty on failure."""
        outcome = await self.get_audio_category_result(category_id)
        return outcome.value_or([])

    async def get_audio_category_fresh_result(self, category_id: str | None) -> Outcome[list[AudioCollection]]:
        return await self.reader.fresh_first(
            category_key(category_id), self._category_fetcher(category_id), parse_collections
        )

    async def get_audio_category_fresh(self, category_id: str | None) -> list[AudioCollection]:
        """Collections under a category, network first. Empty on failure."""
        outcome = await self.get_audio_category_fresh_result(category_id)
        return outcome.value_or([])

    # -------------------------------------------------------------------------
    # Collection details
    # -------------------------------------------------------------------------

    def _detail_fetcher(self, collection_id: str):
        async def fetch() -> dict:
            detail = await self.source.fetch_audio_detail(collection_id)
            return detail.to_cache()

        return fetch

    async def get_audio_by_id_result(self, collection_id: str) -> Outcome[AudioCollectionDetail]:
        return await self.reader.cached_first(
            category_key(collection_id), self._detail_fetcher(collection_id), parse_detail
        )

    async def get_audio_by_id(self, collection_id: str) -> AudioCollectionDetail | None:
        """Collection with its tracks, cache first. None on failure."""
        outcome = await self.get_audio_by_id_result(collection_id)
        return outcome.value

    async def get_audio_by_id_fresh_result(self, collection_id: str) -> Outcome[AudioCollectionDetail]:
        return await self.reader.fresh_first(
            category_key(collection_id),
            self._detail_fetcher(collection_id),
            parse_detail,
            merge=merge_audio_detail,
        )

    async def get_audio_by_id_fresh(self, collection_id: str) -> AudioCollectionDetail | None:
        """Collection with its tracks, network first, download state kept."""
        outcome = await self.get_audio_by_id_fresh_result(collection_id)
        return outcome.value

    # -------------------------------------------------------------------------
    # Local state
    # -------------------------------------------------------------------------

    async def update_download_status(
        self,
        track_id: str,
        category_id: str,
        downloaded: bool,
        path: str | None,
    ) -> bool:
        """
        Record a track's download state in its cached collection.

        Returns:
            False if the collection was never cached or lacks the track
        """
        key = category_key(category_id)
        detail = await self.reader.cached_data(key, parse_detail)
        if detail is None:
            logger.debug("No cached collection '%s' to patch for track %s", key, track_id)
            return False

        audios = detail.get("audios") or []
        found = patch_entry(
            audios,
            lambda item: audio_track_id(item) == track_id,
            isDownloadable=downloaded,
            path=path if downloaded else "",
        )
        if not found:
            logger.debug("Track %s not found in cached collection '%s'", track_id, key)
            return False

        detail["audios"] = audios
        return await self.cache.set_cached(key, detail)

    async def clear_cache(self) -> int:
        """Drop every cached audio listing and collection."""
        return await self.cache.clear_all()
