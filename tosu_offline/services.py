"""
Composition root.

Builds one explicitly constructed instance per domain from Settings. There
are no module-level singletons: callers hold the OfflineServices object.

Usage:
    settings = get_settings()
    async with build_services(settings) as services:
        books = await services.books.get_books()
        await services.reconcile()
"""

import logging
from dataclasses import dataclass

from .api.client import AsyncContentClient
from .api.source import ContentSource
from .cache.envelope import EnvelopeCodec
from .cache.proxy import CacheProxy
from .config import Settings
from .downloads.audio import AudioDownloadManager
from .downloads.book import BookDownloadManager
from .downloads.index import OfflineTrackIndex, ReconcileReport
from .downloads.transfer import MediaDownloader
from .network.reachability import HttpReachabilityProbe, ReachabilityMonitor
from .playback.orchestrator import PlaybackOrchestrator
from .playback.transport import MediaTransport
from .proxies import audio as audio_proxy_module
from .proxies import book as book_proxy_module
from .proxies import center as center_proxy_module
from .proxies import video as video_proxy_module
from .proxies.audio import AudioProxy
from .proxies.book import BookProxy
from .proxies.center import CenterProxy
from .proxies.video import VideoProxy
from .storage.base import FileStore, KeyValueStore
from .storage.files import LocalFileStore
from .storage.memory import MemoryKeyValueStore
from .storage.sqlite_store import SQLiteKeyValueStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> KeyValueStore:
    """Key-value store for the configured backend."""
    backend = settings.storage.backend.lower()
    if backend == "memory":
        return MemoryKeyValueStore(max_bytes=settings.storage.max_bytes)
    if backend == "sqlite":
        return SQLiteKeyValueStore(settings.storage.db_path, max_bytes=settings.storage.max_bytes)
    raise ValueError(f"Unknown storage backend: {settings.storage.backend}")


@dataclass
class OfflineServices:
    """Every service of the offline layer, wired together."""

    settings: Settings
    store: KeyValueStore
    files: FileStore
    api: ContentSource
    reachability: ReachabilityMonitor
    audio: AudioProxy
    books: BookProxy
    videos: VideoProxy
    centers: CenterProxy
    track_index: OfflineTrackIndex
    audio_downloads: AudioDownloadManager
    book_downloads: BookDownloadManager
    playback: PlaybackOrchestrator | None = None

    @property
    def catalog_caches(self) -> dict[str, CacheProxy]:
        return {
            audio_proxy_module.NAMESPACE: self.audio.cache,
            book_proxy_module.NAMESPACE: self.books.cache,
            video_proxy_module.NAMESPACE: self.videos.cache,
            center_proxy_module.NAMESPACE: self.centers.cache,
        }

    async def reconcile(self) -> dict[str, ReconcileReport]:
        """Run every store's repair pass (e.g. on app resume)."""
        return {
            "audio": await self.audio_downloads.reconcile(),
            "books": await self.book_downloads.reconcile(),
        }

    async def clear_catalog_caches(self) -> int:
        """Clear the audio, video and center caches. The book list holds download state and is kept."""
        cleared = 0
        for name, cache in self.catalog_caches.items():
            if name != book_proxy_module.NAMESPACE:
                cleared += await cache.clear_all()
        return cleared

    async def close(self) -> None:
        """Close HTTP clients owned by the services."""
        for resource in (self.api, self.files, self.reachability.probe):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> "OfflineServices":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def build_services(
    settings: Settings,
    store: KeyValueStore | None = None,
    files: FileStore | None = None,
    api: ContentSource | None = None,
    transport: MediaTransport | None = None,
    reachability: ReachabilityMonitor | None = None,
) -> OfflineServices:
    """
    Wire the offline layer.

    Args:
        settings: Application settings
        store: Key-value store (default: from settings.storage)
        files: File store (default: LocalFileStore)
        api: Content source (default: AsyncContentClient from settings.api)
        transport: Media transport; playback is only built when given
        reachability: Connectivity signal (default: HTTP probe from settings.network)
    """
    api_settings = settings.api
    dl = settings.downloads

    store = store if store is not None else create_store(settings)
    files = files if files is not None else LocalFileStore(timeout=dl.timeout)
    if api is None:
        api = AsyncContentClient(
            content_url=api_settings.content_url,
            assets_url=api_settings.assets_url,
            audio_schema=api_settings.audio_schema,
            book_schema=api_settings.book_schema,
            center_schema=api_settings.center_schema,
            video_schema=api_settings.video_schema,
            timeout=api_settings.timeout,
            rate_limit_delay=api_settings.rate_limit_delay,
            max_concurrent_requests=api_settings.max_concurrent_requests,
            user_agent=api_settings.user_agent,
        )
    if reachability is None:
        reachability = ReachabilityMonitor(
            HttpReachabilityProbe(settings.network.probe_url, timeout=settings.network.probe_timeout)
        )

    # One codec so timestamps stay non-decreasing across every namespace
    codec = EnvelopeCodec(store)
    fetch_timeout = api_settings.fetch_timeout

    def cache(namespace: str) -> CacheProxy:
        return CacheProxy(store, namespace, codec=codec)

    audio = AudioProxy(cache(audio_proxy_module.NAMESPACE), api, reachability, fetch_timeout)
    books = BookProxy(cache(book_proxy_module.NAMESPACE), api, reachability, fetch_timeout)
    videos = VideoProxy(cache(video_proxy_module.NAMESPACE), api, reachability, fetch_timeout)
    centers = CenterProxy(cache(center_proxy_module.NAMESPACE), api, reachability, fetch_timeout)

    download_dir = settings.download_dir
    track_index = OfflineTrackIndex(store, files, codec=codec)
    audio_downloads = AudioDownloadManager(
        MediaDownloader(
            files,
            download_dir,
            api_settings.assets_url,
            extension=dl.audio_extension,
            accept=dl.audio_accept,
            user_agent=api_settings.user_agent,
        ),
        track_index,
        store,
        files,
        audio,
    )
    book_downloads = BookDownloadManager(
        MediaDownloader(
            files,
            download_dir,
            api_settings.assets_url,
            extension=dl.book_extension,
            accept=dl.book_accept,
            user_agent=api_settings.user_agent,
        ),
        files,
        books,
    )

    playback = None
    if transport is not None:
        playback = PlaybackOrchestrator(
            transport,
            audio,
            audio_downloads,
            track_index,
            api_settings.assets_url,
            reachability=reachability,
        )

    logger.debug("Offline services built (store=%s, downloads=%s)", type(store).__name__, download_dir)
    return OfflineServices(
        settings=settings,
        store=store,
        files=files,
        api=api,
        reachability=reachability,
        audio=audio,
        books=books,
        videos=videos,
        centers=centers,
        track_index=track_index,
        audio_downloads=audio_downloads,
        book_downloads=book_downloads,
        playback=playback,
    )
