"""Pytest configuration and shared fixtures."""

from collections.abc import Mapping
from unittest.mock import AsyncMock

import orjson
import pytest

from tosu_offline.api.client import AsyncContentClient
from tosu_offline.cache.envelope import EnvelopeCodec
from tosu_offline.cache.proxy import CacheProxy
from tosu_offline.downloads.audio import AudioDownloadManager
from tosu_offline.downloads.book import BookDownloadManager
from tosu_offline.downloads.index import OfflineTrackIndex
from tosu_offline.downloads.transfer import MediaDownloader
from tosu_offline.network.reachability import ReachabilityMonitor
from tosu_offline.proxies.audio import AudioProxy
from tosu_offline.proxies.book import BookProxy
from tosu_offline.proxies.center import CenterProxy
from tosu_offline.proxies.video import VideoProxy
from tosu_offline.storage.base import FileStat, TransferInfo
from tosu_offline.storage.memory import MemoryKeyValueStore

ASSETS_URL = "https://assets.example.com/"
MEDIA_DIR = "/media"


class FakeFileStore:
    """
    In-memory FileStore.

    ``responses`` maps a source URL to the (status, body) the transfer
    produces; anything else gets ``default_response``. Setting ``fail_with``
    makes every transfer raise that exception.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.responses: dict[str, tuple[int, bytes]] = {}
        self.default_response: tuple[int, bytes] = (200, b"media-bytes")
        self.fail_with: Exception | None = None
        self.writes: list[tuple[str, str, dict[str, str]]] = []

    async def exists(self, path: str) -> bool:
        return bool(path) and path in self.files

    async def stat(self, path: str) -> FileStat:
        if path not in self.files:
            raise FileNotFoundError(path)
        return FileStat(size=len(self.files[path]))

    async def write(self, path: str, source_url: str, headers: Mapping[str, str]) -> TransferInfo:
        self.writes.append((path, source_url, dict(headers)))
        if self.fail_with is not None:
            raise self.fail_with
        status, body = self.responses.get(source_url, self.default_response)
        self.files[path] = body
        return TransferInfo(status_code=status, bytes_written=len(body))

    async def delete(self, path: str) -> None:
        self.files.pop(path, None)


def dumps(value) -> str:
    """Serialize a value the way the store holds it."""
    return orjson.dumps(value).decode("utf-8")


# ============================================================================
# Storage
# ============================================================================


@pytest.fixture
def store() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def codec(store) -> EnvelopeCodec:
    return EnvelopeCodec(store)


@pytest.fixture
def files() -> FakeFileStore:
    return FakeFileStore()


# ============================================================================
# Network
# ============================================================================


@pytest.fixture
def source() -> AsyncMock:
    """Mock content source; every fetch is an AsyncMock."""
    return AsyncMock(spec=AsyncContentClient)


@pytest.fixture
def reachability() -> ReachabilityMonitor:
    """Connectivity signal reporting online."""
    return ReachabilityMonitor(connected=True)


# ============================================================================
# Proxies
# ============================================================================


@pytest.fixture
def audio_proxy(store, codec, source, reachability) -> AudioProxy:
    return AudioProxy(CacheProxy(store, "audio", codec), source, reachability, fetch_timeout=1.0)


@pytest.fixture
def book_proxy(store, codec, source, reachability) -> BookProxy:
    return BookProxy(CacheProxy(store, "books", codec), source, reachability, fetch_timeout=1.0)


@pytest.fixture
def video_proxy(store, codec, source, reachability) -> VideoProxy:
    return VideoProxy(CacheProxy(store, "videos", codec), source, reachability, fetch_timeout=1.0)


@pytest.fixture
def center_proxy(store, codec, source, reachability) -> CenterProxy:
    return CenterProxy(CacheProxy(store, "centers", codec), source, reachability, fetch_timeout=1.0)


# ============================================================================
# Downloads
# ============================================================================


@pytest.fixture
def track_index(store, files, codec) -> OfflineTrackIndex:
    return OfflineTrackIndex(store, files, codec=codec)


@pytest.fixture
def audio_downloader(files) -> MediaDownloader:
    return MediaDownloader(files, MEDIA_DIR, ASSETS_URL, extension=".mp3", accept="audio/mpeg, audio/*")


@pytest.fixture
def book_downloader(files) -> MediaDownloader:
    return MediaDownloader(files, MEDIA_DIR, ASSETS_URL, extension=".pdf", accept="application/pdf")


@pytest.fixture
def audio_downloads(audio_downloader, track_index, store, files, audio_proxy) -> AudioDownloadManager:
    return AudioDownloadManager(audio_downloader, track_index, store, files, audio_proxy)


@pytest.fixture
def book_downloads(book_downloader, files, book_proxy) -> BookDownloadManager:
    return BookDownloadManager(book_downloader, files, book_proxy)


# ============================================================================
# Sample data
# ============================================================================


@pytest.fixture
def collection_detail() -> dict:
    """Cached collection with two tracks, in the persisted shape."""
    return {
        "id": "col1",
        "name": "Kinh Tụng",
        "isCategory": False,
        "audios": [
            {"audio": ["t1"], "title": "Track One", "isDownloadable": None, "path": None},
            {"audio": ["t2"], "title": "Track Two", "isDownloadable": None, "path": None},
        ],
    }


@pytest.fixture
def cached_books() -> list[dict]:
    """Cached book list, in the persisted shape."""
    return [
        {
            "id": "b1",
            "title": "Book One",
            "firstChapterId": "ch1",
            "isDownload": False,
            "path": None,
            "pageCurrent": 1,
            "pageTotal": 120,
        },
        {
            "id": "b2",
            "title": "Book Two",
            "firstChapterId": "ch2",
            "isDownload": False,
            "path": None,
            "pageCurrent": 1,
            "pageTotal": 80,
        },
    ]
