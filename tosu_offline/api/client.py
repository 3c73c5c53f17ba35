"""
Asynchronous CMS content API client.

Fetches the catalog (audio collections, books, centers, video categories)
and flattens the CMS ``data.<field>.iv`` shape into pydantic models.

Usage:
    import asyncio
    from tosu_offline.api import AsyncContentClient

    async def main():
        async with AsyncContentClient(content_url, assets_url) as client:
            books = await client.fetch_books()

    asyncio.run(main())
"""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .models import (
    AudioCollection,
    AudioCollectionDetail,
    Book,
    Center,
    VideoCollection,
    VideoCollectionDetail,
)

logger = logging.getLogger(__name__)


class ContentError(Exception):
    """Base exception for CMS API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __str__(self) -> str:
        return self.message


class ContentConnectionError(ContentError):
    """Connection or timeout error."""

    pass


class ContentNotFoundError(ContentError):
    """Resource not found error."""

    pass


def _iv(data: dict, field: str, default: Any = None) -> Any:
    """Read ``data[field]["iv"]`` tolerating missing levels."""
    value = data.get(field)
    if isinstance(value, dict):
        inner = value.get("iv", default)
        return default if inner is None else inner
    return default


class AsyncContentClient:
    """
    Asynchronous CMS API client.

    Uses httpx.AsyncClient with rate limiting and semaphore-based
    concurrency control.
    """

    def __init__(
        self,
        content_url: str,
        assets_url: str,
        audio_schema: str = "audio",
        book_schema: str = "book",
        center_schema: str = "center",
        video_schema: str = "video",
        timeout: float = 30.0,
        rate_limit_delay: float = 0.0,
        max_concurrent_requests: int = 5,
        user_agent: str = "tosuthien-app",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the async content client.

        Args:
            content_url: Base URL of the CMS content API (schemas are appended)
            assets_url: Base URL that asset ids are appended to
            audio_schema: Schema name of audio collections
            book_schema: Schema name of books
            center_schema: Schema name of centers
            video_schema: Schema name of video categories
            timeout: Request timeout in seconds
            rate_limit_delay: Minimum delay between requests
            max_concurrent_requests: Max concurrent API calls
            user_agent: User-Agent header value
            transport: Custom httpx transport (tests)
        """
        self.content_url = content_url.rstrip("/")
        self.assets_url = assets_url if assets_url.endswith("/") else f"{assets_url}/"
        self.audio_schema = audio_schema
        self.book_schema = book_schema
        self.center_schema = center_schema
        self.video_schema = video_schema
        self.timeout = timeout
        self.user_agent = user_agent
        self._rate_limit_delay = rate_limit_delay
        self._last_request_time = 0.0
        self._transport = transport

        # Concurrency control
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._rate_lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    def asset_url(self, asset_id: str) -> str:
        """Public URL of an asset (audio file, PDF, image)."""
        return f"{self.assets_url}{asset_id}"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure async client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.content_url,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.user_agent,
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncContentClient":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def _rate_limit(self) -> None:
        """Apply rate limiting between requests."""
        async with self._rate_lock:
            loop = asyncio.get_running_loop()
            elapsed = loop.time() - self._last_request_time
            if elapsed < self._rate_limit_delay:
                await asyncio.sleep(self._rate_limit_delay - elapsed)
            self._last_request_time = loop.time()

    async def _get(self, endpoint: str, params: dict | None = None) -> Any:
        """
        Make an async GET request with rate limiting and semaphore.

        Args:
            endpoint: Path relative to the content URL
            params: Query parameters

        Returns:
            Parsed JSON body
        """
        async with self._semaphore:
            await self._rate_limit()

            client = await self._ensure_client()
            logger.debug("CMS request: GET %s %s", endpoint, params or "")

            try:
                response = await client.get(endpoint, params=params)
            except httpx.ConnectError as e:
                logger.error("CMS connection error: %s", e)
                raise ContentConnectionError(f"Failed to connect to {self.content_url}: {e}") from e
            except httpx.TimeoutException as e:
                logger.error("CMS timeout: %s", e)
                raise ContentConnectionError(f"Request timed out: {e}") from e
            except httpx.HTTPError as e:
                logger.error("CMS transport error: %s", e)
                raise ContentConnectionError(f"Request failed: {e}") from e

            if response.status_code == 404:
                raise ContentNotFoundError(f"Resource not found: {endpoint}", status_code=404)
            elif response.status_code >= 400:
                raise ContentError(
                    f"API call failed with status: {response.status_code}",
                    status_code=response.status_code,
                )

            if not response.content:
                return {}

            try:
                return response.json()
            except ValueError as e:
                raise ContentError(f"Invalid JSON from {endpoint}: {e}", status_code=response.status_code) from e

    # =====================
    # Audio
    # =====================

    async def fetch_audio_category(self, category_id: str | None) -> list[AudioCollection]:
        """
        List the collections under a category (None for the root level).

        Returns:
            Collections ordered by creation time
        """
        params: dict[str, Any]
        if category_id is None:
            params = {"$filter": "data/category/iv eq null"}
        else:
            params = {"$filter": f"data/category/iv eq '{category_id}'", "$orderby": "created asc"}

        data = await self._get(f"/{self.audio_schema}", params=params)
        try:
            return [
                AudioCollection(
                    id=item["id"],
                    name=_iv(item["data"], "name", ""),
                    isCategory=_iv(item["data"], "isCategory"),
                    description=_iv(item["data"], "description", ""),
                )
                for item in data.get("items") or []
            ]
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise ContentError(f"Unexpected audio category payload: {e}") from e

    async def fetch_audio_detail(self, collection_id: str) -> AudioCollectionDetail:
        """Get a collection with its tracks."""
        item = await self._get(f"/{self.audio_schema}/{collection_id}")
        try:
            return AudioCollectionDetail(
                id=item["id"],
                name=_iv(item["data"], "name", ""),
                audios=_iv(item["data"], "audios", []),
                isCategory=_iv(item["data"], "isCategory"),
            )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise ContentError(f"Unexpected audio detail payload: {e}") from e

    # =====================
    # Books
    # =====================

    async def fetch_books(self) -> list[Book]:
        """List all books. Local-only fields start at their defaults."""
        data = await self._get(f"/{self.book_schema}")
        books = []
        try:
            for item in data.get("items") or []:
                chapters = _iv(item["data"], "book", [])
                books.append(
                    Book(
                        id=item["id"],
                        title=_iv(item["data"], "title", ""),
                        description=_iv(item["data"], "description", ""),
                        firstChapterId=chapters[0] if chapters else None,
                        isDownload=False,
                        path=None,
                        pageCurrent=1,
                        pageTotal=_iv(item["data"], "pageTotal"),
                    )
                )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise ContentError(f"Unexpected book payload: {e}") from e
        return books

    # =====================
    # Centers
    # =====================

    async def fetch_centers(self) -> list[Center]:
        """List all practice centers."""
        data = await self._get(f"/{self.center_schema}")
        centers = []
        try:
            for item in data.get("items") or []:
                fields = item.get("data") or {}
                images = _iv(fields, "image", [])
                location = _iv(fields, "location", {})
                centers.append(
                    Center(
                        id=item.get("id") or "",
                        name=_iv(fields, "name", ""),
                        address=_iv(fields, "address", ""),
                        phone=_iv(fields, "phone", ""),
                        latitude=location.get("latitude") or 0,
                        longitude=location.get("longitude") or 0,
                        image=self.asset_url(images[0]) if images else None,
                        createdAt=item.get("created"),
                        updatedAt=item.get("lastModified"),
                    )
                )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise ContentError(f"Unexpected center payload: {e}") from e
        return centers

    # =====================
    # Videos
    # =====================

    async def fetch_video_categories(self) -> list[VideoCollection]:
        """List all video categories."""
        data = await self._get(f"/{self.video_schema}")
        try:
            return [
                VideoCollection(
                    id=item["id"],
                    name=_iv(item["data"], "name", ""),
                    description=_iv(item["data"], "description"),
                )
                for item in data.get("items") or []
            ]
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise ContentError(f"Unexpected video category payload: {e}") from e

    async def fetch_video_detail(self, category_id: str) -> VideoCollectionDetail:
        """Get a video category with its videos."""
        item = await self._get(f"/{self.video_schema}/{category_id}")
        try:
            return VideoCollectionDetail(id=item["id"], videos=_iv(item["data"], "videos", []))
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise ContentError(f"Unexpected video detail payload: {e}") from e
